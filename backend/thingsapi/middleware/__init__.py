# Middleware package init
"""
Things API: Middleware Package
================================

What:  Cross-cutting steps applied uniformly to every request.

Request Pipeline (outermost first):
    Request → [Request ID] → [Logging] → [Format Suffix] → [GZip] → [CORS]
            → authentication dependency → route handler
            → exception handlers (error mapping)

Middleware runs in reverse order of `app.add_middleware` calls; see
`thingsapi.main.install_pipeline`.
"""
