# Routes package init
"""
Things API: API Routes Package
================================

Route Inventory:
    - things.py:     the conventional `things` actions, mounted from the RouteTable
                     GET/POST /api/things, GET/PATCH/PUT/DELETE /api/things/{id}
                     (+ /api/things/new and /api/things/{id}/edit with form actions)
    - route_map.py:  GET /api/routes   (route table metadata)
    - health.py:     GET /health       (service health check)

Routes stay thin: parse the request, call the service, serialize, and set
status code and headers. Business rules live in services.
"""
