from thingsapi.schemas.thing import (
    ErrorResponse,
    HealthResponse,
    RouteInfo,
    ThingCreate,
    ThingResponse,
    ThingUpdate,
    ValidationErrorResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "RouteInfo",
    "ThingCreate",
    "ThingResponse",
    "ThingUpdate",
    "ValidationErrorResponse",
]
