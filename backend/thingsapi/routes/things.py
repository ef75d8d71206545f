"""
Things API: Thing Route Handlers
==================================

What:  One handler per conventional action (index, create, new, edit, show,
       update, destroy) plus `build_things_router()`, which mounts them from
       a RouteTable.
How:   Handlers are thin: call ThingService, serialize with the pure
       serializer, and return a JSONResponse with the right status.
       Errors are raised and turned into responses by the global handlers.

Handlers return JSONResponse directly so the serializer's key order and
timestamp format reach the client untouched; `response_model` still
documents the shape in the OpenAPI document.

Request bodies are read inside the handler with `read_params()` rather than
declared as FastAPI body parameters. A member action looks the record up
first, so an unknown id answers 404 whatever the body contains.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar

from fastapi import APIRouter, Depends, Request, Response
from fastapi.params import Depends as DependsParam
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from thingsapi.database import get_db_session
from thingsapi.exceptions import FRIENDLY_MESSAGES, ValidationError, validation_messages
from thingsapi.routing import RouteTable
from thingsapi.schemas.thing import (
    ErrorResponse,
    ThingCreate,
    ThingResponse,
    ThingUpdate,
    ValidationErrorResponse,
)
from thingsapi.serializers import self_link_route, serialize_thing, serialize_things
from thingsapi.services.thing_service import thing_service

logger = logging.getLogger(__name__)

ParamsT = TypeVar("ParamsT", bound=BaseModel)


def get_route_table(request: Request) -> RouteTable:
    return request.app.state.route_table


def base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


async def read_params(request: Request, model: Type[ParamsT]) -> ParamsT:
    """
    Parse the JSON request body into `model`.

    Raises:
        ValidationError: empty or malformed body, or fields failing the
                         model's rules (messages keyed by field)
    """
    raw = await request.body()
    if not raw.strip():
        raise ValidationError.for_field("base", "request body is required")
    try:
        data = await request.json()
    except ValueError:
        raise ValidationError.for_field("base", FRIENDLY_MESSAGES["json_invalid"])
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(errors=validation_messages(e.errors()))


# ── Handlers ──────────────────────────────────────────────────────────────

async def index(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    routes: RouteTable = Depends(get_route_table),
) -> JSONResponse:
    """Every thing in the collection, as a JSON array."""
    things = await thing_service.list_things(db)
    return JSONResponse(
        content=serialize_things(things, routes, base_url(request)),
        headers={"X-Total-Count": str(len(things))},
    )


async def create(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    routes: RouteTable = Depends(get_route_table),
) -> JSONResponse:
    params = await read_params(request, ThingCreate)
    thing = await thing_service.create_thing(db, params)
    payload = serialize_thing(thing, routes, base_url(request))
    headers = {"Location": payload["url"]} if payload["url"] else None
    return JSONResponse(status_code=201, content=payload, headers=headers)


async def new(
    request: Request,
    routes: RouteTable = Depends(get_route_table),
) -> JSONResponse:
    """Blank, unsaved representation for browser forms."""
    return JSONResponse(content=serialize_thing(thing_service.build_thing(), routes, base_url(request)))


async def show(
    id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    routes: RouteTable = Depends(get_route_table),
) -> JSONResponse:
    thing = await thing_service.get_thing(db, id)
    return JSONResponse(content=serialize_thing(thing, routes, base_url(request)))


async def update(
    id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    routes: RouteTable = Depends(get_route_table),
) -> JSONResponse:
    """PATCH and PUT both apply a partial update. Lookup precedes body validation."""
    thing = await thing_service.get_thing(db, id)
    params = await read_params(request, ThingUpdate)
    thing = await thing_service.apply_update(db, thing, params)
    return JSONResponse(content=serialize_thing(thing, routes, base_url(request)))


async def destroy(
    id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await thing_service.destroy_thing(db, id)
    return Response(status_code=204)


# ── Action Registry ───────────────────────────────────────────────────────

NOT_FOUND = {404: {"description": "Thing not found", "model": ErrorResponse}}
UNPROCESSABLE = {422: {"description": "Invalid attributes", "model": ValidationErrorResponse}}


@dataclass(frozen=True)
class ActionBinding:
    endpoint: Callable[..., Any]
    summary: str
    status_code: int = 200
    response_model: Any = None
    responses: Dict[Any, Any] = field(default_factory=dict)
    body: Optional[Type[BaseModel]] = None

    def openapi_extra(self) -> Optional[Dict[str, Any]]:
        # Bodies are parsed by read_params, so document them by hand
        if self.body is None:
            return None
        return {
            "requestBody": {
                "required": True,
                "content": {"application/json": {"schema": self.body.model_json_schema()}},
            }
        }


ACTION_BINDINGS: Dict[str, ActionBinding] = {
    "index": ActionBinding(index, "List things", response_model=List[ThingResponse]),
    "create": ActionBinding(
        create,
        "Create a thing",
        status_code=201,
        response_model=ThingResponse,
        responses=UNPROCESSABLE,
        body=ThingCreate,
    ),
    "new": ActionBinding(new, "Blank thing for a form", response_model=ThingResponse),
    "edit": ActionBinding(show, "Thing for an edit form", response_model=ThingResponse, responses=NOT_FOUND),
    "show": ActionBinding(show, "Show a thing", response_model=ThingResponse, responses=NOT_FOUND),
    "update": ActionBinding(
        update,
        "Update a thing",
        response_model=ThingResponse,
        responses={**NOT_FOUND, **UNPROCESSABLE},
        body=ThingUpdate,
    ),
    "destroy": ActionBinding(destroy, "Delete a thing", status_code=204, responses=NOT_FOUND),
}


def build_things_router(
    routes: RouteTable,
    dependencies: Optional[Sequence[DependsParam]] = None,
) -> APIRouter:
    """
    Mount one FastAPI route per descriptor in `routes`.

    The descriptor's name becomes the route name and, with the action and
    verb, a unique OpenAPI operation id.
    """
    router = APIRouter(tags=["Things"], dependencies=list(dependencies or []))
    for route in routes:
        binding = ACTION_BINDINGS[route.action]
        router.add_api_route(
            route.path,
            binding.endpoint,
            methods=[route.verb],
            name=route.name,
            operation_id=f"{route.action}_{route.name}_{route.verb.lower()}",
            summary=binding.summary,
            status_code=binding.status_code,
            response_model=binding.response_model,
            responses=binding.responses,
            openapi_extra=binding.openapi_extra(),
        )
    if self_link_route(routes) is None:
        logger.warning("Route table has no show route; things will have no self link")
    return router
