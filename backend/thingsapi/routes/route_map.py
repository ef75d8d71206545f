"""
Things API: Route Map
=======================

What:  GET {namespace}/routes lists the mounted route table
       (name, verb, path, pattern, action) for documentation tooling.
"""

from typing import List, Optional, Sequence

from fastapi import APIRouter, Request
from fastapi.params import Depends as DependsParam

from thingsapi.schemas.thing import RouteInfo


def build_route_map_router(
    namespace: str,
    dependencies: Optional[Sequence[DependsParam]] = None,
) -> APIRouter:
    router = APIRouter(prefix=namespace, tags=["Meta"], dependencies=list(dependencies or []))

    @router.get(
        "/routes",
        response_model=List[RouteInfo],
        name="api_routes",
        summary="List the resource routes",
    )
    async def list_routes(request: Request) -> List[dict]:
        return request.app.state.route_table.describe()

    return router
