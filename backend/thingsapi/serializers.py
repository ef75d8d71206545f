"""
Things API: Serializers
=========================

What:  Pure functions converting entities into JSON-ready field mappings.
How:   No request object is involved; the route table and an optional base
       URL are passed in, so serializers are testable on their own.

Output for a saved thing:
    {
        "id": 1,
        "name": "Widget",
        "description": null,
        "created_at": "2024-01-15T12:00:00.000Z",
        "updated_at": "2024-01-15T12:00:00.000Z",
        "url": "http://testserver/api/things/1.json"
    }
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from thingsapi.models.thing import Thing
from thingsapi.routing import RouteTable


def self_link_route(routes: RouteTable) -> Optional[str]:
    """Name of the route a thing's `url` points at (`api_thing` by default)."""
    shows = routes.for_action("show")
    return shows[0].name if shows else None


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 in UTC with millisecond precision. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def serialize_thing(thing: Thing, routes: RouteTable, base_url: str = "") -> Dict[str, Any]:
    url = None
    link_route = self_link_route(routes)
    if thing.id is not None and link_route is not None:
        url = base_url.rstrip("/") + routes.url_for(link_route, id=thing.id, format="json")
    return {
        "id": thing.id,
        "name": thing.name,
        "description": thing.description,
        "created_at": format_timestamp(thing.created_at),
        "updated_at": format_timestamp(thing.updated_at),
        "url": url,
    }


def serialize_things(
    things: Iterable[Thing], routes: RouteTable, base_url: str = ""
) -> List[Dict[str, Any]]:
    return [serialize_thing(thing, routes, base_url) for thing in things]
