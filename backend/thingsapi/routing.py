"""
Things API: Route Table
=========================

What:  Immutable description of the namespaced resource routes.
How:   `resource_routes()` generates the conventional CRUD table for a
       resource; the resulting `RouteTable` is built once in `create_app()`,
       stored on `app.state.route_table`, and used to mount handlers, build
       self-links and describe the API.
Who:   main.py (mounting), serializers (url_for), /api/routes (metadata).

Conventional table for `resource_routes("things")`:

    Name            Verb    Path                    Action
    api_things      GET     /api/things             index
    api_things      POST    /api/things             create
    new_api_thing   GET     /api/things/new         new       (form_actions)
    edit_api_thing  GET     /api/things/{id}/edit   edit      (form_actions)
    api_thing       GET     /api/things/{id}        show
    api_thing       PATCH   /api/things/{id}        update
    api_thing       PUT     /api/things/{id}        update
    api_thing       DELETE  /api/things/{id}        destroy

`new` is listed before `show` so `/api/things/new` is matched first.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

ACTIONS: Tuple[str, ...] = ("index", "create", "new", "edit", "show", "update", "destroy")
FORM_ACTIONS = frozenset({"new", "edit"})

_PARAM = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class RouteDescriptor:
    """One (verb, path) → action mapping with its symbolic name."""

    resource: str
    action: str
    verb: str
    path: str
    name: str

    @property
    def member(self) -> bool:
        """True for routes addressing a single record by id."""
        return "{id}" in self.path

    @property
    def params(self) -> Tuple[str, ...]:
        return tuple(_PARAM.findall(self.path))

    @property
    def pattern(self) -> str:
        """Colon-style pattern with the optional format suffix, e.g. `/api/things/:id(.:format)`."""
        return _PARAM.sub(r":\1", self.path) + "(.:format)"

    def matches(self, verb: str, path: str) -> bool:
        if verb.upper() != self.verb:
            return False
        wanted = self.path.strip("/").split("/")
        given = path.strip("/").split("/")
        if len(wanted) != len(given):
            return False
        for expected, actual in zip(wanted, given):
            if _PARAM.fullmatch(expected):
                if not actual:
                    return False
            elif expected != actual:
                return False
        return True

    def describe(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "verb": self.verb,
            "path": self.path,
            "pattern": self.pattern,
            "action": self.action,
        }


class RouteTable:
    """
    Ordered, immutable collection of route descriptors.

    Each (verb, path) pair appears once; a duplicate raises
    ValueError at construction time, including when two tables are added.
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: Iterable[RouteDescriptor] = ()):
        routes = tuple(routes)
        seen = set()
        for route in routes:
            key = (route.verb, route.path)
            if key in seen:
                raise ValueError(f"Duplicate route: {route.verb} {route.path}")
            seen.add(key)
        self._routes: Tuple[RouteDescriptor, ...] = routes

    def __iter__(self) -> Iterator[RouteDescriptor]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __add__(self, other: "RouteTable") -> "RouteTable":
        return RouteTable(self._routes + tuple(other))

    def __repr__(self) -> str:
        return f"<RouteTable({len(self._routes)} routes)>"

    @property
    def routes(self) -> Tuple[RouteDescriptor, ...]:
        return self._routes

    @property
    def names(self) -> List[str]:
        """Distinct route names in table order."""
        return list(dict.fromkeys(route.name for route in self._routes))

    def for_action(self, action: str) -> Tuple[RouteDescriptor, ...]:
        return tuple(route for route in self._routes if route.action == action)

    def find(self, verb: str, path: str) -> Optional[RouteDescriptor]:
        """Return the descriptor handling `verb path`, or None."""
        for route in self._routes:
            if route.matches(verb, path):
                return route
        return None

    def url_for(self, name: str, format: Optional[str] = None, **params: object) -> str:
        """
        Build a path from a route name.

        Raises:
            KeyError: unknown route name or a missing path parameter
        """
        for route in self._routes:
            if route.name == name:
                break
        else:
            raise KeyError(f"No route named '{name}'")

        def substitute(match: "re.Match[str]") -> str:
            key = match.group(1)
            if params.get(key) is None:
                raise KeyError(f"Route '{name}' requires parameter '{key}'")
            return str(params[key])

        path = _PARAM.sub(substitute, route.path)
        if format:
            path = f"{path}.{format}"
        return path

    def describe(self) -> List[Dict[str, str]]:
        """Route metadata for documentation tools and /api/routes."""
        return [route.describe() for route in self._routes]


def _singularize(resource: str) -> str:
    if resource.endswith("ies"):
        return resource[:-3] + "y"
    if resource.endswith("s") and not resource.endswith("ss"):
        return resource[:-1]
    return resource


def resource_routes(
    resource: str,
    namespace: str = "/api",
    singular: Optional[str] = None,
    only: Optional[Sequence[str]] = None,
    exclude: Optional[Sequence[str]] = None,
    form_actions: bool = False,
) -> RouteTable:
    """
    Generate the conventional CRUD route table for `resource`.

    Args:
        resource:     Plural resource name used in the path (`things`)
        namespace:    Shared path prefix (`/api`); "" for no namespace
        singular:     Singular name for member route names; derived if omitted
        only:         Restrict to these actions
        exclude:      Drop these actions
        form_actions: Include the browser-form actions `new` and `edit`

    Raises:
        ValueError: an unknown action name in `only` / `exclude`
    """
    for requested in (only or ()), (exclude or ()):
        unknown = set(requested) - set(ACTIONS)
        if unknown:
            raise ValueError(f"Unknown actions: {sorted(unknown)}")

    singular = singular or _singularize(resource)
    prefix = "/" + namespace.strip("/") if namespace.strip("/") else ""
    name_prefix = prefix.strip("/").replace("/", "_")
    scoped = (lambda n: f"{name_prefix}_{n}") if name_prefix else (lambda n: n)

    collection_path = f"{prefix}/{resource}"
    member_path = f"{collection_path}/{{id}}"
    collection_name = scoped(resource)
    member_name = scoped(singular)

    candidates = [
        ("index", "GET", collection_path, collection_name),
        ("create", "POST", collection_path, collection_name),
        ("new", "GET", f"{collection_path}/new", f"new_{member_name}"),
        ("edit", "GET", f"{member_path}/edit", f"edit_{member_name}"),
        ("show", "GET", member_path, member_name),
        ("update", "PATCH", member_path, member_name),
        ("update", "PUT", member_path, member_name),
        ("destroy", "DELETE", member_path, member_name),
    ]

    selected = set(only) if only is not None else set(ACTIONS)
    selected -= set(exclude or ())
    if not form_actions:
        selected -= FORM_ACTIONS

    return RouteTable(
        RouteDescriptor(resource=resource, action=action, verb=verb, path=path, name=name)
        for action, verb, path, name in candidates
        if action in selected
    )
