"""
Things API: HTTP Endpoint Tests
=================================

What:  The full request pipeline against a real (SQLite) database.
How:   httpx AsyncClient over ASGITransport; see conftest.make_client.

What we test:
    ✅ create → show → destroy → show lifecycle
    ✅ 404 for unknown and malformed identifiers
    ✅ 422 with field messages, collection unchanged
    ✅ index length tracks the collection
    ✅ PATCH/PUT partial updates
    ✅ `.json` suffix, 406 for other formats
    ✅ route metadata, error body shape, generic 500
"""

import pytest
from httpx import ASGITransport, AsyncClient

from thingsapi.config import Settings
from thingsapi.database import get_db_session
from thingsapi.main import create_app


async def create_thing(client, **fields):
    response = await client.post("/api/things", json=fields)
    assert response.status_code == 201, response.text
    return response.json()


class TestThingLifecycle:

    @pytest.mark.asyncio
    async def test_create_show_destroy(self, client):
        response = await client.post("/api/things", json={"name": "Widget"})

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Widget"
        assert isinstance(created["id"], int)
        assert created["url"] == f"http://test/api/things/{created['id']}.json"
        assert response.headers["Location"] == created["url"]

        shown = await client.get(f"/api/things/{created['id']}")
        assert shown.status_code == 200
        assert shown.json()["name"] == "Widget"

        deleted = await client.delete(f"/api/things/{created['id']}")
        assert deleted.status_code == 204
        assert deleted.content == b""

        gone = await client.get(f"/api/things/{created['id']}")
        assert gone.status_code == 404

    @pytest.mark.asyncio
    async def test_show_matches_created_fields(self, client):
        created = await create_thing(client, name="Gadget", description="Shiny")

        shown = (await client.get(f"/api/things/{created['id']}")).json()

        assert shown == created
        assert list(shown) == ["id", "name", "description", "created_at", "updated_at", "url"]

    @pytest.mark.asyncio
    async def test_wrapped_params_accepted(self, client):
        created = await create_thing(client, thing={"name": "Wrapped"})
        assert created["name"] == "Wrapped"

    @pytest.mark.asyncio
    async def test_client_cannot_choose_id(self, client):
        created = await create_thing(client, name="Widget", id=999)
        assert created["id"] != 999


class TestIndex:

    @pytest.mark.asyncio
    async def test_empty_collection(self, client):
        response = await client.get("/api/things")

        assert response.status_code == 200
        assert response.json() == []
        assert response.headers["X-Total-Count"] == "0"

    @pytest.mark.asyncio
    async def test_length_tracks_collection(self, client):
        first = await create_thing(client, name="One")
        await create_thing(client, name="Two")
        await create_thing(client, name="Three")

        listed = (await client.get("/api/things")).json()
        assert [t["name"] for t in listed] == ["One", "Two", "Three"]

        await client.delete(f"/api/things/{first['id']}")
        response = await client.get("/api/things")
        assert len(response.json()) == 2
        assert response.headers["X-Total-Count"] == "2"


class TestNotFound:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_id", ["12345", "abc", "0", "new"])
    async def test_unknown_identifiers(self, client, raw_id):
        path = f"/api/things/{raw_id}"

        assert (await client.get(path)).status_code == 404
        assert (await client.patch(path, json={"name": "x"})).status_code == 404
        assert (await client.put(path, json={"name": "x"})).status_code == 404
        assert (await client.delete(path)).status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PATCH", "PUT"])
    @pytest.mark.parametrize(
        "body",
        [None, b'{"name": 5}', b'{"name": "' + b"x" * 300 + b'"}', b'{"name": ', b"[]"],
    )
    async def test_unknown_id_reported_before_body(self, client, method, body):
        response = await client.request(
            method,
            "/api/things/99999",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_error_body_shape(self, client):
        response = await client.get("/api/things/12345", headers={"X-Request-ID": "req-1"})

        assert response.json() == {
            "error": "thing with ID '12345' was not found",
            "request_id": "req-1",
        }
        assert response.headers["X-Request-ID"] == "req-1"

    @pytest.mark.asyncio
    async def test_unknown_path_is_json(self, client):
        response = await client.get("/api/widgets")

        assert response.status_code == 404
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_form_actions_not_mounted_by_default(self, client):
        created = await create_thing(client, name="Widget")

        assert (await client.get(f"/api/things/{created['id']}/edit")).status_code == 404


class TestValidation:

    @pytest.mark.asyncio
    async def test_missing_name(self, client):
        response = await client.post("/api/things", json={"description": "no name"})

        assert response.status_code == 422
        assert response.json()["error"] == {"name": ["can't be blank"]}
        assert (await client.get("/api/things")).json() == []

    @pytest.mark.asyncio
    async def test_blank_name(self, client):
        response = await client.post("/api/things", json={"name": "   "})

        assert response.status_code == 422
        assert response.json()["error"] == {"name": ["can't be blank"]}

    @pytest.mark.asyncio
    async def test_wrong_type(self, client):
        response = await client.post("/api/things", json={"name": 42})

        assert response.status_code == 422
        assert response.json()["error"]["name"] == ["must be a string"]

    @pytest.mark.asyncio
    async def test_malformed_json(self, client):
        response = await client.post(
            "/api/things",
            content=b'{"name": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert "base" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_update_blank_name(self, client):
        created = await create_thing(client, name="Widget")

        response = await client.patch(f"/api/things/{created['id']}", json={"name": ""})

        assert response.status_code == 422
        shown = (await client.get(f"/api/things/{created['id']}")).json()
        assert shown["name"] == "Widget"

    @pytest.mark.asyncio
    async def test_update_invalid_body_on_existing_thing(self, client):
        created = await create_thing(client, name="Widget")
        path = f"/api/things/{created['id']}"

        too_long = await client.patch(path, json={"name": "x" * 300})
        wrong_type = await client.put(path, json={"name": 5})
        missing = await client.patch(path)

        assert too_long.status_code == 422
        assert too_long.json()["error"] == {"name": ["is too long (maximum is 255 characters)"]}
        assert wrong_type.json()["error"] == {"name": ["must be a string"]}
        assert missing.status_code == 422
        assert missing.json()["error"] == {"base": ["request body is required"]}

    @pytest.mark.asyncio
    async def test_non_object_body(self, client):
        response = await client.post("/api/things", json=["Widget"])

        assert response.status_code == 422
        assert response.json()["error"] == {"base": ["request body must be a JSON object"]}


class TestUpdate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["PATCH", "PUT"])
    async def test_partial_update(self, client, method):
        created = await create_thing(client, name="Widget", description="Original")

        response = await client.request(
            method, f"/api/things/{created['id']}", json={"name": "Renamed"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["id"]
        assert body["name"] == "Renamed"
        assert body["description"] == "Original"
        assert body["created_at"] == created["created_at"]
        assert body["updated_at"] >= created["updated_at"]

    @pytest.mark.asyncio
    async def test_clear_description(self, client):
        created = await create_thing(client, name="Widget", description="Original")

        response = await client.patch(f"/api/things/{created['id']}", json={"description": None})

        assert response.json()["description"] is None


class TestFormatSuffix:

    @pytest.mark.asyncio
    async def test_json_suffix(self, client):
        created = await create_thing(client, name="Widget")

        collection = await client.get("/api/things.json")
        member = await client.get(f"/api/things/{created['id']}.json")

        assert collection.status_code == 200
        assert len(collection.json()) == 1
        assert member.json() == created

    @pytest.mark.asyncio
    async def test_self_link_resolves(self, client):
        created = await create_thing(client, name="Widget")

        response = await client.get(created["url"])

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_other_format_rejected(self, client):
        response = await client.get("/api/things/1.xml")

        assert response.status_code == 406
        assert "xml" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_suffix_ignored_outside_namespace(self, client):
        response = await client.get("/openapi.json")
        assert response.status_code == 200


class TestFormActions:

    @pytest.mark.asyncio
    async def test_new_and_edit(self, make_client):
        client = await make_client(form_actions=True)
        created = await create_thing(client, name="Widget")

        blank = await client.get("/api/things/new")
        edit = await client.get(f"/api/things/{created['id']}/edit")

        assert blank.status_code == 200
        assert blank.json()["id"] is None
        assert blank.json()["url"] is None
        assert edit.json() == created


class TestRouteMetadata:

    @pytest.mark.asyncio
    async def test_routes_endpoint(self, client):
        response = await client.get("/api/routes")

        assert response.status_code == 200
        listed = {(r["verb"], r["path"]): r["name"] for r in response.json()}
        assert listed[("GET", "/api/things")] == "api_things"
        assert listed[("DELETE", "/api/things/{id}")] == "api_thing"
        assert len(listed) == 6

    @pytest.mark.asyncio
    async def test_openapi_carries_route_names(self, client):
        schema = (await client.get("/openapi.json")).json()

        operation = schema["paths"]["/api/things/{id}"]["patch"]
        assert operation["operationId"] == "update_api_thing_patch"
        assert set(schema["paths"]["/api/things/{id}"]) == {"get", "patch", "put", "delete"}
        body = schema["paths"]["/api/things"]["post"]["requestBody"]
        assert "name" in body["content"]["application/json"]["schema"]["properties"]

    @pytest.mark.asyncio
    async def test_custom_namespace(self, make_client):
        client = await make_client(api_namespace="v1")
        created = await create_thing_at(client, "/v1/things", name="Widget")

        assert created["url"].endswith(f"/v1/things/{created['id']}.json")
        assert (await client.get("/api/things")).status_code == 404


async def create_thing_at(client, path, **fields):
    response = await client.post(path, json=fields)
    assert response.status_code == 201, response.text
    return response.json()


class TestServerErrors:

    @pytest.mark.asyncio
    async def test_unexpected_error_is_generic(self):
        app = create_app(Settings())

        async def broken_session():
            raise RuntimeError("secret connection string leaked")
            yield  # pragma: no cover

        app.dependency_overrides[get_db_session] = broken_session
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/things")

        assert response.status_code == 500
        assert "secret" not in response.text
        assert response.json()["error"].startswith("An unexpected error occurred")


class TestDatabaseWiring:

    @pytest.mark.asyncio
    async def test_each_app_uses_its_configured_database(self, make_client, tmp_path):
        first = await make_client()
        second = await make_client(database_url=f"sqlite+aiosqlite:///{tmp_path / 'other.db'}")

        await create_thing(first, name="Only here")

        assert len((await first.get("/api/things")).json()) == 1
        assert (await second.get("/api/things")).json() == []


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_database(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_unreachable_database(self, make_client, tmp_path):
        unreachable = f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'things.db'}"
        client = await make_client(create_tables=False, database_url=unreachable)

        response = await client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"
