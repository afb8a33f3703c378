"""
Companion API — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures: an in-memory fake of the managed platform,
       explicit Settings, and an HTTPX client bound to the app.
How:   FakePlatform is an httpx.MockTransport handler that speaks just enough
       of the auth, record (PostgREST) and storage dialects for the service
       code. Nothing touches the network.

Fixture Hierarchy:
    Function-scoped (fresh for each test):
    ├── settings:       Settings with a fake URL and keys, no .env
    ├── fake_platform:  FakePlatform with one signed-in user ("user-token")
    ├── platform:       PlatformClient wired to fake_platform
    ├── caller:         Caller for that user
    ├── sample_image_bytes
    └── test_client:    AsyncClient → ASGITransport → create_app(...)
"""

import json
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set before the app package reads its configuration
os.environ["LOG_LEVEL"] = "WARNING"

from companion_api.config import Settings  # noqa: E402
from companion_api.main import create_app  # noqa: E402
from companion_api.platform import PlatformClient  # noqa: E402
from companion_api.schemas.caller import Caller  # noqa: E402

BASE_URL = "https://platform.test"
SERVICE_KEY = "service-key"
ANON_KEY = "anon-key"
USER_ID = "11111111-1111-1111-1111-111111111111"
USER_TOKEN = "user-token"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"
OTHER_TOKEN = "other-token"

OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _json(status: int, body: Any = None) -> httpx.Response:
    if body is None:
        return httpx.Response(status)
    return httpx.Response(status, json=body)


def _no_rows() -> httpx.Response:
    return _json(406, {
        "code": "PGRST116",
        "details": "The result contains 0 rows",
        "hint": None,
        "message": "JSON object requested, multiple (or no) rows returned",
    })


class FakePlatform:
    """
    In-memory auth + record store + object storage.

    Seeding:
        fake.tables["user_banners"].append({...})
        fake.buckets.add("banners")
        fake.rpcs["get_user_matches_with_details"] = lambda params: [...]
    Failure injection (persistent until the test ends):
        fake.fail("POST", "/rest/v1/user_banners", message="boom")
    Inspection:
        fake.requests   every httpx.Request received
        fake.objects    {(bucket, key): (content, content_type)}
    """

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.buckets = {"avatars", "banners", "profile-pics", "companion-images"}
        self.objects: Dict[Tuple[str, str], Tuple[bytes, str]] = {}
        self.rpcs: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self.missing_rpcs: set = set()
        self.requests: List[httpx.Request] = []
        self._failures: List[Tuple[str, str, int, Dict[str, Any]]] = []

    # ── Test helpers ──────────────────────────────────────────────────────

    def add_user(self, token: str, user_id: str, email: Optional[str] = None) -> None:
        self.users[token] = {"id": user_id, "email": email, "aud": "authenticated"}

    def table(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(name, [])

    def fail(self, method: str, path_prefix: str, status: int = 400, message: str = "boom", code: str = "XX000"):
        self._failures.append((method, path_prefix, status, {"message": message, "code": code}))

    def requests_to(self, method: str, path_prefix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(path_prefix)]

    def keys_in(self, bucket: str) -> List[str]:
        return sorted(key for (b, key) in self.objects if b == bucket)

    # ── Transport entry point ─────────────────────────────────────────────

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = unquote(request.url.path)

        for method, prefix, status, body in self._failures:
            if request.method == method and path.startswith(prefix):
                return _json(status, body)

        if path == "/auth/v1/user":
            return self._auth(request)
        if path.startswith("/rest/v1/rpc/"):
            return self._rpc(path[len("/rest/v1/rpc/"):], request)
        if path.startswith("/rest/v1/"):
            return self._records(path[len("/rest/v1/"):], request)
        if path == "/storage/v1/bucket":
            return self._bucket(request)
        if path.startswith("/storage/v1/object/"):
            return self._object(path[len("/storage/v1/object/"):], request)
        return _json(404, {"message": f"no route {path}"})

    # ── Auth ──────────────────────────────────────────────────────────────

    def _auth(self, request: httpx.Request) -> httpx.Response:
        token = request.headers.get("Authorization", "").replace("Bearer ", "", 1)
        user = self.users.get(token)
        if user is None:
            return _json(401, {"code": 401, "msg": "invalid JWT: unable to parse or verify signature"})
        return _json(200, user)

    # ── Records ───────────────────────────────────────────────────────────

    @staticmethod
    def _filters(request: httpx.Request) -> List[Tuple[str, str]]:
        reserved = {"select", "order", "limit", "offset", "on_conflict"}
        return [
            (column, value[len("eq."):])
            for column, value in request.url.params.multi_items()
            if column not in reserved and value.startswith("eq.")
        ]

    @staticmethod
    def _matches(row: Dict[str, Any], filters: List[Tuple[str, str]]) -> bool:
        return all(_literal(row.get(column)) == value for column, value in filters)

    def _records(self, table: str, request: httpx.Request) -> httpx.Response:
        rows = self.table(table)
        filters = self._filters(request)
        wants_object = request.headers.get("Accept") == OBJECT_ACCEPT
        params = request.url.params

        if request.method == "GET":
            found = [dict(r) for r in rows if self._matches(r, filters)]
            order = params.get("order")
            if order:
                column, _, direction = order.partition(".")
                present = [r for r in found if r.get(column) is not None]
                absent = [r for r in found if r.get(column) is None]
                present.sort(key=lambda r: r[column], reverse=direction == "desc")
                found = present + absent
            offset = int(params.get("offset", 0))
            found = found[offset:]
            if "limit" in params:
                found = found[: int(params["limit"])]
            if wants_object:
                return _json(200, found[0]) if len(found) == 1 else _no_rows()
            return _json(200, found)

        if request.method == "POST":
            body = json.loads(request.content)
            on_conflict = params.get("on_conflict")
            inserted = []
            for new in body:
                if on_conflict:
                    existing = next((r for r in rows if r.get(on_conflict) == new.get(on_conflict)), None)
                    if existing is not None:
                        existing.update(new)
                        continue
                row = {"id": str(uuid.uuid4()), "created_at": datetime.now(timezone.utc).isoformat(), **new}
                rows.append(row)
                inserted.append(row)
            if wants_object:
                return _json(201, inserted[0])
            return _json(201)

        if request.method == "PATCH":
            values = json.loads(request.content)
            matched = [r for r in rows if self._matches(r, filters)]
            if wants_object and len(matched) != 1:
                return _no_rows()
            for row in matched:
                row.update(values)
            if wants_object:
                return _json(200, dict(matched[0]))
            return _json(204)

        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if not self._matches(r, filters)]
            return _json(204)

        return _json(405, {"message": "method not supported"})

    def _rpc(self, function: str, request: httpx.Request) -> httpx.Response:
        params = json.loads(request.content or b"{}")
        if function in self.rpcs:
            return _json(200, self.rpcs[function](params))
        if function.startswith("create_table_") and function not in self.missing_rpcs:
            return _json(200, False)
        return _json(404, {
            "code": "PGRST202",
            "message": f"Could not find the function public.{function} without parameters in the schema cache",
        })

    # ── Storage ───────────────────────────────────────────────────────────

    def _bucket(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return _json(200, [{"id": b, "name": b, "public": True} for b in sorted(self.buckets)])
        body = json.loads(request.content)
        if body["id"] in self.buckets:
            return _json(400, {"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"})
        self.buckets.add(body["id"])
        return _json(200, {"name": body["id"]})

    def _object(self, rest: str, request: httpx.Request) -> httpx.Response:
        bucket, _, key = rest.partition("/")
        if bucket not in self.buckets:
            return _json(400, {"statusCode": "404", "error": "Bucket not found", "message": "Bucket not found"})

        if request.method == "POST":
            if (bucket, key) in self.objects:
                return _json(400, {"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"})
            self.objects[(bucket, key)] = (request.content, request.headers.get("Content-Type", ""))
            return _json(200, {"Key": f"{bucket}/{key}"})

        if request.method == "DELETE":
            removed = []
            for prefix in json.loads(request.content).get("prefixes", []):
                if self.objects.pop((bucket, prefix), None) is not None:
                    removed.append({"name": prefix})
            return _json(200, removed)

        return _json(405, {"message": "method not supported"})


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        supabase_url=BASE_URL,
        supabase_service_role_key=SERVICE_KEY,
        supabase_anon_key=ANON_KEY,
        log_level="WARNING",
    )


@pytest.fixture
def fake_platform():
    fake = FakePlatform()
    fake.add_user(USER_TOKEN, USER_ID, email="user@example.com")
    fake.add_user(OTHER_TOKEN, OTHER_USER_ID, email="other@example.com")
    return fake


@pytest.fixture
def platform(settings, fake_platform):
    return PlatformClient(settings, transport=httpx.MockTransport(fake_platform))


@pytest.fixture
def caller():
    return Caller(id=USER_ID, email="user@example.com", token=USER_TOKEN)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {USER_TOKEN}"}


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG the MIME layer cares about: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def app(settings, fake_platform):
    return create_app(settings, transport=httpx.MockTransport(fake_platform))


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
