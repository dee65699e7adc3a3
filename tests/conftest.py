"""Pytest fixtures: in-memory SQLite, stubbed backend (httpx.MockTransport), test client."""
import os

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel

# Must be set before bytesme is imported (settings and engine are module-level)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("API_BASE_URL", "http://backend.test")
os.environ.setdefault("LOCALE", "vi")
os.environ.setdefault("DELIVERY_FEE", "20000")

from bytesme.api.deps import get_backend
from bytesme.core.database import engine, init_db
from bytesme.core.storage import KeyValueStore
from bytesme.main import app
from bytesme.schemas import Voucher
from bytesme.services.backend import BackendClient


class BackendStub:
    """Canned answers per (method, path); every request is recorded."""

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, object]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, json: object = None) -> None:
        self.routes[(method, path)] = (status, json)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(
            (request.method, request.url.path), (404, {"message": "Not found"})
        )
        return httpx.Response(status, json=body)


@pytest.fixture(autouse=True)
def _fresh_db():
    init_db()
    yield
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def kv() -> KeyValueStore:
    return KeyValueStore(engine)


@pytest.fixture
def backend_stub() -> BackendStub:
    return BackendStub()


@pytest.fixture
def backend(backend_stub):
    client = BackendClient(
        base_url="http://backend.test",
        token="test-token",
        transport=httpx.MockTransport(backend_stub),
    )
    yield client
    client.close()


@pytest.fixture
def client(backend):
    app.dependency_overrides[get_backend] = lambda: backend
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_voucher():
    def _make(**overrides) -> Voucher:
        data = {
            "voucher_id": 1,
            "code": "SAVE10",
            "voucher_name": "10% off",
            "voucher_type": "percentage",
            "voucher_value": 10,
        }
        data.update(overrides)
        return Voucher.model_validate(data)

    return _make
