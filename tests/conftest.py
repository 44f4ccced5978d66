import pytest
from httpx import ASGITransport, AsyncClient

from wedding_api.config import Settings, get_settings
from wedding_api.main import app
from wedding_api.services.visitor_store import FileVisitorStore, get_visitor_store

ADMIN_PASSWORD = "test-admin-secret"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        deployment_mode="local",
        storage_backend="file",
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def file_store(tmp_path):
    return FileVisitorStore(tmp_path / "visitors.json", capacity=500)


@pytest.fixture
def store(file_store):
    return file_store


@pytest.fixture
def transport(settings, store):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_visitor_store] = lambda: store
    yield ASGITransport(app=app)
    app.dependency_overrides.clear()


@pytest.fixture
async def client(transport):
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {ADMIN_PASSWORD}"}


class FakeRedis:
    """In-memory stand-in for the async redis client"""

    def __init__(self, fail: bool = False) -> None:
        self.data = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            from redis.exceptions import ConnectionError

            raise ConnectionError("redis down")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = value

    async def delete(self, key):
        self._check()
        self.data.pop(key, None)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    return FakeRedis(fail=True)
