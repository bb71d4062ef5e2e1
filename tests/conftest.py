import os
import tempfile
from typing import List, Tuple

# settings are read at import time, so the environment goes first
_TMP_DIR = tempfile.mkdtemp(prefix="crm-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/crm-test.db"
os.environ["CLIENT_THEME_FILE"] = os.path.join(_TMP_DIR, "theme")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx  # noqa: E402
import pytest  # noqa: E402

from crm.client.preferences import ThemePreference  # noqa: E402
from crm.client.store import CustomerStore  # noqa: E402
from tests.fakes import FakeCustomerAPI  # noqa: E402


@pytest.fixture
def fake_api() -> FakeCustomerAPI:
    return FakeCustomerAPI()


@pytest.fixture
def notifications() -> List[Tuple[str, str]]:
    return []


@pytest.fixture
def theme(tmp_path) -> ThemePreference:
    return ThemePreference(tmp_path / "theme")


@pytest.fixture
def store(fake_api, theme, notifications) -> CustomerStore:
    return CustomerStore(
        fake_api,
        theme,
        page_size=10,
        import_concurrency=3,
        notify=lambda level, message: notifications.append((level, message)),
    )


@pytest.fixture
async def db():
    from crm.storage.database import engine
    from crm.v1_0.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine


@pytest.fixture
async def http_client(db):
    from crm.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver/api") as client:
        yield client
