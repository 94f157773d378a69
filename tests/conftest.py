import os
import sys
from datetime import datetime

import pytest
import pytest_asyncio

# Корень репозитория в PYTHONPATH, чтобы 'import trainboard...' работал
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Тестовое окружение: in-memory SQLite, memory push, noop feed
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PUSH_BACKEND", "memory")
os.environ.setdefault("FEED_PROVIDER", "noop")

from trainboard.core.push import reset_push_bus  # noqa: E402
from trainboard.core.schedule.schemas import Event  # noqa: E402
from trainboard.db.base import create_db_and_tables, drop_db_and_tables  # noqa: E402
from trainboard.workers.tasks import celery_app  # noqa: E402

celery_app.conf.task_always_eager = True
celery_app.conf.task_eager_propagates = True

# Понедельник 19.10.2026, 09:00
MONDAY = datetime(2026, 10, 19, 9, 0)


@pytest.fixture
def now() -> datetime:
    return MONDAY


@pytest.fixture
def make_event():
    """Event factory dated on the test Monday unless told otherwise."""
    def _make(**fields) -> Event:
        fields.setdefault("date", MONDAY.date())
        fields.setdefault("line", "S1")
        fields.setdefault("destination", "Herrenberg")
        return Event(**fields)
    return _make


@pytest_asyncio.fixture
async def db():
    await create_db_and_tables()
    yield
    await drop_db_and_tables()


@pytest.fixture(autouse=True)
def fresh_push_bus():
    reset_push_bus()
    yield
    reset_push_bus()
