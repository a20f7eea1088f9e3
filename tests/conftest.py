"""
Test configuration and fixtures.

Provides:
- A fresh SQLite database (aiosqlite) per test
- A fixed clock in the business timezone and a recording notifier
- HTTPX AsyncClient wired to the app with the test database
"""
import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./unused-test.db")
os.environ.setdefault("BUSINESS_TIMEZONE", "Asia/Kolkata")
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from app.core.clock import Clock
from app.core.db import get_session, init_db, make_session_maker
from app.core.errors import NotificationError
from app.main import app
from app.services.command_service import CommandInterpreter
from app.services.reminder_scheduler import ReminderScheduler

TZ = "Asia/Kolkata"
# A Monday, before opening time
NOW = datetime(2026, 10, 19, 10, 0, tzinfo=ZoneInfo(TZ))


class FixedClock(Clock):
    def __init__(self, now: datetime) -> None:
        super().__init__(TZ)
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs) -> None:
        self._now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send(self, to_address: str, body: str) -> bool:
        self.sent.append((to_address, body))
        if self.fail:
            raise NotificationError("gateway down")
        return True


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return make_session_maker(engine)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def scheduler(notifier, clock, session_maker):
    s = ReminderScheduler(notifier, clock, session_maker)
    yield s
    s.shutdown()


@pytest.fixture
def interpreter(scheduler, clock) -> CommandInterpreter:
    return CommandInterpreter(scheduler, clock)


@pytest.fixture
async def client(session_maker, clock, scheduler, interpreter) -> AsyncGenerator[AsyncClient, None]:
    async def _get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    app.state.clock = clock
    app.state.scheduler = scheduler
    app.state.interpreter = interpreter
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
