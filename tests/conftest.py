"""Shared fixtures for remindme tests."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from channels.base import NotificationSink
from errors import NotifyError

T0 = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture()
async def db(tmp_path):
    """Fresh SQLite database in a temp directory."""
    import storage.db_config as db_config

    await db_config.init_db(str(tmp_path / "data" / "test.db"))
    yield db_config.conn
    await db_config.close_db()


@dataclass
class Sent:
    content: str
    recipients: list[str]
    reply_to: str | None


@dataclass
class FakeSink(NotificationSink):
    sent: list[Sent] = field(default_factory=list)
    fail_reply_to: set[str] = field(default_factory=set)
    fail_all: bool = False

    async def publish(self, content, recipients, reply_to=None):
        if self.fail_all or reply_to in self.fail_reply_to:
            raise NotifyError(f"publish to {reply_to} failed")
        self.sent.append(Sent(content, list(recipients), reply_to))

    def mention(self, identity):
        return f"<{identity}>"


@pytest.fixture()
def sink():
    return FakeSink()


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FixedClock(T0)
