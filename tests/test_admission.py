"""Tests for core/admission.py: deciding whether a reply becomes a reminder."""

from datetime import timedelta

import pytest

import storage.reminder as reminder_storage
from core.admission import Admission, RequestMatcher
from datamodel import OutcomeKind
from errors import StoreError
from conftest import T0


@pytest.fixture()
def admission(clock):
    return Admission(RequestMatcher(address="@bot"), clock=clock)


async def _admit(admission, content="@bot in 1 day", target="N1", requester="U1", request_time=T0):
    return await admission.admit(requester, target, request_time, content)


# --- RequestMatcher ---


def test_matcher_extracts_duration():
    matcher = RequestMatcher(address="@bot")

    assert matcher.extract("@bot in 3 days") == "3 days"
    assert matcher.extract("hey @bot in 2hours please") == "2hours"
    assert matcher.extract("@BOT In 10 minutes") == "10 minutes"


def test_matcher_requires_address_before_in():
    matcher = RequestMatcher(address="@bot")

    assert matcher.extract("in 3 days") is None
    assert matcher.extract("@bot remind me in 3 days") is None
    assert matcher.extract("@otherbot in 3 days") is None
    assert matcher.extract("") is None
    assert matcher.extract(None) is None


def test_matcher_without_address():
    matcher = RequestMatcher()

    assert matcher.extract("remind me in 3 days") == "3 days"
    assert matcher.extract("within 3 days") is None


def test_matcher_escapes_address():
    matcher = RequestMatcher(address="@b.t")

    assert matcher.extract("@bot in 1 day") is None
    assert matcher.extract("@b.t in 1 day") == "1 day"


def test_matcher_is_immutable():
    matcher = RequestMatcher(address="@bot")

    with pytest.raises(AttributeError):
        matcher.address = "@other"


# --- Admission ---


@pytest.mark.asyncio
async def test_admit_creates_reminder(db, admission, clock):
    outcome = await _admit(admission, request_time=T0 - timedelta(minutes=3))

    assert outcome.kind == OutcomeKind.CREATED
    assert outcome.remind_at == clock.now + timedelta(days=1)
    [due] = await reminder_storage.get_due_reminders(outcome.remind_at)
    assert due.target_id == "N1"
    assert due.requester_id == "U1"
    # created_at comes from the request message, remind_at from the clock
    assert due.created_at == T0 - timedelta(minutes=3)
    assert due.remind_at == T0 + timedelta(days=1)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    ["thanks!", "@bot in soon", "@bot in 3 fortnights", "@bot in 0 days", "remind me in 3 days"],
)
async def test_admit_ignores_non_requests(db, admission, content):
    outcome = await _admit(admission, content=content)

    assert outcome.kind == OutcomeKind.IGNORED
    assert not await reminder_storage.has_reminder("N1", "U1")


@pytest.mark.asyncio
async def test_admit_duplicate_is_silent_and_writes_nothing(db, admission):
    first = await _admit(admission)
    second = await _admit(admission, content="@bot in 2 hours")

    assert first.kind == OutcomeKind.CREATED
    assert second.kind == OutcomeKind.DUPLICATE
    count = await reminder_storage.count_recent_reminders("U1", T0 - timedelta(days=1))
    assert count == 1


@pytest.mark.asyncio
async def test_rate_limit_boundary(db, admission):
    for i in range(4):
        await reminder_storage.create_reminder(
            f"prior{i}", "U1", T0 - timedelta(minutes=10), T0 + timedelta(hours=1)
        )

    fifth = await _admit(admission, target="N5")
    sixth = await _admit(admission, target="N6")

    assert fifth.kind == OutcomeKind.CREATED
    assert sixth.kind == OutcomeKind.RATE_LIMITED
    assert not await reminder_storage.has_reminder("N6", "U1")


@pytest.mark.asyncio
async def test_rate_limit_ignores_old_reminders(db, admission):
    for i in range(5):
        await reminder_storage.create_reminder(
            f"old{i}", "U1", T0 - timedelta(minutes=61), T0 + timedelta(hours=1)
        )

    outcome = await _admit(admission)

    assert outcome.kind == OutcomeKind.CREATED


@pytest.mark.asyncio
async def test_rate_limit_is_per_requester(db, admission):
    for i in range(5):
        await reminder_storage.create_reminder(f"n{i}", "U2", T0, T0 + timedelta(hours=1))

    outcome = await _admit(admission, requester="U1")

    assert outcome.kind == OutcomeKind.CREATED


@pytest.mark.asyncio
async def test_rate_limit_is_configurable(db, clock):
    admission = Admission(RequestMatcher(address="@bot"), rate_limit_max=1, clock=clock)

    assert (await _admit(admission, target="N1")).kind == OutcomeKind.CREATED
    assert (await _admit(admission, target="N2")).kind == OutcomeKind.RATE_LIMITED


@pytest.mark.asyncio
async def test_store_error_becomes_error_outcome(db, admission, monkeypatch):
    async def broken(*args, **kwargs):
        raise StoreError("database is locked")

    monkeypatch.setattr(reminder_storage, "count_recent_reminders", broken)

    outcome = await _admit(admission)

    assert outcome.kind == OutcomeKind.ERROR
    assert isinstance(outcome.error, StoreError)


@pytest.mark.asyncio
async def test_unique_index_backs_up_duplicate_check(db, admission, monkeypatch):
    await _admit(admission)

    async def never_seen(*args, **kwargs):
        return False

    monkeypatch.setattr(reminder_storage, "has_reminder", never_seen)

    outcome = await _admit(admission)

    assert outcome.kind == OutcomeKind.ERROR
    count = await reminder_storage.count_recent_reminders("U1", T0 - timedelta(days=1))
    assert count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    ["@bot in 999999999 weeks", "@bot in 99999999999999999999999 days"],
)
async def test_admit_ignores_overflowing_duration(db, admission, content):
    outcome = await _admit(admission, content=content)

    assert outcome.kind == OutcomeKind.IGNORED
    assert not await reminder_storage.has_reminder("N1", "U1")


@pytest.mark.asyncio
async def test_admit_accepts_months(db, admission, clock):
    outcome = await _admit(admission, content="@bot in 1 month")

    assert outcome.kind == OutcomeKind.CREATED
    assert outcome.remind_at == clock.now + timedelta(seconds=2630016)
