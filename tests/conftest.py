from datetime import date, datetime, timedelta, timezone

import pytest

from tracker.config import reset_config
from tracker.forms import validate_form
from tracker.notifier import NotificationResult
from tracker.state import ApplicationState
from tracker.store import ApplicationStore, LocalStorage


class FakeClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self, start=datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


class RecordingNotifier:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def notify(self, previous, updated):
        self.calls.append((previous, updated))
        if self.error is not None:
            raise self.error
        return NotificationResult(sent=True, message="sent", recipient=updated.contact_email)


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "data")


@pytest.fixture
def store(storage):
    return ApplicationStore(storage)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def state(store, notifier, clock):
    state = ApplicationState(store, notifier=notifier, clock=clock)
    state.load()
    return state


@pytest.fixture
def make_draft():
    def _make(**overrides):
        values = {
            "company_name": "Acme",
            "job_title": "Engineer",
            "applied_at": date(2026, 10, 1).isoformat(),
            "status": "new",
        }
        values.update(overrides)
        result = validate_form(values)
        assert result.ok, result.errors
        return result.draft

    return _make
