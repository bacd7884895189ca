"""QuickAddSession のテスト

デバウンス間隔を長くし、flush() で解析を即時実行して検証する。
"""

import threading
from datetime import date

import pytest

from src.planner import QuickAddConfig, QuickAddSession, describe_parse
from src.tasks import TaskMode, TaskRepository, TaskService, TaskValidationError, derive_mode
from src.tasks.nlp import parse_title


@pytest.fixture
def service(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "quick_add.db")
    return TaskService(repo, today=lambda: date(2026, 10, 21))


def make_session(service, source="task", **kwargs) -> QuickAddSession:
    config = QuickAddConfig(debounce_seconds=60, min_parse_length=4)
    return QuickAddSession(service, source, config=config, **kwargs)


def test_parse_fills_fields_but_keeps_title(service):
    session = make_session(service, preselected_category="family")

    session.on_title_change("Lunch tomorrow at 1pm at Cafe Rio")
    assert session.flush() is True

    assert session.form.title == "Lunch tomorrow at 1pm at Cafe Rio"
    assert session.form.start_time == "13:00"
    assert session.form.end_time == "14:00"
    assert session.form.location == "Cafe Rio"
    assert session.will_become_event is True
    assert "Date: 2026-10-22" in session.preview
    assert "Will become calendar event" in session.preview


def test_only_latest_title_is_parsed(service):
    session = make_session(service)

    session.on_title_change("Gym at 7am")
    session.on_title_change("Gym friday")
    session.flush()

    assert session.last_parsed.detected_date == "2026-10-23"
    assert session.last_parsed.detected_time is None
    assert session.flush() is False


def test_short_title_is_not_parsed(service):
    session = make_session(service)

    session.on_title_change("gym")
    session.flush()

    assert session.last_parsed is None
    assert session.preview == []
    assert session.will_become_event is False


def test_calendar_session_starts_with_slot(service):
    session = make_session(
        service, "calendar", selected_date="2026-10-24", initial_time_slot="15:00"
    )

    assert session.shows_calendar_fields is True
    assert session.will_become_event is True
    assert session.form.date == "2026-10-24"
    assert session.form.start_time == "15:00"
    assert session.form.end_time == "16:00"


def test_set_start_time_fills_end_time(service):
    session = make_session(service, "calendar")

    session.set_start_time("22:30")

    assert session.form.end_time == "23:30"


def test_submit_requires_title_and_category(service):
    session = make_session(service)
    session.on_title_change("Lunch tomorrow")

    with pytest.raises(TaskValidationError):
        session.submit()
    assert service.list() == []


def test_submit_creates_event_and_resets_form(service):
    session = make_session(service, preselected_category="family")
    session.on_title_change("Lunch tomorrow at 1pm")

    created = session.submit()

    assert created.title == "Lunch"
    assert derive_mode(created) is TaskMode.SCHEDULED_EVENT
    assert created.start_time == "13:00"
    assert session.form.title == ""
    assert session.form.category == "family"
    assert session.preview == []


def test_submit_from_calendar_slot(service):
    session = make_session(
        service,
        "calendar",
        selected_date="2026-10-24",
        initial_time_slot="15:00",
        preselected_category="fitness",
    )
    session.on_title_change("Swim")

    created = session.submit()

    assert created.date == "2026-10-24"
    assert created.start_time == "15:00"
    assert created.end_time == "16:00"


def test_unknown_source_is_rejected(service):
    with pytest.raises(ValueError):
        make_session(service, "sidebar")


def test_describe_parse():
    today = date(2026, 10, 21)

    assert describe_parse(parse_title("buy milk", today)) == []
    assert describe_parse(parse_title("Stretch", today), "calendar") == [
        'Will appear as "sometime" on the target date'
    ]
    assert describe_parse(parse_title("Meeting at 3:30 at the office", today)) == [
        "Time: 15:30-16:30",
        "Location: the office",
    ]


class BlockingParseService(TaskService):
    """最初の parse 呼び出しだけを release されるまで止めるサービス"""

    def __init__(self, repository, today):
        super().__init__(repository, today=today)
        self.entered = threading.Event()
        self.release = threading.Event()
        self._block_next = True

    def parse(self, title):
        if self._block_next:
            self._block_next = False
            self.entered.set()
            assert self.release.wait(5)
        return super().parse(title)


@pytest.fixture
def blocking_service(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "blocking.db")
    return BlockingParseService(repo, today=lambda: date(2026, 10, 21))


def start_blocked_parse(session, service, title):
    session.on_title_change(title)
    worker = threading.Thread(target=session.flush)
    worker.start()
    assert service.entered.wait(5)
    return worker


def test_in_flight_parse_is_dropped_after_newer_keystroke(blocking_service):
    session = make_session(blocking_service, preselected_category="family")
    worker = start_blocked_parse(session, blocking_service, "Dinner at Olive Garden")

    session.on_title_change("Dinner")
    blocking_service.release.set()
    worker.join(5)

    assert session.last_parsed is None
    assert session.form.location == ""
    assert session.form.title == "Dinner"

    session.flush()
    assert session.last_parsed.clean_title == "Dinner"
    assert session.last_parsed.detected_location is None


def test_in_flight_parse_does_not_leak_into_reset_form(blocking_service):
    session = make_session(blocking_service, preselected_category="family")
    worker = start_blocked_parse(session, blocking_service, "Dinner at Olive Garden")

    created = session.submit()
    blocking_service.release.set()
    worker.join(5)

    assert created.location == "Olive Garden"
    assert session.form.title == ""
    assert session.form.location == ""
    assert session.last_parsed is None
    assert session.preview == []


def test_in_flight_parse_does_not_leak_after_close(blocking_service):
    session = make_session(blocking_service)
    worker = start_blocked_parse(session, blocking_service, "Lunch tomorrow at 1pm")

    session.close()
    blocking_service.release.set()
    worker.join(5)

    assert session.form.start_time == ""
    assert session.last_parsed is None
