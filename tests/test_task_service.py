"""TaskService のテスト (クイック追加・操作・ロールバック)"""

from datetime import date

import pytest

from src.tasks import (
    InvalidTransitionError,
    Operation,
    TaskMode,
    TaskNotFoundError,
    TaskRepository,
    TaskService,
    TaskValidationError,
)


@pytest.fixture
def service(tmp_path):
    repo = TaskRepository(db_path=tmp_path / "service.db")
    return TaskService(repo, today=lambda: date(2026, 10, 21))


def test_quick_add_creates_scheduled_event(service):
    task = service.quick_add("Lunch tomorrow at 1pm", "family")

    assert task.title == "Lunch"
    assert task.date == "2026-10-22"
    assert task.start_time == "13:00"
    assert task.end_time == "14:00"
    assert task.is_all_day is False
    assert service.get(task.id) == task


def test_quick_add_team_sync(service):
    task = service.quick_add("Team sync tomorrow at 10am", "fulfillment")

    assert task.title == "Team sync"
    assert task.category.value == "fulfillment"
    assert task.date == "2026-10-22"
    assert task.start_time == "10:00"
    assert task.end_time == "11:00"
    assert task.is_all_day is False


def test_quick_add_with_date_only_creates_flexible_event(service):
    task = service.quick_add("Dinner at Olive Garden tomorrow", "family")

    assert task.title == "Dinner"
    assert task.location == "Olive Garden"
    assert task.is_all_day is True
    assert task.start_time is None


def test_quick_add_plain_title_creates_task(service):
    task = service.quick_add("buy milk", "finance")

    assert task.title == "Buy milk"
    assert task.date is None
    assert task.is_backlog is False


def test_quick_add_time_without_date_is_dropped(service):
    task = service.quick_add("Call plumber at 3pm", "fortress")

    assert task.date is None
    assert task.start_time is None
    assert task.end_time is None


def test_quick_add_from_calendar_uses_selected_date(service):
    flexible = service.quick_add("Stretch", "fitness", "calendar", selected_date="2026-10-25")
    assert flexible.date == "2026-10-25"
    assert flexible.is_all_day is True

    slotted = service.quick_add(
        "Stretch", "fitness", "calendar", selected_date="2026-10-25", start_time="07:00"
    )
    assert slotted.start_time == "07:00"
    assert slotted.end_time == "08:00"

    # タイトル中の日付が優先される
    parsed_date = service.quick_add("Yoga friday", "fitness", "calendar", selected_date="2026-10-25")
    assert parsed_date.date == "2026-10-23"


def test_quick_add_from_task_list_ignores_selected_date(service):
    task = service.quick_add("Stretch", "fitness", "task", selected_date="2026-10-25")

    assert task.date is None


def test_quick_add_from_backlog(service):
    undated = service.quick_add("Learn piano", "fulfillment", "backlog")
    assert undated.is_backlog is True

    dated = service.quick_add("Piano lesson tomorrow", "fulfillment", "backlog")
    assert dated.is_backlog is False
    assert dated.date == "2026-10-22"


def test_quick_add_keeps_raw_title_when_parse_consumes_everything(service):
    task = service.quick_add("  tomorrow ", "frivolous")

    assert task.title == "tomorrow"
    assert task.date == "2026-10-22"


def test_quick_add_validation(service):
    with pytest.raises(TaskValidationError):
        service.quick_add("   ", "family")
    with pytest.raises(TaskValidationError):
        service.quick_add("Lunch", None)
    with pytest.raises(ValueError):
        service.quick_add("Lunch", "family", "sidebar")
    assert service.list() == []


def test_named_operations_report_previous_snapshot(service):
    task = service.quick_add("Go for a run", "fitness")

    outcome = service.schedule_at_slot(task.id, "07:00")

    assert outcome.operation == "schedule_at_slot"
    assert outcome.mode is TaskMode.SCHEDULED_EVENT
    assert outcome.previous == task
    assert outcome.task.date == "2026-10-21"

    outcome = service.move_to_flexible(outcome.task.id)
    assert outcome.mode is TaskMode.FLEXIBLE_EVENT

    outcome = service.unschedule(task.id)
    assert outcome.mode is TaskMode.TASK


def test_operations_on_missing_task_return_none(service):
    assert service.set_completed("missing", True) is None
    assert service.toggle_completed("missing") is None
    assert service.update("missing", {"title": "x"}) is None
    assert service.delete("missing") is False


def test_require_raises_for_missing_task(service):
    task = service.quick_add("Pay rent", "finance")
    assert service.require(task.id) == task

    with pytest.raises(TaskNotFoundError) as exc_info:
        service.require("missing")
    assert exc_info.value.task_id == "missing"
    assert str(exc_info.value) == "Task missing not found."


def test_invalid_transition_propagates(service):
    task = service.quick_add("Go for a run", "fitness")

    with pytest.raises(InvalidTransitionError):
        service.taskify(task.id)
    with pytest.raises(InvalidTransitionError):
        service.unschedule(task.id)


def test_note_lifecycle(service):
    note = service.create_note("Trip ideas", "frivolous", notes="<ul><li>Kyoto</li></ul>")
    assert service.list_by_mode(TaskMode.NOTE) == [note]

    with pytest.raises(InvalidTransitionError):
        service.schedule_at_slot(note.id, "10:00")

    outcome = service.taskify(note.id)
    assert outcome.mode is TaskMode.TASK
    assert outcome.task.notes == "<ul><li>Kyoto</li></ul>"

    assert service.delete(note.id) is True
    assert service.get(note.id) is None


def test_toggle_completed_and_archive(service):
    first = service.quick_add("Pay rent", "finance")
    second = service.quick_add("Call mom", "family")

    done_first = service.toggle_completed(first.id)
    done_second = service.toggle_completed(second.id)
    assert done_first.task.completed_at is not None

    archived = service.list_completed()
    assert [task.id for task in archived] == [second.id, first.id]
    assert done_second.task.completed_at >= done_first.task.completed_at

    reopened = service.toggle_completed(first.id)
    assert reopened.task.completed is False
    assert reopened.task.completed_at is None
    assert [task.id for task in service.list_completed()] == [second.id]


def test_append_log(service):
    task = service.quick_add("Read book for 1 hour", "fulfillment")

    service.append_log(task.id, "Chapter 1")
    outcome = service.append_log(task.id, "Chapter 2")

    assert [entry.content for entry in outcome.task.logs] == ["Chapter 1", "Chapter 2"]


def test_apply_accepts_operation_names(service):
    task = service.quick_add("Tidy garage", "fortress")

    outcome = service.apply(task.id, "move_to_backlog")
    assert outcome.mode is TaskMode.BACKLOG_TASK

    outcome = service.apply(task.id, Operation.RESTORE_FROM_BACKLOG)
    assert outcome.mode is TaskMode.TASK


def test_handle_drop(service):
    task = service.quick_add("Go for a run", "fitness")

    outcome = service.handle_drop(task.id, "tasks-fitness", "calendar-06:00", "2026-10-24")
    assert outcome.task.date == "2026-10-24"
    assert outcome.task.start_time == "06:00"

    outcome = service.handle_drop(task.id, "calendar-06:00", "tasks-family")
    assert outcome.mode is TaskMode.TASK
    assert outcome.task.category.value == "family"

    assert service.handle_drop(task.id, "tasks-family", None) is None


def test_revert_restores_previous_state(service):
    task = service.quick_add("Go for a run", "fitness")
    outcome = service.schedule_at_slot(task.id, "07:00", date="2026-10-22")

    restored = service.revert(outcome)

    assert restored == task
    assert service.get(task.id) == task


def test_seed_samples(service):
    created = service.seed_samples()

    assert len(created) == 7
    assert all(task.completed is False for task in created)
