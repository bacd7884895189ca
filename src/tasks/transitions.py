"""Mutation orchestration rules

ユーザー操作 (カレンダーへのドラッグ、フレキシブル枠への移動、タスクリストへの
戻し、taskify、完了切り替えなど) から、適用すべきフィールド差分を計算します。

各関数は純粋関数で、現在のTaskを受け取りdictの差分を返すだけです。
永続化と不変条件の最終適用は TaskRepository / state.merge_changes が行います。
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date as date_type
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .exceptions import InvalidTransitionError, TaskValidationError
from .models import LogEntry, Task, TaskType, dump_logs
from .nlp import capitalize_first, tidy_text
from .state import DEFAULT_DURATION_MINUTES, TaskMode, coerce_category, derive_mode
from .timeutils import add_minutes, is_valid_date, is_valid_time, today_iso

TEMPORAL_QUALIFIERS = (
    "sometime today",
    "sometime",
    "next week",
    "this week",
    "tomorrow",
    "today",
)
_QUALIFIER_PATTERNS = tuple(
    re.compile(r"\b" + r"\s+".join(map(re.escape, phrase.split())) + r"\b", re.IGNORECASE)
    for phrase in TEMPORAL_QUALIFIERS
)

DEFAULT_TIME_SLOT = "09:00"


class Operation(str, Enum):
    SCHEDULE_AT_SLOT = "schedule_at_slot"
    MOVE_TO_FLEXIBLE = "move_to_flexible"
    MOVE_TO_TASK_LIST = "move_to_task_list"
    UNSCHEDULE = "unschedule"
    TASKIFY = "taskify"
    MOVE_TO_BACKLOG = "move_to_backlog"
    RESTORE_FROM_BACKLOG = "restore_from_backlog"
    SET_COMPLETED = "set_completed"
    APPEND_LOG = "append_log"


def strip_temporal_qualifiers(title: str) -> str:
    """Remove "tomorrow", "sometime today" and similar words from an event title.

    >>> strip_temporal_qualifiers("sometime today call mom")
    'Call mom'
    """
    for pattern in _QUALIFIER_PATTERNS:
        title = pattern.sub("", title)
    return capitalize_first(tidy_text(title))


def _reject_note(task: Task, action: str) -> TaskMode:
    mode = derive_mode(task)
    if mode is TaskMode.NOTE:
        raise InvalidTransitionError(f"Notes cannot be {action}; taskify the note first")
    return mode


def _require_time(value: str) -> str:
    if not is_valid_time(value):
        raise TaskValidationError(f"Invalid time (expected HH:MM): {value}")
    return value


def _require_date(value: str) -> str:
    if not is_valid_date(value):
        raise TaskValidationError(f"Invalid date (expected YYYY-MM-DD): {value}")
    return value


def schedule_at_slot(
    task: Task,
    start_time: str,
    date: Optional[str] = None,
    end_time: Optional[str] = None,
    today: Optional[date_type] = None,
) -> Dict[str, Any]:
    """固定時間枠へのスケジュール (Task/Flexible/Scheduled → Scheduled)

    日付は 引数 → 既存の日付 → 今日 の順で決定。終了時刻が無ければ開始+1時間。
    既にイベントだったレコードはタイトルから時間表現を取り除く。
    """
    mode = _reject_note(task, "scheduled")
    start_time = _require_time(start_time)
    if end_time is not None:
        _require_time(end_time)
    target_date = _require_date(date) if date else (task.date or today_iso(today))

    changes: Dict[str, Any] = {
        "date": target_date,
        "start_time": start_time,
        "end_time": end_time or add_minutes(start_time, DEFAULT_DURATION_MINUTES),
        "is_all_day": False,
    }
    if mode.is_event:
        rewritten = strip_temporal_qualifiers(task.title)
        if rewritten and rewritten != task.title:
            changes["title"] = rewritten
    return changes


def move_to_flexible(
    task: Task,
    date: Optional[str] = None,
    today: Optional[date_type] = None,
) -> Dict[str, Any]:
    """「いつか」枠への移動 (Task/Scheduled → Flexible)"""
    _reject_note(task, "scheduled")
    target_date = _require_date(date) if date else (task.date or today_iso(today))
    return {
        "date": target_date,
        "start_time": None,
        "end_time": None,
        "is_all_day": True,
    }


def _calendar_cleared() -> Dict[str, Any]:
    return {
        "date": None,
        "start_time": None,
        "end_time": None,
        "is_all_day": False,
        "location": None,
    }


def move_to_task_list(task: Task, category: Any) -> Dict[str, Any]:
    """Drop onto a life-area task list: recategorize and take off the calendar."""
    _reject_note(task, "moved to a task list")
    changes = {"category": coerce_category(category)}
    changes.update(_calendar_cleared())
    return changes


def unschedule(task: Task) -> Dict[str, Any]:
    """Remove an event from the calendar, keeping its category."""
    mode = _reject_note(task, "unscheduled")
    if not mode.is_event:
        raise InvalidTransitionError("Only calendar events can be unscheduled")
    return _calendar_cleared()


def taskify(task: Task) -> Dict[str, Any]:
    if task.type is not TaskType.NOTE:
        raise InvalidTransitionError("Only notes can be taskified")
    return {"type": TaskType.TASK}


def move_to_backlog(task: Task) -> Dict[str, Any]:
    _reject_note(task, "moved to the backlog")
    if task.date is not None:
        raise InvalidTransitionError("Scheduled tasks cannot be moved to the backlog")
    return {"is_backlog": True}


def restore_from_backlog(task: Task) -> Dict[str, Any]:
    _reject_note(task, "restored from the backlog")
    return {"is_backlog": False}


def set_completed(task: Task, completed: bool) -> Dict[str, Any]:
    """完了フラグの変更。completed_at は保存時の完了ルールで設定される。"""
    return {"completed": bool(completed)}


def append_log(task: Task, content: str, now: str) -> Dict[str, Any]:
    content = (content or "").strip()
    if not content:
        raise TaskValidationError("Log content is required")
    logs = task.logs
    logs.append(LogEntry(timestamp=now, content=content))
    return {"logs_json": dump_logs(logs)}


OPERATIONS: Dict[Operation, Callable[..., Dict[str, Any]]] = {
    Operation.SCHEDULE_AT_SLOT: schedule_at_slot,
    Operation.MOVE_TO_FLEXIBLE: move_to_flexible,
    Operation.MOVE_TO_TASK_LIST: move_to_task_list,
    Operation.UNSCHEDULE: unschedule,
    Operation.TASKIFY: taskify,
    Operation.MOVE_TO_BACKLOG: move_to_backlog,
    Operation.RESTORE_FROM_BACKLOG: restore_from_backlog,
    Operation.SET_COMPLETED: set_completed,
    Operation.APPEND_LOG: append_log,
}


# --- drag and drop zones -----------------------------------------------------

TASK_LIST_PREFIX = "tasks-"
CALENDAR_SLOT_PREFIX = "calendar-"
DAY_PREFIX = "day-"
FLEXIBLE_EVENTS_ZONE = "flexible-time-events"
FLEXIBLE_DROP_ZONE = "convert-to-flexible-time"
CURRENT_TASKS_ZONE = "current-tasks"
BACKLOG_TASKS_ZONE = "backlog-tasks"


@dataclass(frozen=True)
class DropAction:
    """Named operation plus its arguments, produced by :func:`resolve_drop`."""

    operation: Operation
    kwargs: Dict[str, Any] = field(default_factory=dict)


def _is_calendar_source(zone: str) -> bool:
    return (
        zone.startswith(DAY_PREFIX)
        or zone.startswith(CALENDAR_SLOT_PREFIX)
        or zone == FLEXIBLE_EVENTS_ZONE
    )


def resolve_drop(
    source: str,
    destination: Optional[str],
    selected_date: Optional[str] = None,
    default_time_slot: str = DEFAULT_TIME_SLOT,
) -> Optional[DropAction]:
    """ドラッグ元/ドロップ先のゾーンIDから実行すべき操作を決定する

    Args:
        source: ドラッグ元ゾーン (例: "tasks-fitness", "calendar-09:00")
        destination: ドロップ先ゾーン。キャンセル時はNone
        selected_date: 日ビューで表示中の日付
        default_time_slot: 週ビューの日付セルにドロップした時の開始時刻

    Returns:
        DropAction、対応する操作が無い場合はNone (同一ゾーン内の並べ替えを含む)
    """
    if not destination or destination == source:
        return None

    from_task_list = source.startswith(TASK_LIST_PREFIX)
    if destination == FLEXIBLE_DROP_ZONE and from_task_list:
        kwargs = {"date": selected_date} if selected_date else {}
        return DropAction(Operation.MOVE_TO_FLEXIBLE, kwargs)
    if destination.startswith(DAY_PREFIX) and from_task_list:
        return DropAction(
            Operation.SCHEDULE_AT_SLOT,
            {"start_time": default_time_slot, "date": destination[len(DAY_PREFIX):]},
        )
    if destination.startswith(CALENDAR_SLOT_PREFIX):
        slot = destination[len(CALENDAR_SLOT_PREFIX):]
        if from_task_list:
            kwargs = {"start_time": slot}
            if selected_date:
                kwargs["date"] = selected_date
            return DropAction(Operation.SCHEDULE_AT_SLOT, kwargs)
        if source == FLEXIBLE_EVENTS_ZONE or source.startswith(CALENDAR_SLOT_PREFIX):
            return DropAction(Operation.SCHEDULE_AT_SLOT, {"start_time": slot})
    if destination == FLEXIBLE_DROP_ZONE and source.startswith(CALENDAR_SLOT_PREFIX):
        return DropAction(Operation.MOVE_TO_FLEXIBLE)
    if destination.startswith(TASK_LIST_PREFIX) and _is_calendar_source(source):
        return DropAction(
            Operation.MOVE_TO_TASK_LIST,
            {"category": destination[len(TASK_LIST_PREFIX):]},
        )
    if source == CURRENT_TASKS_ZONE and destination == BACKLOG_TASKS_ZONE:
        return DropAction(Operation.MOVE_TO_BACKLOG)
    if source == BACKLOG_TASKS_ZONE and destination == CURRENT_TASKS_ZONE:
        return DropAction(Operation.RESTORE_FROM_BACKLOG)
    return None
