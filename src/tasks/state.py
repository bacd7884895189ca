"""Entity state model

表示モードはフィールドから導出する (保存される "mode" カラムは存在しない)。
このモジュールは以下を担当します。

  - derive_mode: レコード → TaskMode
  - normalize_schedule: date / start_time / end_time / is_all_day の整合性維持
  - build_new_task / merge_changes: 作成・更新時の検証と不変条件の適用

Related Classes: Task (models.py), TaskRepository (repository.py)
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .exceptions import TaskValidationError
from .models import LifeArea, Task, TaskType
from .timeutils import MINUTES_PER_DAY, add_minutes, is_valid_date, is_valid_time, parse_hhmm

DEFAULT_DURATION_MINUTES = 60

# 更新で変更可能なフィールド (id / created_at は不変)
MUTABLE_FIELDS = frozenset(
    {
        "title",
        "category",
        "type",
        "completed",
        "completed_at",
        "date",
        "start_time",
        "end_time",
        "is_all_day",
        "location",
        "notes",
        "logs_json",
        "is_backlog",
    }
)


class TaskMode(str, Enum):
    """Presentation mode derived from a record's fields."""

    NOTE = "note"
    TASK = "task"
    BACKLOG_TASK = "backlog_task"
    FLEXIBLE_EVENT = "flexible_event"
    SCHEDULED_EVENT = "scheduled_event"

    @property
    def is_event(self) -> bool:
        return self in (TaskMode.FLEXIBLE_EVENT, TaskMode.SCHEDULED_EVENT)


def derive_mode(task: Task) -> TaskMode:
    """Return the single mode that applies to ``task``.

    Notes ignore calendar fields. A dated record without a start time is
    treated as flexible even if ``is_all_day`` was not set.
    """
    if task.type is TaskType.NOTE:
        return TaskMode.NOTE
    if task.date is None:
        return TaskMode.BACKLOG_TASK if task.is_backlog else TaskMode.TASK
    if task.is_all_day or task.start_time is None:
        return TaskMode.FLEXIBLE_EVENT
    return TaskMode.SCHEDULED_EVENT


def coerce_category(value: Any) -> LifeArea:
    if isinstance(value, LifeArea):
        return value
    if value is None or not str(value).strip():
        raise TaskValidationError("Category is required")
    try:
        return LifeArea(str(value).strip().lower())
    except ValueError as exc:
        raise TaskValidationError(f"Unknown category: {value}") from exc


def coerce_type(value: Any) -> TaskType:
    if isinstance(value, TaskType):
        return value
    try:
        return TaskType(str(value).strip().lower())
    except ValueError as exc:
        raise TaskValidationError(f"Unknown type: {value}") from exc


def require_title(value: Any) -> str:
    title = value.strip() if isinstance(value, str) else ""
    if not title:
        raise TaskValidationError("Title is required")
    return title


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_schedule(
    date: Optional[str],
    start_time: Optional[str],
    end_time: Optional[str],
    all_day_requested: bool = False,
    duration_minutes: int = DEFAULT_DURATION_MINUTES,
) -> Dict[str, Any]:
    """カレンダー関連フィールドを不変条件に合わせて正規化する

    - date が無い → 時刻を消去し is_all_day=False
    - all_day_requested → 時刻を消去
    - 片方の時刻だけ指定 → もう片方を ±duration で補完
    - is_all_day は (date あり かつ 時刻なし) から再計算

    Raises:
        TaskValidationError: 日付/時刻の書式が不正な場合
    """
    date = _blank_to_none(date)
    start_time = _blank_to_none(start_time)
    end_time = _blank_to_none(end_time)

    if date is not None and not is_valid_date(date):
        raise TaskValidationError(f"Invalid date (expected YYYY-MM-DD): {date}")
    for label, value in (("start_time", start_time), ("end_time", end_time)):
        if value is not None and not is_valid_time(value):
            raise TaskValidationError(f"Invalid {label} (expected HH:MM): {value}")

    if date is None or all_day_requested:
        start_time = end_time = None
    elif start_time and not end_time:
        end_time = add_minutes(start_time, duration_minutes)
    elif end_time and not start_time:
        start_time = add_minutes(end_time, -duration_minutes)

    return {
        "date": date,
        "start_time": start_time,
        "end_time": end_time,
        "is_all_day": date is not None and start_time is None,
    }


def _shifted_end_time(task: Task, start_time: Optional[str]) -> Optional[str]:
    """Move the stored end along with a new start, keeping the duration.

    Returns None when there is no stored duration (or no new start), leaving
    normalize_schedule to fill in the default.
    """
    start_time = _blank_to_none(start_time)
    old_start = parse_hhmm(task.start_time or "")
    old_end = parse_hhmm(task.end_time or "")
    if start_time is None or not is_valid_time(start_time) or old_start is None or old_end is None:
        return None
    duration = (old_end[0] * 60 + old_end[1] - old_start[0] * 60 - old_start[1]) % MINUTES_PER_DAY
    return add_minutes(start_time, duration)


def build_new_task(task_id: str, created_at: str, fields: Mapping[str, Any]) -> Task:
    """作成用フィールドを検証し、不変条件を満たすTaskを組み立てる"""
    unknown = set(fields) - MUTABLE_FIELDS
    if unknown:
        raise TaskValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    completed = bool(fields.get("completed", False))
    schedule = normalize_schedule(
        fields.get("date"),
        fields.get("start_time"),
        fields.get("end_time"),
        all_day_requested=bool(fields.get("is_all_day", False)),
    )
    return Task(
        id=task_id,
        title=require_title(fields.get("title")),
        category=coerce_category(fields.get("category")),
        type=coerce_type(fields.get("type", TaskType.TASK)),
        completed=completed,
        completed_at=(fields.get("completed_at") or created_at) if completed else None,
        location=_blank_to_none(fields.get("location")),
        notes=fields.get("notes") or None,
        logs_json=fields.get("logs_json") or "[]",
        is_backlog=bool(fields.get("is_backlog", False)),
        created_at=created_at,
        **schedule,
    )


def merge_changes(task: Task, changes: Mapping[str, Any], now: str) -> Task:
    """既存レコードに変更をフィールド単位でマージする

    リッチテキスト (notes) は丸ごと置き換え、深いマージは行わない。
    completed が false→true になった時のみ completed_at=now を設定し、
    true→false で消去する。start_time だけが変わった場合は所要時間を保って
    end_time もずらす。
    """
    unknown = set(changes) - MUTABLE_FIELDS
    if unknown:
        raise TaskValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    values: Dict[str, Any] = dict(changes)
    if "title" in values:
        values["title"] = require_title(values["title"])
    if "category" in values:
        values["category"] = coerce_category(values["category"])
    if "type" in values:
        values["type"] = coerce_type(values["type"])
    if "location" in values:
        values["location"] = _blank_to_none(values["location"])
    if "logs_json" in values and not values["logs_json"]:
        values["logs_json"] = "[]"

    # null means "not provided" for the boolean flags
    for flag in ("completed", "is_backlog"):
        if flag in values and values[flag] is None:
            del values[flag]

    if "completed" in values:
        completed = bool(values["completed"])
        values["completed"] = completed
        if completed and not task.completed:
            values["completed_at"] = now
        elif not completed and task.completed:
            values["completed_at"] = None
    # completed_at is owned by the completion rule
    if "completed" not in values or values["completed"] == task.completed:
        values.pop("completed_at", None)

    if "start_time" in values and "end_time" not in values:
        values["end_time"] = _shifted_end_time(task, values["start_time"])

    schedule = normalize_schedule(
        values.get("date", task.date),
        values.get("start_time", task.start_time),
        values.get("end_time", task.end_time),
        all_day_requested=bool(values.get("is_all_day", False)),
    )
    values.update(schedule)
    if "is_backlog" in values:
        values["is_backlog"] = bool(values["is_backlog"])

    return dataclasses.replace(task, **values)
