"""Task Models

タスク/イベント/ノートを1つのレコードで表現するデータモデル定義。

Related Classes: TaskRepository (repository.py), TaskMode (state.py)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class LifeArea(str, Enum):
    """Fixed set of life areas a task belongs to."""

    FAITH = "faith"
    FINANCE = "finance"
    FITNESS = "fitness"
    FAMILY = "family"
    FORTRESS = "fortress"
    FULFILLMENT = "fulfillment"
    FRIVOLOUS = "frivolous"
    UNCATEGORIZED = "uncategorized"


# 表示名とカラー (ダッシュボードのカテゴリ列に対応)
LIFE_AREA_INFO: Dict[LifeArea, Dict[str, str]] = {
    LifeArea.FAITH: {"name": "Faith", "color": "#8B5CF6"},
    LifeArea.FINANCE: {"name": "Finance", "color": "#10B981"},
    LifeArea.FITNESS: {"name": "Fitness", "color": "#F59E0B"},
    LifeArea.FAMILY: {"name": "Family", "color": "#EC4899"},
    LifeArea.FORTRESS: {"name": "Fortress", "color": "#6366F1"},
    LifeArea.FULFILLMENT: {"name": "Fulfillment", "color": "#14B8A6"},
    LifeArea.FRIVOLOUS: {"name": "Frivolous", "color": "#EAB308"},
    LifeArea.UNCATEGORIZED: {"name": "Uncategorized", "color": "#6B7280"},
}


class TaskType(str, Enum):
    TASK = "task"
    NOTE = "note"


@dataclass(slots=True)
class LogEntry:
    """Timestamped progress note attached to a task."""

    timestamp: str  # ISO8601
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"timestamp": self.timestamp, "content": self.content}


@dataclass(slots=True)
class Task:
    """永続化済みタスクの表現

    1レコード = タスク、カレンダーイベント、またはノート。
    どの表示モードになるかはフィールドの組み合わせから導出する (state.derive_mode)。
    ログはlogs_jsonにJSON配列として保存する。
    """

    id: str
    title: str
    category: LifeArea
    type: TaskType = TaskType.TASK
    completed: bool = False
    completed_at: Optional[str] = None
    date: Optional[str] = None  # YYYY-MM-DD
    start_time: Optional[str] = None  # HH:MM
    end_time: Optional[str] = None  # HH:MM
    is_all_day: bool = False
    location: Optional[str] = None
    notes: Optional[str] = None  # rich text (HTML)
    logs_json: str = "[]"
    is_backlog: bool = False
    created_at: str = ""

    @property
    def logs(self) -> List[LogEntry]:
        """ログ配列をパースして返す

        Raises:
            json.JSONDecodeError: 不正なJSON形式の場合
        """
        return [LogEntry(**entry) for entry in json.loads(self.logs_json or "[]")]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "type": self.type.value,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_all_day": self.is_all_day,
            "location": self.location,
            "notes": self.notes,
            "logs": [entry.to_dict() for entry in self.logs],
            "is_backlog": self.is_backlog,
            "created_at": self.created_at,
        }


def dump_logs(logs: List[LogEntry]) -> str:
    return json.dumps([entry.to_dict() for entry in logs], ensure_ascii=False)
