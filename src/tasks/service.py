"""Task service

リポジトリと遷移ルールを組み合わせる調整レイヤー。

  - 作成前の検証 (タイトル/カテゴリ必須)
  - 名前付き操作の適用と、ロールバック用の変更前スナップショットの返却
  - 未登録IDは例外にせず None を返す (呼び出し側でメッセージ表示)

Related Classes:
  - TaskRepository (repository.py): 保存先
  - transitions: フィールド差分の計算
  - QuickAddSession (src/planner/quick_add.py): クイック追加フォーム
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping, Optional

from . import transitions
from .exceptions import TaskNotFoundError
from .models import Task, TaskType
from .nlp import ParsedTitle, parse_title
from .repository import SAMPLE_TASKS, TaskRepository
from .state import TaskMode, derive_mode, require_title
from .transitions import DropAction, Operation

logger = logging.getLogger(__name__)

QUICK_ADD_SOURCES = ("task", "calendar", "backlog")


@dataclass(frozen=True)
class MutationOutcome:
    """Result of a mutation: the stored record plus the snapshot it replaced."""

    task: Task
    previous: Task
    operation: str

    @property
    def mode(self) -> TaskMode:
        return derive_mode(self.task)


class TaskService:
    """タスク操作のエントリポイント"""

    def __init__(
        self,
        repository: TaskRepository,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.repository = repository
        self._today = today or date.today

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def today(self) -> date:
        return self._today()

    # --- queries -----------------------------------------------------------

    def get(self, task_id: str) -> Optional[Task]:
        return self.repository.get(task_id)

    def require(self, task_id: str) -> Task:
        """get() の例外版

        Raises:
            TaskNotFoundError: 指定IDのタスクが存在しない
        """
        task = self.repository.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def list(
        self,
        *,
        category: Optional[Any] = None,
        date: Optional[str] = None,
        has_date: Optional[bool] = None,
    ) -> list[Task]:
        return self.repository.list(category=category, date=date, has_date=has_date)

    def list_completed(self) -> list[Task]:
        """完了済みタスク (アーカイブ表示用)、完了日時の新しい順"""
        done = [task for task in self.repository.list() if task.completed and task.completed_at]
        return sorted(done, key=lambda task: task.completed_at or "", reverse=True)

    def list_by_mode(self, mode: TaskMode) -> list[Task]:
        return [task for task in self.repository.list() if derive_mode(task) is mode]

    # --- creation ----------------------------------------------------------

    def create(self, fields: Mapping[str, Any]) -> Task:
        """Create a record. Validation errors propagate before storage is touched."""
        return self.repository.create(fields)

    def create_note(self, title: str, category: Any, notes: Optional[str] = None) -> Task:
        return self.repository.create(
            {"title": title, "category": category, "type": TaskType.NOTE, "notes": notes}
        )

    def parse(self, title: str) -> ParsedTitle:
        return parse_title(title, today=self.today())

    def quick_add(
        self,
        title: str,
        category: Any,
        source: str = "task",
        *,
        selected_date: Optional[str] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        location: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Task:
        """自然言語タイトルからタスク/イベントを作成する

        日付が検出された (またはカレンダーから作成された) 場合はイベント、
        それ以外は通常のタスクになる。時刻が無ければ「いつか」枠のイベント。
        """
        fields = build_quick_add_fields(
            self.parse(require_title(title)),
            title,
            category,
            source,
            selected_date=selected_date,
            start_time=start_time,
            end_time=end_time,
            location=location,
            notes=notes,
        )
        return self.repository.create(fields)

    def seed_samples(self) -> list[Task]:
        return self.repository.bulk_create(SAMPLE_TASKS)

    # --- mutations ---------------------------------------------------------

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Optional[MutationOutcome]:
        return self._mutate(task_id, "update", lambda task: dict(changes))

    def delete(self, task_id: str) -> bool:
        deleted = self.repository.delete(task_id)
        if deleted:
            logger.info("Deleted %s", task_id)
        else:
            logger.warning("Delete skipped, task not found: %s", task_id)
        return deleted

    def apply(
        self, task_id: str, operation: Operation | str, **kwargs: Any
    ) -> Optional[MutationOutcome]:
        """名前付き操作を適用する

        Raises:
            InvalidTransitionError: 現在のモードで不正な操作
            TaskValidationError: 引数の書式が不正

        Returns:
            MutationOutcome、タスクが存在しない場合はNone
        """
        operation = Operation(operation)
        rule = transitions.OPERATIONS[operation]
        if operation in (Operation.SCHEDULE_AT_SLOT, Operation.MOVE_TO_FLEXIBLE):
            kwargs.setdefault("today", self.today())
        elif operation is Operation.APPEND_LOG:
            kwargs.setdefault("now", self._now())
        return self._mutate(task_id, operation.value, lambda task: rule(task, **kwargs))

    def schedule_at_slot(
        self,
        task_id: str,
        start_time: str,
        date: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> Optional[MutationOutcome]:
        return self.apply(
            task_id, Operation.SCHEDULE_AT_SLOT, start_time=start_time, date=date, end_time=end_time
        )

    def move_to_flexible(self, task_id: str, date: Optional[str] = None) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.MOVE_TO_FLEXIBLE, date=date)

    def move_to_task_list(self, task_id: str, category: Any) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.MOVE_TO_TASK_LIST, category=category)

    def unschedule(self, task_id: str) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.UNSCHEDULE)

    def taskify(self, task_id: str) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.TASKIFY)

    def move_to_backlog(self, task_id: str) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.MOVE_TO_BACKLOG)

    def restore_from_backlog(self, task_id: str) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.RESTORE_FROM_BACKLOG)

    def set_completed(self, task_id: str, completed: bool) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.SET_COMPLETED, completed=completed)

    def toggle_completed(self, task_id: str) -> Optional[MutationOutcome]:
        task = self.repository.get(task_id)
        if task is None:
            logger.warning("toggle_completed skipped, task not found: %s", task_id)
            return None
        return self.set_completed(task_id, not task.completed)

    def append_log(self, task_id: str, content: str) -> Optional[MutationOutcome]:
        return self.apply(task_id, Operation.APPEND_LOG, content=content)

    def handle_drop(
        self,
        task_id: str,
        source: str,
        destination: Optional[str],
        selected_date: Optional[str] = None,
        default_time_slot: str = transitions.DEFAULT_TIME_SLOT,
    ) -> Optional[MutationOutcome]:
        """ドラッグ&ドロップを名前付き操作に変換して適用する"""
        action: Optional[DropAction] = transitions.resolve_drop(
            source,
            destination,
            selected_date=selected_date,
            default_time_slot=default_time_slot,
        )
        if action is None:
            logger.debug("No operation for drop %s -> %s", source, destination)
            return None
        return self.apply(task_id, action.operation, **action.kwargs)

    def revert(self, outcome: MutationOutcome) -> Task:
        """楽観的更新の失敗時に変更前スナップショットへ戻す"""
        logger.info("Reverting %s on %s", outcome.operation, outcome.previous.id)
        return self.repository.replace(outcome.previous)

    def _mutate(
        self,
        task_id: str,
        operation: str,
        compute: Callable[[Task], Mapping[str, Any]],
    ) -> Optional[MutationOutcome]:
        previous = self.repository.get(task_id)
        if previous is None:
            logger.warning("%s skipped, task not found: %s", operation, task_id)
            return None
        changes = compute(previous)
        updated = self.repository.update(task_id, changes)
        if updated is None:
            logger.warning("%s lost task %s during update", operation, task_id)
            return None
        logger.info(
            "%s %s: %s -> %s",
            operation,
            task_id,
            derive_mode(previous).value,
            derive_mode(updated).value,
        )
        return MutationOutcome(task=updated, previous=previous, operation=operation)


def build_quick_add_fields(
    parsed: ParsedTitle,
    raw_title: str,
    category: Any,
    source: str = "task",
    *,
    selected_date: Optional[str] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    location: Optional[str] = None,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """クイック追加の送信内容から作成用フィールドを組み立てる

    作成元 (task / calendar / backlog) はカレンダー日付の既定値と
    バックログフラグにのみ影響する。
    """
    if source not in QUICK_ADD_SOURCES:
        raise ValueError(f"Unknown quick-add source: {source}")

    target_date = parsed.detected_date
    if target_date is None and source == "calendar":
        target_date = selected_date

    start = parsed.detected_time or start_time or None
    end = parsed.detected_end_time or end_time or None
    if target_date is None:
        start = end = None

    return {
        "title": parsed.clean_title or (raw_title or "").strip(),
        "category": category,
        "date": target_date,
        "start_time": start,
        "end_time": end,
        "is_all_day": bool(target_date) and start is None and end is None,
        "location": parsed.detected_location or location or None,
        "notes": notes or None,
        "is_backlog": source == "backlog" and target_date is None,
    }
