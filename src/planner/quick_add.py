"""
クイック追加セッション

タイトル入力のたびに解析をデバウンスし、検出した日付・時刻・場所を
タイトル以外のフィールドにだけ反映します。タイトル欄そのものは
ユーザー入力のまま保持し、送信時に一度だけ再解析して保存します。

関連クラス:
  - src.tasks.service.TaskService: 解析と作成
  - debounce.Debouncer: 入力停止待ちのタイマー
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.tasks import ParsedTitle, Task, TaskService, TaskValidationError
from src.tasks.service import QUICK_ADD_SOURCES
from src.tasks.timeutils import add_minutes, today_iso

from .config import QuickAddConfig
from .debounce import Debouncer

logger = logging.getLogger(__name__)


def describe_parse(parsed: ParsedTitle, source: str = "task") -> List[str]:
    """Human-readable list of what the parser picked up."""
    info: List[str] = []
    if parsed.detected_date:
        info.append(f"Date: {parsed.detected_date}")
        info.append("Will become calendar event")
    if parsed.detected_time:
        info.append(f"Time: {parsed.detected_time}-{parsed.detected_end_time}")
    elif source == "calendar" or parsed.detected_date:
        info.append('Will appear as "sometime" on the target date')
    if parsed.detected_location:
        info.append(f"Location: {parsed.detected_location}")
    return info


@dataclass
class QuickAddForm:
    """Form state; empty strings mean "not entered"."""

    title: str = ""
    category: str = ""
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    notes: str = ""


class QuickAddSession:
    """1回分のクイック追加フォーム"""

    def __init__(
        self,
        service: TaskService,
        source: str = "task",
        *,
        selected_date: Optional[str] = None,
        initial_time_slot: Optional[str] = None,
        preselected_category: str = "",
        config: Optional[QuickAddConfig] = None,
    ) -> None:
        if source not in QUICK_ADD_SOURCES:
            raise ValueError(f"Unknown quick-add source: {source}")
        self.service = service
        self.source = source
        self.config = config or QuickAddConfig()
        self.form = QuickAddForm(
            category=preselected_category,
            date=selected_date or today_iso(service.today()),
        )
        if source == "calendar" and initial_time_slot:
            self.form.start_time = initial_time_slot
            self.form.end_time = add_minutes(initial_time_slot, 60)
        self.preview: List[str] = []
        self.last_parsed: Optional[ParsedTitle] = None
        self._lock = threading.Lock()
        # bumped on every keystroke and reset; a parse started under an older
        # generation is dropped
        self._generation = 0
        self._debouncer: Debouncer[Tuple[int, str]] = Debouncer(
            self.config.debounce_seconds, self._apply_parse
        )

    @property
    def shows_calendar_fields(self) -> bool:
        return self.source == "calendar"

    @property
    def will_become_event(self) -> bool:
        return self.source == "calendar" or bool(
            self.last_parsed and self.last_parsed.detected_date
        )

    def on_title_change(self, title: str) -> None:
        """キー入力ごとに呼ばれる。解析は入力が落ち着いてから行う。"""
        with self._lock:
            self.form.title = title
            self._generation += 1
            generation = self._generation
        self._debouncer.submit((generation, title))

    def flush(self) -> bool:
        """Apply a pending parse right away."""
        return self._debouncer.flush()

    def set_start_time(self, value: str) -> None:
        with self._lock:
            self.form.start_time = value
            if value and not self.form.end_time:
                self.form.end_time = add_minutes(value, 60)

    def _is_current_locked(self, generation: int, title: str) -> bool:
        return generation == self._generation and title == self.form.title

    def _apply_parse(self, pending: Tuple[int, str]) -> None:
        generation, title = pending
        if len(title.strip()) < self.config.min_parse_length:
            with self._lock:
                if self._is_current_locked(generation, title):
                    self.preview = []
                    self.last_parsed = None
            return

        parsed = self.service.parse(title)
        with self._lock:
            if not self._is_current_locked(generation, title):
                logger.debug("Discarding stale quick-add parse for %r", title)
                return
            form = self.form
            start = parsed.detected_time or form.start_time
            end = parsed.detected_end_time or form.end_time
            if start and not end:
                end = add_minutes(start, 60)
            form.start_time = start
            form.end_time = end
            form.location = parsed.detected_location or form.location
            self.last_parsed = parsed
            self.preview = describe_parse(parsed, self.source)
        logger.debug("Quick-add preview for %r: %s", title, self.preview)

    def submit(self) -> Task:
        """フォームを送信してタスク/イベントを作成する

        Raises:
            TaskValidationError: タイトルまたはカテゴリが未入力
        """
        self._debouncer.cancel()
        with self._lock:
            form = self.form
            if not form.title.strip() or not form.category:
                raise TaskValidationError("Please fill in the title and category.")
            created = self.service.quick_add(
                form.title,
                form.category,
                self.source,
                selected_date=form.date or None,
                start_time=form.start_time or None,
                end_time=form.end_time or None,
                location=form.location or None,
                notes=form.notes or None,
            )
            self._reset_locked()
        return created

    def close(self) -> None:
        self._debouncer.cancel()
        with self._lock:
            self._reset_locked()

    def _reset_locked(self) -> None:
        self._generation += 1
        self.form = QuickAddForm(category=self.form.category, date=self.form.date)
        self.preview = []
        self.last_parsed = None
