"""Natural-language title parser

フリーテキストのタイトルから日付・時刻・終了時刻・場所を抽出します。

処理順序は固定 (日付 → 時刻 → 場所)。各カテゴリは優先順位付きのルール表を
先頭から評価し、最初にマッチしたルールだけを採用します。

Related Classes:
  - quick_add.QuickAddSession: 入力中のプレビューと送信時の再解析
  - service.TaskService.quick_add: 解析結果からレコードを作成
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional, Pattern

from .timeutils import add_minutes, format_hhmm

logger = logging.getLogger(__name__)

# Sunday=0, matching the weekday index used by the calendar views
WEEKDAYS = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)
_WEEKDAY_ALT = "|".join(WEEKDAYS)
_DATE_WORD_ALT = f"tomorrow|today|{_WEEKDAY_ALT}"

DEFAULT_DURATION_MINUTES = 60


@dataclass(frozen=True)
class ParsedTitle:
    """Result of :func:`parse_title`."""

    clean_title: str
    detected_date: Optional[str] = None  # YYYY-MM-DD
    detected_time: Optional[str] = None  # HH:MM
    detected_end_time: Optional[str] = None  # HH:MM
    detected_location: Optional[str] = None

    @property
    def has_detections(self) -> bool:
        return any(
            (self.detected_date, self.detected_time, self.detected_location)
        )


@dataclass(frozen=True)
class DateRule:
    name: str
    pattern: Pattern[str]
    resolve: Callable[[re.Match, date], date]


@dataclass(frozen=True)
class TimeRule:
    name: str
    pattern: Pattern[str]
    # returns None when the matched clock value is out of range
    resolve: Callable[[re.Match], Optional[str]]


def _python_weekday_to_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def resolve_weekday(phrase: str, today: date) -> date:
    """Resolve ``[this|next] <weekday>`` relative to ``today``.

    A plain or ``this`` weekday means the nearest occurrence, today included.
    ``next <weekday>`` always lands 7 to 13 days out, so on a Wednesday
    ``next wednesday`` is exactly one week away.
    """
    words = phrase.lower().split()
    target = WEEKDAYS.index(words[-1])
    delta = (target - _python_weekday_to_index(today)) % 7
    if words[0] == "next":
        delta += 7
    return today + timedelta(days=delta)


def _to_24h(hours: int, minutes: int, meridiem: str) -> Optional[str]:
    if not 1 <= hours <= 12 or minutes > 59:
        return None
    meridiem = meridiem.lower()
    if meridiem == "pm" and hours != 12:
        hours += 12
    elif meridiem == "am" and hours == 12:
        hours = 0
    return format_hhmm(hours, minutes)


def _resolve_meridiem(match: re.Match) -> Optional[str]:
    minutes = int(match.group(2)) if match.group(2) else 0
    return _to_24h(int(match.group(1)), minutes, match.group(3))


def _resolve_hour_meridiem(match: re.Match) -> Optional[str]:
    return _to_24h(int(match.group(1)), 0, match.group(2))


def _resolve_clock(match: re.Match) -> Optional[str]:
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    # "at 3:30" without am/pm reads as the afternoon
    if 1 <= hours <= 7:
        hours += 12
    return format_hhmm(hours, minutes)


DATE_RULES: tuple[DateRule, ...] = (
    DateRule(
        "today",
        re.compile(r"\btoday\b", re.IGNORECASE),
        lambda match, today: today,
    ),
    DateRule(
        "tomorrow",
        re.compile(r"\btomorrow\b", re.IGNORECASE),
        lambda match, today: today + timedelta(days=1),
    ),
    DateRule(
        "next_week",
        re.compile(r"\bnext\s+week\b", re.IGNORECASE),
        lambda match, today: today + timedelta(days=7),
    ),
    DateRule(
        "weekday",
        re.compile(rf"\b(?:(?:this|next)\s+)?(?:{_WEEKDAY_ALT})\b", re.IGNORECASE),
        lambda match, today: resolve_weekday(match.group(0), today),
    ),
)

TIME_RULES: tuple[TimeRule, ...] = (
    TimeRule(
        "meridiem",
        re.compile(r"\bat\s+(\d{1,2}):?(\d{2})?\s*(am|pm)\b", re.IGNORECASE),
        _resolve_meridiem,
    ),
    TimeRule(
        "hour_meridiem",
        re.compile(r"\bat\s+(\d{1,2})\s*(am|pm)\b", re.IGNORECASE),
        _resolve_hour_meridiem,
    ),
    TimeRule(
        "clock",
        re.compile(r"\bat\s+(\d{1,2}):(\d{2})\b", re.IGNORECASE),
        _resolve_clock,
    ),
)

# "at <place>" up to a date word, another "at <digit>", or the end of the title
LOCATION_PATTERN = re.compile(
    rf"\bat\s+([^0-9\s][^,\n]*?)(?=\s+(?:(?:{_DATE_WORD_ALT})\b|at\s+\d)|\s*$)",
    re.IGNORECASE,
)
# used once a time phrase has already consumed its own "at"
LOCATION_AFTER_TIME_PATTERN = re.compile(
    rf"\bat\s+([^0-9][^,\n]*?)(?=\s+(?:{_DATE_WORD_ALT})\b|\s*$)",
    re.IGNORECASE,
)
TIME_LIKE_PATTERN = re.compile(r"\d{1,2}:?\d{0,2}\s*(?:am|pm)?", re.IGNORECASE)


def tidy_text(text: str) -> str:
    """Collapse whitespace, trim, and drop spaces before terminal punctuation."""
    text = re.sub(r"\s+", " ", text).strip()
    return re.sub(r"\s+([.!?])", r"\1", text)


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


def _detect_date(title: str, today: date) -> tuple[str, Optional[str]]:
    for rule in DATE_RULES:
        match = rule.pattern.search(title)
        if match:
            detected = rule.resolve(match, today).isoformat()
            logger.debug("Date rule %s matched %r -> %s", rule.name, match.group(0), detected)
            return tidy_text(rule.pattern.sub("", title)), detected
    return title, None


def _detect_time(title: str) -> tuple[str, Optional[str]]:
    for rule in TIME_RULES:
        for match in rule.pattern.finditer(title):
            detected = rule.resolve(match)
            if detected:
                logger.debug("Time rule %s matched %r -> %s", rule.name, match.group(0), detected)
                return rule.pattern.sub("", title).strip(), detected
    return title, None


def _detect_location(title: str, after_time: bool) -> tuple[str, Optional[str]]:
    pattern = LOCATION_AFTER_TIME_PATTERN if after_time else LOCATION_PATTERN
    match = pattern.search(title)
    if not match:
        return title, None
    location = match.group(1).strip()
    if not location:
        return title, None
    if not after_time and TIME_LIKE_PATTERN.search(location):
        return title, None
    stripped = (title[: match.start()] + title[match.end():]).strip()
    return stripped, location


def parse_title(title: str, today: Optional[date] = None) -> ParsedTitle:
    """タイトルからカレンダー情報を抽出する

    検出値は1回目の解析結果のみを返す。整形済みタイトルは再解析しても
    変化しなくなるまで解析を繰り返す (2つ目の日付表現などを取り除く)。

    Args:
        title: ユーザー入力のタイトル
        today: 相対日付の基準日 (省略時はローカルの今日)

    Returns:
        ParsedTitle: 整形済みタイトルと検出フィールド。何も検出されなくても
        エラーにはならない。
    """
    today = today or date.today()
    parsed = _parse_once(title or "", today)
    clean = parsed.clean_title
    # every pass either shortens the text or leaves it unchanged
    for _ in range(len(clean) + 1):
        again = _parse_once(clean, today).clean_title
        if again == clean:
            break
        clean = again
    return dataclasses.replace(parsed, clean_title=clean)


def _parse_once(title: str, today: date) -> ParsedTitle:
    clean = title.strip()

    clean, detected_date = _detect_date(clean, today)
    clean, detected_time = _detect_time(clean)
    detected_end_time = (
        add_minutes(detected_time, DEFAULT_DURATION_MINUTES) if detected_time else None
    )
    clean, detected_location = _detect_location(clean, after_time=detected_time is not None)

    return ParsedTitle(
        clean_title=capitalize_first(tidy_text(clean)),
        detected_date=detected_date,
        detected_time=detected_time,
        detected_end_time=detected_end_time,
        detected_location=detected_location,
    )
