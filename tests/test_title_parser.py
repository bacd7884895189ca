"""タイトル解析 (src.tasks.nlp) のテスト"""

from datetime import date

import pytest

from src.tasks.nlp import parse_title, resolve_weekday

# 2026-10-21 は水曜日
WEDNESDAY = date(2026, 10, 21)


def test_tomorrow_with_meridiem_time():
    parsed = parse_title("Lunch tomorrow at 1pm", today=WEDNESDAY)

    assert parsed.clean_title == "Lunch"
    assert parsed.detected_date == "2026-10-22"
    assert parsed.detected_time == "13:00"
    assert parsed.detected_end_time == "14:00"
    assert parsed.detected_location is None


def test_bare_clock_time_reads_as_afternoon_and_location_after_time():
    parsed = parse_title("Meeting at 3:30 at the office", today=WEDNESDAY)

    assert parsed.clean_title == "Meeting"
    assert parsed.detected_date is None
    assert parsed.detected_time == "15:30"
    assert parsed.detected_end_time == "16:30"
    assert parsed.detected_location == "the office"


def test_location_before_date_word():
    parsed = parse_title("Dinner at Olive Garden tomorrow", today=WEDNESDAY)

    assert parsed.clean_title == "Dinner"
    assert parsed.detected_date == "2026-10-22"
    assert parsed.detected_time is None
    assert parsed.detected_location == "Olive Garden"


@pytest.mark.parametrize(
    "title, expected_time, expected_end",
    [
        ("Dentist at 2:30pm", "14:30", "15:30"),
        ("Standup at 9am", "09:00", "10:00"),
        ("Midnight snack at 12am", "00:00", "01:00"),
        ("Lunch at 12pm", "12:00", "13:00"),
        ("Coffee at 11:45", "11:45", "12:45"),
        ("Late call at 11:30pm", "23:30", "00:30"),
    ],
)
def test_time_detection(title, expected_time, expected_end):
    parsed = parse_title(title, today=WEDNESDAY)

    assert parsed.detected_time == expected_time
    assert parsed.detected_end_time == expected_end


def test_out_of_range_clock_is_left_in_title():
    parsed = parse_title("Meeting at 25:00", today=WEDNESDAY)

    assert parsed.detected_time is None
    assert parsed.detected_location is None
    assert parsed.clean_title == "Meeting at 25:00"


def test_weekday_resolution():
    # 当日の曜日は当日、next は1週間後
    assert parse_title("Gym wednesday", today=WEDNESDAY).detected_date == "2026-10-21"
    assert parse_title("Gym friday", today=WEDNESDAY).detected_date == "2026-10-23"
    assert parse_title("Gym this monday", today=WEDNESDAY).detected_date == "2026-10-26"

    parsed = parse_title("call bob next wednesday", today=WEDNESDAY)
    assert parsed.detected_date == "2026-10-28"
    assert parsed.clean_title == "Call bob"


def test_resolve_weekday_is_case_insensitive():
    assert resolve_weekday("Next Sunday", WEDNESDAY) == date(2026, 11, 1)
    assert resolve_weekday("SUNDAY", WEDNESDAY) == date(2026, 10, 25)


def test_next_week_and_today():
    assert parse_title("Team sync next week", today=WEDNESDAY).detected_date == "2026-10-28"

    parsed = parse_title("pay rent today", today=WEDNESDAY)
    assert parsed.detected_date == "2026-10-21"
    assert parsed.clean_title == "Pay rent"


def test_earlier_date_rule_wins_and_all_matches_are_removed():
    parsed = parse_title("today or tomorrow: file taxes today", today=WEDNESDAY)

    assert parsed.detected_date == "2026-10-21"
    assert "today" not in parsed.clean_title.lower()
    assert "tomorrow" not in parsed.clean_title.lower()


def test_plain_title_is_untouched_apart_from_capitalization():
    parsed = parse_title("buy milk and eggs", today=WEDNESDAY)

    assert parsed.clean_title == "Buy milk and eggs"
    assert not parsed.has_detections


def test_whitespace_is_collapsed_and_punctuation_tidied():
    parsed = parse_title("  pick up   kids tomorrow !", today=WEDNESDAY)

    assert parsed.clean_title == "Pick up kids!"
    assert parsed.detected_date == "2026-10-22"


@pytest.mark.parametrize("title", ["", "   ", "\t\n"])
def test_empty_input_produces_nothing(title):
    parsed = parse_title(title, today=WEDNESDAY)

    assert parsed.clean_title == ""
    assert not parsed.has_detections


@pytest.mark.parametrize(
    "title",
    [
        "Lunch tomorrow at 1pm",
        "Meeting at 3:30 at the office",
        "Dinner at Olive Garden tomorrow",
        "today or tomorrow: file taxes today",
        "Review tomorrow tomorrow at 9am at the library",
        "friday friday friday",
    ],
)
def test_clean_title_is_stable_under_reparsing(title):
    first = parse_title(title, today=WEDNESDAY)
    second = parse_title(first.clean_title, today=WEDNESDAY)

    assert second.clean_title == first.clean_title
