import pytest

from src.tasks.timeutils import add_minutes, format_time_slot, hourly_slots, is_valid_date


@pytest.mark.parametrize(
    "value, delta, expected",
    [
        ("09:00", 60, "10:00"),
        ("23:30", 60, "00:30"),
        ("00:15", -60, "23:15"),
    ],
)
def test_add_minutes_wraps_clock(value, delta, expected):
    assert add_minutes(value, delta) == expected


def test_add_minutes_rejects_bad_input():
    with pytest.raises(ValueError):
        add_minutes("9am", 60)


@pytest.mark.parametrize(
    "value, label",
    [("00:00", "12 AM"), ("06:00", "6 AM"), ("12:00", "12 PM"), ("13:00", "1 PM"), (None, "")],
)
def test_format_time_slot(value, label):
    assert format_time_slot(value) == label


def test_hourly_slots_cover_day_view():
    slots = hourly_slots()

    assert slots[0] == "06:00"
    assert slots[-1] == "23:00"
    assert len(slots) == 18


def test_is_valid_date():
    assert is_valid_date("2026-02-28")
    assert not is_valid_date("2026-02-30")
    assert not is_valid_date("2026-2-3")
    assert not is_valid_date(None)
