from calendar import monthrange
from datetime import date, timedelta

import pytest

from app.core.errors import ValidationError
from app.services.payments import build_description, compute_due_date, validate_due_day


def _days(start, end):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def test_due_day_already_passed_bills_next_month():
    # tenant onboarded on the 10th, rent due on the 5th
    assert compute_due_date(5, date(2024, 1, 10)) == date(2024, 2, 5)


def test_due_day_still_ahead_bills_this_month():
    assert compute_due_date(5, date(2024, 2, 1)) == date(2024, 2, 5)


def test_due_day_equal_to_today_bills_next_month():
    assert compute_due_date(15, date(2024, 3, 15)) == date(2024, 4, 15)


def test_december_rolls_over_to_january():
    assert compute_due_date(5, date(2024, 12, 20)) == date(2025, 1, 5)


def test_short_month_clamps_to_last_day():
    assert compute_due_date(31, date(2024, 1, 31)) == date(2024, 2, 29)
    assert compute_due_date(31, date(2023, 1, 31)) == date(2023, 2, 28)
    assert compute_due_date(30, date(2024, 2, 10)) == date(2024, 2, 29)


def test_due_date_is_always_in_the_future_on_the_due_day():
    for due_day in range(1, 32):
        for today in _days(date(2023, 12, 1), date(2025, 1, 31)):
            due = compute_due_date(due_day, today)
            assert due > today
            assert due.day == min(due_day, monthrange(due.year, due.month)[1])
            months_ahead = (due.year - today.year) * 12 + due.month - today.month
            assert months_ahead in (0, 1)


@pytest.mark.parametrize("due_day", [0, 32, -1, None, "5", 5.0, True])
def test_invalid_due_day_rejected(due_day):
    with pytest.raises(ValidationError):
        validate_due_day(due_day)
    with pytest.raises(ValidationError):
        compute_due_date(due_day, date(2024, 1, 1))


def test_description_uses_property_name_and_due_month():
    assert build_description("Apt 101", date(2024, 2, 5)) == "Rent Apt 101 - 02/2024"
