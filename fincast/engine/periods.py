"""Calendar helpers: recurrence steps, forecast horizon and months.

All values are calendar dates (no time, no timezone).
"""

from collections.abc import Iterator
from datetime import date

from dateutil.relativedelta import relativedelta

from fincast.core.models import RecurringFrequency

FORECAST_MONTHS = 12

_STEPS = {
    RecurringFrequency.WEEKLY: relativedelta(weeks=1),
    RecurringFrequency.MONTHLY: relativedelta(months=1),
    RecurringFrequency.ANNUAL: relativedelta(years=1),
}


def frequency_step(frequency: RecurringFrequency) -> relativedelta:
    """Calendar offset between two occurrences of a rule."""
    return _STEPS[frequency]


def next_occurrence(current: date, frequency: RecurringFrequency) -> date:
    """Return the occurrence following `current`.

    Month and year steps clamp to the last day of a shorter month
    (Jan 31 -> Feb 28, Feb 29 -> Feb 28 of the next year).
    """
    return current + frequency_step(frequency)


def iterate_occurrences(
    start: date,
    frequency: RecurringFrequency,
    horizon_end: date,
    end_date: date | None = None,
) -> Iterator[date]:
    """Yield occurrences of a rule from `start`.

    The k-th occurrence is computed as `start + k * step` rather than by
    stepping from the previous one, so a rule on the 31st returns to the
    31st after a short month.

    Args:
        start: First occurrence.
        frequency: Recurrence step.
        horizon_end: Occurrences must fall strictly before this date.
        end_date: Optional last allowed date of the rule (inclusive).
    """
    step = frequency_step(frequency)
    k = 0
    while True:
        occurrence = start + step * k
        if occurrence >= horizon_end:
            return
        if end_date is not None and occurrence > end_date:
            return
        yield occurrence
        k += 1


def forecast_horizon(today: date, months: int = FORECAST_MONTHS) -> date:
    """End (exclusive) of the generation window: `months` after today."""
    return today + relativedelta(months=months)


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    """Last day of the month containing `d`."""
    return d + relativedelta(day=31)


def day_in_month(year: int, month: int, day: int) -> date:
    """`day` of the given month, clamped to the month's last day."""
    return date(year, month, 1) + relativedelta(day=day)


def iterate_months(start: date, count: int = FORECAST_MONTHS) -> Iterator[tuple[date, date]]:
    """Yield (first_day, last_day) for `count` months from `start`'s month."""
    first = month_start(start)
    for i in range(count):
        period_start = first + relativedelta(months=i)
        yield period_start, month_end(period_start)


def format_month(d: date) -> str:
    """Month label, e.g. '2024-12'."""
    return d.strftime("%Y-%m")
