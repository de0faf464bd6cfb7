"""Date distribution and email-volume helpers.

This module turns narrative time windows into concrete message timing and
volume. It answers three questions for the thread planning engine:

- How many emails does a window of calendar days contain, given how many key
  roles are active in the storyline?
- How is that total split into individual thread sizes?
- When, inside a thread's window, is each message sent?

All functions take an explicit ``random.Random`` so that callers control
reproducibility; nothing here touches the module-level ``random`` state.

Functions:
    adjust_to_business_hours: Nudge a datetime onto a weekday working slot.
    distribute_dates_for_thread: Spread message dates across a window.
    interpolate_date_in_range: Linear interpolation inside a window.
    get_business_day_email_range: Daily email band for a weekday.
    get_weekend_email_range: Daily email band for a Saturday or Sunday.
    calculate_email_count_for_range: Sample total volume for a date span.
    build_thread_size_plan: Partition a total into thread sizes.
"""

from __future__ import annotations

import math
import random
from datetime import date, datetime, timedelta
from typing import NamedTuple


# =============================================================================
# Constants
# =============================================================================

SATURDAY = 5
SUNDAY = 6

BUSINESS_DAY_START_HOUR = 8
BUSINESS_DAY_END_HOUR = 19
WEEKEND_ROLLOVER_HOUR = 9

# Share of thread messages snapped onto business hours
BUSINESS_HOURS_ODDS = 0.9

# Daily volume model: per-role send rate, saturating participation and an
# overdispersed (negative-binomial style) spread reported as a 90% band
_SENDS_PER_ROLE = 24.0
_MAX_PARTICIPATION = 0.65
_PARTICIPATION_SCALE = 12.0
_BUSINESS_DISPERSION = 3.0
_WEEKEND_DISPERSION = 2.0
_BAND_Z = 1.645
_SATURDAY_FACTOR = 0.146
_SUNDAY_FACTOR = 0.136

THREAD_SIZE_CAP = 50


class ThreadSizeBucket(NamedTuple):
    """Inclusive size range with a selection weight."""

    min: int
    max: int
    weight: float


THREAD_SIZE_BUCKETS: tuple[ThreadSizeBucket, ...] = (
    ThreadSizeBucket(1, 1, 0.35),
    ThreadSizeBucket(2, 2, 0.25),
    ThreadSizeBucket(3, 3, 0.12),
    ThreadSizeBucket(4, 4, 0.07),
    ThreadSizeBucket(5, 5, 0.05),
    ThreadSizeBucket(6, 10, 0.10),
    ThreadSizeBucket(11, 15, 0.03),
    ThreadSizeBucket(16, 20, 0.02),
    ThreadSizeBucket(21, 30, 0.007),
    ThreadSizeBucket(31, 40, 0.002),
    ThreadSizeBucket(41, 50, 0.001),
)


# =============================================================================
# Helper Functions
# =============================================================================


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _is_weekend(value: date) -> bool:
    return value.weekday() in (SATURDAY, SUNDAY)


def _ceil_to_int(value: float) -> int:
    if value <= 0:
        return 0
    return math.ceil(value)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _participation(key_role_count: int) -> float:
    return _MAX_PARTICIPATION * (
        1 - math.exp(-(key_role_count - 1) / _PARTICIPATION_SCALE)
    )


def _band(mu: float, key_role_count: int, dispersion: float) -> tuple[int, int]:
    sigma = math.sqrt(mu + (mu * mu) / (key_role_count * dispersion))
    spread = _BAND_Z * sigma
    return _ceil_to_int(max(0.0, mu - spread)), _ceil_to_int(mu + spread)


def _sample_daily_count(low: int, high: int, rng: random.Random) -> int:
    low = max(0, low)
    high = max(low, high)
    return rng.randint(low, high)


def _weighted_choice(
    buckets: list[ThreadSizeBucket],
    rng: random.Random,
) -> ThreadSizeBucket:
    total_weight = sum(bucket.weight for bucket in buckets)
    roll = rng.random() * total_weight
    accumulated = 0.0
    for bucket in buckets:
        accumulated += bucket.weight
        if roll <= accumulated:
            return bucket
    return buckets[-1]


def _sample_lower_biased(low: int, high: int, rng: random.Random) -> int:
    return min(rng.randint(low, high), rng.randint(low, high))


# =============================================================================
# Message Timing
# =============================================================================


def adjust_to_business_hours(value: datetime, rng: random.Random) -> datetime:
    """Move a datetime onto a weekday between 08:00 and 19:00.

    Weekend values roll forward to Monday 09:00. Early-morning values move to
    08:00 plus a random minute; evening values move to 08:00 plus a random
    minute on the next weekday.

    Args:
        value: The datetime to adjust.
        rng: Random stream used for the minute offset.

    Returns:
        The adjusted datetime (unchanged when already inside business hours).
    """
    while _is_weekend(value):
        value = _midnight(value + timedelta(days=1)) + timedelta(hours=WEEKEND_ROLLOVER_HOUR)

    if value.hour < BUSINESS_DAY_START_HOUR:
        value = _midnight(value) + timedelta(
            hours=BUSINESS_DAY_START_HOUR,
            minutes=rng.randrange(0, 60),
        )
    elif value.hour >= BUSINESS_DAY_END_HOUR:
        value = _midnight(value) + timedelta(days=1)
        while _is_weekend(value):
            value += timedelta(days=1)
        value += timedelta(hours=BUSINESS_DAY_START_HOUR, minutes=rng.randrange(0, 60))

    return value


def distribute_dates_for_thread(
    email_count: int,
    thread_start: datetime,
    thread_end: datetime,
    rng: random.Random,
) -> list[datetime]:
    """Spread ``email_count`` send dates across a thread window.

    Dates advance from ``thread_start`` by a jittered average gap (0.3x to
    1.7x) and never pass ``thread_end``. Ninety percent of the dates are
    snapped to business hours.

    Args:
        email_count: Number of dates to produce.
        thread_start: Window start.
        thread_end: Window end.
        rng: Random stream for jitter and business-hour snapping.

    Returns:
        A list of ``email_count`` datetimes (empty when the count is not
        positive).
    """
    if email_count <= 0:
        return []
    if email_count == 1:
        return [adjust_to_business_hours(thread_start, rng)]

    total_minutes = (thread_end - thread_start).total_seconds() / 60.0
    average_gap = total_minutes / (email_count - 1)

    dates: list[datetime] = []
    current = thread_start
    for index in range(email_count):
        if rng.random() < BUSINESS_HOURS_ODDS:
            dates.append(adjust_to_business_hours(current, rng))
        else:
            dates.append(current)

        if index < email_count - 1:
            gap = average_gap * (0.3 + rng.random() * 1.4)
            current = min(current + timedelta(minutes=gap), thread_end)

    return dates


def interpolate_date_in_range(start: datetime, end: datetime, fraction: float) -> datetime:
    """Return the datetime at ``fraction`` of the way from start to end.

    The fraction is clamped to ``[0, 1]``.
    """
    fraction = min(1.0, max(0.0, fraction))
    return start + (end - start) * fraction


# =============================================================================
# Email Volume
# =============================================================================


def get_business_day_email_range(key_role_count: int) -> tuple[int, int]:
    """Return the (low, high) daily email band for a weekday.

    Args:
        key_role_count: Number of key roles active in the storyline.

    Returns:
        Inclusive integer bounds for the day's email count.

    Raises:
        ValueError: If key_role_count is not positive.
    """
    if key_role_count <= 0:
        raise ValueError("Key role count must be positive.")

    mu = key_role_count * _SENDS_PER_ROLE * _participation(key_role_count)
    return _band(mu, key_role_count, _BUSINESS_DISPERSION)


def get_weekend_email_range(key_role_count: int, weekday: int) -> tuple[int, int]:
    """Return the (low, high) daily email band for a weekend day.

    Args:
        key_role_count: Number of key roles active in the storyline.
        weekday: ``SATURDAY`` (5) or ``SUNDAY`` (6), as ``date.weekday()``.

    Returns:
        Inclusive integer bounds for the day's email count.

    Raises:
        ValueError: If weekday is not a weekend day or key_role_count is not
            positive.
    """
    if weekday not in (SATURDAY, SUNDAY):
        raise ValueError("Day type must be Saturday or Sunday.")
    if key_role_count <= 0:
        raise ValueError("Key role count must be positive.")

    business_mu = key_role_count * _SENDS_PER_ROLE * _participation(key_role_count)
    factor = _SATURDAY_FACTOR if weekday == SATURDAY else _SUNDAY_FACTOR
    return _band(factor * business_mu, key_role_count, _WEEKEND_DISPERSION)


def calculate_email_count_for_range(
    start: date | datetime,
    end: date | datetime,
    key_role_count: int,
    rng: random.Random,
) -> int:
    """Sample the total email volume for an inclusive span of calendar days.

    Each day contributes a uniform draw from its weekday or weekend band.

    Args:
        start: First day of the span (time of day is ignored).
        end: Last day of the span (time of day is ignored).
        key_role_count: Number of key roles active in the storyline.
        rng: Random stream for the daily draws.

    Returns:
        The total number of emails for the span.

    Raises:
        ValueError: If key_role_count is not positive or end precedes start.
    """
    if key_role_count <= 0:
        raise ValueError("Key role count must be positive.")

    start_day = _as_date(start)
    end_day = _as_date(end)
    if end_day < start_day:
        raise ValueError("End date must be on or after start date.")

    business = get_business_day_email_range(key_role_count)
    saturday = get_weekend_email_range(key_role_count, SATURDAY)
    sunday = get_weekend_email_range(key_role_count, SUNDAY)

    total = 0
    current = start_day
    while current <= end_day:
        weekday = current.weekday()
        if weekday == SATURDAY:
            total += _sample_daily_count(*saturday, rng)
        elif weekday == SUNDAY:
            total += _sample_daily_count(*sunday, rng)
        else:
            total += _sample_daily_count(*business, rng)
        current += timedelta(days=1)

    return total


def build_thread_size_plan(total_emails: int, rng: random.Random) -> list[int]:
    """Partition a beat's email total into individual thread sizes.

    Sizes are drawn from a weighted bucket table dominated by short threads,
    capped at ``THREAD_SIZE_CAP``. Multi-size buckets sample toward their
    lower bound. Only buckets whose minimum fits the remaining total are
    eligible, so the sizes always sum exactly to ``total_emails``.

    Args:
        total_emails: Number of emails to partition.
        rng: Random stream for bucket and size draws.

    Returns:
        A list of positive thread sizes summing to ``total_emails``.

    Raises:
        ValueError: If total_emails is negative.
    """
    if total_emails < 0:
        raise ValueError("Total email count must be non-negative.")

    sizes: list[int] = []
    remaining = total_emails
    while remaining > 0:
        eligible = [bucket for bucket in THREAD_SIZE_BUCKETS if bucket.min <= remaining]
        chosen = _weighted_choice(eligible, rng)
        high = min(chosen.max, remaining, THREAD_SIZE_CAP)
        if high == chosen.min:
            size = chosen.min
        else:
            size = _sample_lower_biased(chosen.min, high, rng)
        sizes.append(size)
        remaining -= size

    return sizes
