"""Tests for src.common.dates module.

Tests cover:
- Business-hour adjustment of weekend, early and late datetimes
- Date distribution across a thread window
- Interpolation clamping
- Daily email bands and range validation
- Email volume sampling over a span of days
- Thread size partitioning
"""

from __future__ import annotations

import random
from datetime import date, datetime

import pytest

from src.common.dates import (
    SATURDAY,
    SUNDAY,
    THREAD_SIZE_CAP,
    adjust_to_business_hours,
    build_thread_size_plan,
    calculate_email_count_for_range,
    distribute_dates_for_thread,
    get_business_day_email_range,
    get_weekend_email_range,
    interpolate_date_in_range,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def rng() -> random.Random:
    """Return a seeded random stream."""
    return random.Random(1234)


# Monday 2024-03-04 through Sunday 2024-03-10
MONDAY = datetime(2024, 3, 4)
FRIDAY = datetime(2024, 3, 8)
SATURDAY_DATE = datetime(2024, 3, 9)


# =============================================================================
# Business Hours Tests
# =============================================================================


class TestAdjustToBusinessHours:
    """Tests for adjust_to_business_hours."""

    def test_inside_hours_unchanged(self, rng: random.Random) -> None:
        """Test that a weekday mid-morning value is not moved."""
        value = MONDAY.replace(hour=10, minute=15)
        assert adjust_to_business_hours(value, rng) == value

    def test_weekend_rolls_to_monday_morning(self, rng: random.Random) -> None:
        """Test that Saturday moves to Monday 09:00."""
        adjusted = adjust_to_business_hours(SATURDAY_DATE.replace(hour=14), rng)
        assert adjusted == datetime(2024, 3, 11, 9, 0)

    def test_early_morning_moves_to_eight(self, rng: random.Random) -> None:
        """Test that early values move into the 08:00 hour of the same day."""
        adjusted = adjust_to_business_hours(MONDAY.replace(hour=5), rng)
        assert adjusted.date() == MONDAY.date()
        assert adjusted.hour == 8

    def test_evening_moves_to_next_weekday(self, rng: random.Random) -> None:
        """Test that Friday evening moves to Monday 08:xx."""
        adjusted = adjust_to_business_hours(FRIDAY.replace(hour=20), rng)
        assert adjusted.date() == date(2024, 3, 11)
        assert adjusted.hour == 8


# =============================================================================
# Date Distribution Tests
# =============================================================================


class TestDistributeDatesForThread:
    """Tests for distribute_dates_for_thread."""

    def test_non_positive_count_is_empty(self, rng: random.Random) -> None:
        """Test that zero or negative counts produce no dates."""
        assert distribute_dates_for_thread(0, MONDAY, FRIDAY, rng) == []
        assert distribute_dates_for_thread(-2, MONDAY, FRIDAY, rng) == []

    def test_single_date_is_adjusted_start(self) -> None:
        """Test that one message is sent at the adjusted window start."""
        start = MONDAY.replace(hour=10)
        assert distribute_dates_for_thread(1, start, FRIDAY, random.Random(1)) == [start]

    def test_count_and_bounds(self, rng: random.Random) -> None:
        """Test that every requested date is produced and starts in the window."""
        start = MONDAY.replace(hour=9)
        end = FRIDAY.replace(hour=17)
        dates = distribute_dates_for_thread(12, start, end, rng)

        assert len(dates) == 12
        assert all(d >= start for d in dates)

    def test_deterministic_for_seed(self) -> None:
        """Test that identical seeds give identical dates."""
        first = distribute_dates_for_thread(8, MONDAY, FRIDAY, random.Random(5))
        second = distribute_dates_for_thread(8, MONDAY, FRIDAY, random.Random(5))
        assert first == second


class TestInterpolateDateInRange:
    """Tests for interpolate_date_in_range."""

    def test_midpoint(self) -> None:
        """Test that 0.5 lands halfway."""
        assert interpolate_date_in_range(MONDAY, MONDAY.replace(hour=10), 0.5) == MONDAY.replace(
            hour=5
        )

    def test_fraction_clamped(self) -> None:
        """Test that fractions outside [0, 1] are clamped."""
        assert interpolate_date_in_range(MONDAY, FRIDAY, -1.0) == MONDAY
        assert interpolate_date_in_range(MONDAY, FRIDAY, 2.0) == FRIDAY


# =============================================================================
# Email Volume Tests
# =============================================================================


class TestEmailRanges:
    """Tests for daily email bands."""

    def test_business_band_ordered(self) -> None:
        """Test that the business band has low <= high."""
        low, high = get_business_day_email_range(6)
        assert 0 <= low <= high

    def test_weekend_lighter_than_business(self) -> None:
        """Test that weekend bands sit below the business band."""
        _, business_high = get_business_day_email_range(6)
        _, saturday_high = get_weekend_email_range(6, SATURDAY)
        _, sunday_high = get_weekend_email_range(6, SUNDAY)
        assert saturday_high < business_high
        assert sunday_high <= saturday_high

    def test_single_role_is_silent(self) -> None:
        """Test that one key role produces a zero band."""
        assert get_business_day_email_range(1) == (0, 0)

    @pytest.mark.parametrize("key_role_count", [0, -1])
    def test_non_positive_key_roles_rejected(self, key_role_count: int) -> None:
        """Test that key role counts must be positive."""
        with pytest.raises(ValueError, match="Key role count must be positive"):
            get_business_day_email_range(key_role_count)
        with pytest.raises(ValueError, match="Key role count must be positive"):
            get_weekend_email_range(key_role_count, SATURDAY)

    def test_weekday_rejected_for_weekend_band(self) -> None:
        """Test that only Saturday and Sunday are accepted."""
        with pytest.raises(ValueError, match="Saturday or Sunday"):
            get_weekend_email_range(6, 2)


class TestCalculateEmailCountForRange:
    """Tests for calculate_email_count_for_range."""

    def test_single_weekday_within_band(self, rng: random.Random) -> None:
        """Test that one weekday stays inside the business band."""
        low, high = get_business_day_email_range(6)
        count = calculate_email_count_for_range(MONDAY.date(), MONDAY.date(), 6, rng)
        assert low <= count <= high

    def test_week_within_summed_bands(self, rng: random.Random) -> None:
        """Test that a full week stays inside the summed bands."""
        business = get_business_day_email_range(6)
        saturday = get_weekend_email_range(6, SATURDAY)
        sunday = get_weekend_email_range(6, SUNDAY)
        low = 5 * business[0] + saturday[0] + sunday[0]
        high = 5 * business[1] + saturday[1] + sunday[1]

        count = calculate_email_count_for_range(date(2024, 3, 4), date(2024, 3, 10), 6, rng)
        assert low <= count <= high

    def test_accepts_datetimes(self) -> None:
        """Test that datetimes are reduced to their calendar day."""
        from_dates = calculate_email_count_for_range(
            MONDAY.date(), FRIDAY.date(), 6, random.Random(3)
        )
        from_datetimes = calculate_email_count_for_range(
            MONDAY.replace(hour=23), FRIDAY.replace(hour=1), 6, random.Random(3)
        )
        assert from_dates == from_datetimes

    def test_end_before_start_raises(self, rng: random.Random) -> None:
        """Test that reversed spans are rejected."""
        with pytest.raises(ValueError, match="End date must be on or after start date"):
            calculate_email_count_for_range(FRIDAY.date(), MONDAY.date(), 6, rng)


# =============================================================================
# Thread Size Tests
# =============================================================================


class TestBuildThreadSizePlan:
    """Tests for build_thread_size_plan."""

    @pytest.mark.parametrize("total", [0, 1, 2, 7, 49, 50, 51, 250, 1000])
    def test_sizes_sum_to_total(self, total: int) -> None:
        """Test that the partition is exact and every size is in range."""
        sizes = build_thread_size_plan(total, random.Random(total))

        assert sum(sizes) == total
        assert all(1 <= size <= THREAD_SIZE_CAP for size in sizes)

    def test_zero_total_is_empty(self, rng: random.Random) -> None:
        """Test that zero emails give no threads."""
        assert build_thread_size_plan(0, rng) == []

    def test_negative_total_raises(self, rng: random.Random) -> None:
        """Test that negative totals are rejected."""
        with pytest.raises(ValueError, match="non-negative"):
            build_thread_size_plan(-1, rng)

    def test_short_threads_dominate(self) -> None:
        """Test that most threads are five messages or fewer."""
        sizes = build_thread_size_plan(5000, random.Random(9))
        short = sum(1 for size in sizes if size <= 5)
        assert short / len(sizes) > 0.6
