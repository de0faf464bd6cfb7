"""Tests for src.threads.relevance module.

Tests cover:
- Closed-form odds for representative thread lengths
- Monotonicity and ordering of the responsive and hot curves
- Classification from rolls, including boundary rolls
- Input validation
"""

from __future__ import annotations

import pytest

from src.threads.relevance import (
    HOT_HIGH_RATE,
    HOT_HIGH_SHARE,
    HOT_LOW_RATE,
    RESPONSIVE_HIGH_RATE,
    RESPONSIVE_HIGH_SHARE,
    RESPONSIVE_LOW_RATE,
    ThreadClassification,
    evaluate_thread_relevance,
    get_thread_odds,
)


# =============================================================================
# Helpers
# =============================================================================


def closed_form(share: float, high: float, low: float, n: int) -> float:
    """Evaluate the two-population mixture directly."""
    return share * (1 - (1 - high) ** n) + (1 - share) * (1 - (1 - low) ** n)


# =============================================================================
# Odds Tests
# =============================================================================


class TestGetThreadOdds:
    """Tests for get_thread_odds."""

    @pytest.mark.parametrize("n", [1, 2, 10, 50, 1000])
    def test_matches_closed_form(self, n: int) -> None:
        """Test that the odds equal the mixture formula."""
        odds = get_thread_odds(n)
        assert odds.responsive == pytest.approx(
            closed_form(RESPONSIVE_HIGH_SHARE, RESPONSIVE_HIGH_RATE, RESPONSIVE_LOW_RATE, n)
        )
        assert odds.hot == pytest.approx(
            closed_form(HOT_HIGH_SHARE, HOT_HIGH_RATE, HOT_LOW_RATE, n)
        )

    def test_thousand_message_thread(self) -> None:
        """Test the odds for a very long thread."""
        odds = get_thread_odds(1000)
        assert odds.responsive == pytest.approx(0.4418, abs=1e-3)
        assert odds.hot == pytest.approx(0.0839, abs=1e-3)

    def test_single_message_thread(self) -> None:
        """Test the odds for a one-message thread."""
        odds = get_thread_odds(1)
        assert odds.responsive == pytest.approx(
            RESPONSIVE_HIGH_SHARE * 0.12 + (1 - RESPONSIVE_HIGH_SHARE) * 0.0005
        )
        assert odds.hot < odds.responsive

    def test_curves_monotone_and_ordered(self) -> None:
        """Test that both curves rise with length and hot stays below responsive."""
        previous = get_thread_odds(1)
        for n in range(2, 300):
            odds = get_thread_odds(n)
            assert odds.responsive >= previous.responsive
            assert odds.hot >= previous.hot
            assert 0.0 <= odds.hot <= odds.responsive <= 1.0
            previous = odds

    @pytest.mark.parametrize("n", [0, -5])
    def test_non_positive_count_raises(self, n: int) -> None:
        """Test that thread lengths must be positive."""
        with pytest.raises(ValueError, match="Thread email count must be positive"):
            get_thread_odds(n)


# =============================================================================
# Classification Tests
# =============================================================================


class TestEvaluateThreadRelevance:
    """Tests for evaluate_thread_relevance."""

    def test_low_rolls_are_hot(self) -> None:
        """Test that zero rolls classify as hot and responsive."""
        assert evaluate_thread_relevance(5, 0.0, 0.0) == ThreadClassification(
            relevance="responsive", is_hot=True
        )

    def test_high_rolls_are_non_responsive(self) -> None:
        """Test that maximal rolls classify as non-responsive."""
        assert evaluate_thread_relevance(5, 1.0, 1.0) == ThreadClassification(
            relevance="non_responsive", is_hot=False
        )

    def test_hot_forces_responsive(self) -> None:
        """Test that a hot roll overrides a failed responsive roll."""
        result = evaluate_thread_relevance(3, responsive_roll=0.99, hot_roll=0.0)
        assert result.relevance == "responsive"
        assert result.is_hot is True

    def test_roll_equal_to_odds_counts(self) -> None:
        """Test that a roll exactly at the probability is a hit."""
        odds = get_thread_odds(4)
        result = evaluate_thread_relevance(4, odds.responsive, 1.0)
        assert result.relevance == "responsive"
        assert result.is_hot is False

    @pytest.mark.parametrize(
        "responsive_roll,hot_roll",
        [(-0.01, 0.5), (1.01, 0.5), (0.5, -0.01), (0.5, 1.5)],
    )
    def test_out_of_range_roll_raises(self, responsive_roll: float, hot_roll: float) -> None:
        """Test that rolls outside [0, 1] are rejected."""
        with pytest.raises(ValueError, match="Roll must be between 0.0 and 1.0"):
            evaluate_thread_relevance(5, responsive_roll, hot_roll)

    def test_hot_implies_responsive_grid(self) -> None:
        """Test the hot-implies-responsive invariant over a grid of inputs."""
        for n in (1, 3, 20, 200):
            for i in range(11):
                for j in range(11):
                    result = evaluate_thread_relevance(n, i / 10, j / 10)
                    if result.is_hot:
                        assert result.relevance == "responsive"
