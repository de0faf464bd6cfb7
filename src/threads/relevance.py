"""Thread relevance model.

Legal-discovery relevance is rare per message but accumulates over long
conversations. The model treats the thread population as a mixture of two
sub-populations: a small group of threads whose every message has a high
chance of touching the matter, and a large majority where that chance is
tiny. Within each group a thread of ``n`` messages is relevant with
probability ``1 - (1 - p)^n``.

Functions:
    get_thread_odds: Responsive and hot probabilities for a thread length.
    evaluate_thread_relevance: Classify a thread from two uniform rolls.

Example:
    >>> odds = get_thread_odds(1000)
    >>> round(odds.responsive, 3), round(odds.hot, 3)
    (0.442, 0.084)
    >>> evaluate_thread_relevance(3, responsive_roll=0.99, hot_roll=0.0)
    ThreadClassification(relevance='responsive', is_hot=True)
"""

from __future__ import annotations

from typing import NamedTuple

from src.threads.models import ThreadRelevance


# =============================================================================
# Constants
# =============================================================================

# Responsive mixture: share of the high-rate group and per-message rates
RESPONSIVE_HIGH_SHARE = 0.0794979079497908
RESPONSIVE_HIGH_RATE = 0.12
RESPONSIVE_LOW_RATE = 0.0005

# Hot mixture
HOT_HIGH_SHARE = 0.06542056074766354
HOT_HIGH_RATE = 0.015
HOT_LOW_RATE = 0.00002


class ThreadOdds(NamedTuple):
    """Probabilities that a thread is responsive and hot."""

    responsive: float
    hot: float


class ThreadClassification(NamedTuple):
    """Outcome of classifying one thread."""

    relevance: ThreadRelevance
    is_hot: bool


def _mixture(share: float, high_rate: float, low_rate: float, email_count: int) -> float:
    return share * (1 - (1 - high_rate) ** email_count) + (1 - share) * (
        1 - (1 - low_rate) ** email_count
    )


def get_thread_odds(email_count: int) -> ThreadOdds:
    """Return the responsive and hot probabilities for a thread length.

    Both curves are non-decreasing in ``email_count`` and the hot probability
    never exceeds the responsive one.

    Args:
        email_count: Number of messages in the thread.

    Returns:
        The thread's ``ThreadOdds``.

    Raises:
        ValueError: If email_count is not positive.
    """
    if email_count <= 0:
        raise ValueError("Thread email count must be positive.")

    return ThreadOdds(
        responsive=_mixture(
            RESPONSIVE_HIGH_SHARE, RESPONSIVE_HIGH_RATE, RESPONSIVE_LOW_RATE, email_count
        ),
        hot=_mixture(HOT_HIGH_SHARE, HOT_HIGH_RATE, HOT_LOW_RATE, email_count),
    )


def evaluate_thread_relevance(
    email_count: int,
    responsive_roll: float,
    hot_roll: float,
) -> ThreadClassification:
    """Classify a thread from two independent uniform rolls.

    A thread is hot when ``hot_roll`` falls at or under the hot probability.
    It is responsive when ``responsive_roll`` falls at or under the
    responsive probability, or whenever it is hot.

    Args:
        email_count: Number of messages in the thread.
        responsive_roll: Uniform draw in ``[0, 1]``.
        hot_roll: Uniform draw in ``[0, 1]``.

    Returns:
        The ``ThreadClassification``.

    Raises:
        ValueError: If a roll is outside ``[0, 1]`` or email_count is not
            positive.
    """
    if not 0.0 <= responsive_roll <= 1.0:
        raise ValueError("Roll must be between 0.0 and 1.0.")
    if not 0.0 <= hot_roll <= 1.0:
        raise ValueError("Roll must be between 0.0 and 1.0.")

    odds = get_thread_odds(email_count)
    is_hot = hot_roll <= odds.hot
    is_responsive = responsive_roll <= odds.responsive or is_hot

    relevance: ThreadRelevance = "responsive" if is_responsive else "non_responsive"
    return ThreadClassification(relevance=relevance, is_hot=is_hot)
