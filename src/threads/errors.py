"""Exceptions raised by the thread planning engine.

All of these signal a broken local contract (bad input or a violated
invariant). None of them is transient, and nothing in the engine retries.

Classes:
    ThreadPlanningError: Base exception for planning errors.
    MissingStorylineError: A beat was planned without a storyline id.
    PlaceholderMismatchError: Message placeholders disagree with a count.
    PlanInvariantError: A generated topology broke the parent ordering.
"""

from __future__ import annotations


class ThreadPlanningError(Exception):
    """Base exception for thread planning errors.

    Attributes:
        message: Human-readable error message.
    """

    pass


class MissingStorylineError(ThreadPlanningError):
    """Raised when a story beat has no storyline identifier.

    Attributes:
        message: Human-readable error message.
        beat_name: Name of the offending beat.
    """

    def __init__(self, message: str, beat_name: str) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            beat_name: Name of the offending beat.
        """
        super().__init__(message)
        self.beat_name = beat_name


class PlaceholderMismatchError(ThreadPlanningError):
    """Raised when a thread's message count differs from the planned count.

    Attributes:
        message: Human-readable error message.
        expected: The planned email count.
        actual: The number of messages the thread already holds.
    """

    def __init__(self, message: str, expected: int, actual: int) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            expected: The planned email count.
            actual: The number of messages the thread already holds.
        """
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class PlanInvariantError(ThreadPlanningError):
    """Raised when a parent index is not strictly before its child."""

    pass
