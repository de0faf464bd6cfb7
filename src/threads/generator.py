"""Email thread generator for story beats.

This module turns story beats into classified, staffed email threads. For
each beat it samples an email volume, partitions it into threads, draws each
thread's scope and relevance, and creates the placeholder messages that the
content stage will later fill. A one-shot repair pass then guarantees that
every beat carries something relevant and that the storyline contains at
least one hot thread.

Classes:
    EmailThreadGenerator: Plans, classifies and staffs threads for beats.

Example:
    >>> import random
    >>> generator = EmailThreadGenerator()
    >>> generator.plan_threads_for_beats(beats, key_role_count=6, rng=random.Random(1))
    >>> any(t.is_hot for beat in beats for t in beat.threads)
    True
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from src.common.dates import build_thread_size_plan, calculate_email_count_for_range
from src.common.deterministic import create_uuid
from src.threads.errors import MissingStorylineError, PlaceholderMismatchError
from src.threads.models import EmailMessage, EmailThread, Organization, StoryBeat
from src.threads.participants import ParticipantSelector
from src.threads.relevance import evaluate_thread_relevance


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

INTERNAL_THREAD_ODDS = 0.7


# =============================================================================
# Placeholder Helpers
# =============================================================================


def _build_placeholders(thread: EmailThread, email_count: int) -> list[EmailMessage]:
    return [
        EmailMessage(
            id=create_uuid("email-message", thread.id.hex, str(index)),
            email_thread_id=thread.id,
            story_beat_id=thread.story_beat_id,
            storyline_id=thread.storyline_id,
            sequence_in_thread=index,
        )
        for index in range(email_count)
    ]


def ensure_placeholder_messages(thread: EmailThread, email_count: int) -> None:
    """Make sure the thread holds exactly ``email_count`` placeholders.

    Does nothing when the count already matches and creates the placeholders
    when the thread is empty.

    Args:
        thread: The thread to fill.
        email_count: Planned number of messages.

    Raises:
        ValueError: If email_count is not positive.
        PlaceholderMismatchError: If the thread already holds a different,
            non-zero number of messages.
    """
    if email_count <= 0:
        raise ValueError("Thread email count must be positive.")

    existing = len(thread.email_messages)
    if existing == email_count:
        return
    if existing > 0:
        raise PlaceholderMismatchError(
            f"Thread placeholder count ({existing}) does not match planned "
            f"email count ({email_count}).",
            expected=email_count,
            actual=existing,
        )

    thread.email_messages = _build_placeholders(thread, email_count)


def reset_thread_for_retry(thread: EmailThread, email_count: int) -> None:
    """Discard the thread's messages and rebuild ``email_count`` placeholders.

    Raises:
        ValueError: If email_count is not positive.
    """
    if email_count <= 0:
        raise ValueError("Thread email count must be positive.")

    thread.email_messages = _build_placeholders(thread, email_count)


# =============================================================================
# EmailThreadGenerator Class
# =============================================================================


class EmailThreadGenerator:
    """Plans, classifies and staffs email threads for story beats.

    The generator owns no random state. Every method that draws takes the
    caller's ``random.Random``, so the caller decides how streams are split
    between independent planning units.

    Attributes:
        participant_selector: Selector used to staff threads.
    """

    def __init__(self, participant_selector: ParticipantSelector | None = None) -> None:
        """Initialize the generator.

        Args:
            participant_selector: Selector used to staff threads. Defaults to
                a new ``ParticipantSelector``.
        """
        self._participant_selector = participant_selector or ParticipantSelector()

    @property
    def participant_selector(self) -> ParticipantSelector:
        """Return the participant selector."""
        return self._participant_selector

    # =========================================================================
    # Public Methods
    # =========================================================================

    def plan_threads_for_beats(
        self,
        beats: Sequence[StoryBeat],
        key_role_count: int,
        rng: random.Random,
    ) -> None:
        """Set each beat's email volume and threads, then repair coverage.

        Args:
            beats: Beats of one storyline, in narrative order. Mutated in
                place.
            key_role_count: Number of key roles active in the storyline.
            rng: Random stream for volumes, sizes, scopes and rolls.

        Raises:
            ValueError: If key_role_count is not positive.
            MissingStorylineError: If a beat has no storyline id.
        """
        if key_role_count <= 0:
            raise ValueError("Key role count must be positive.")

        for beat in beats:
            beat.email_count = calculate_email_count_for_range(
                beat.start_date.date(),
                beat.end_date.date(),
                key_role_count,
                rng,
            )
            beat.threads = self._create_threads(beat, rng)
            logger.debug(
                "Planned beat '%s': %d emails in %d threads",
                beat.name,
                beat.email_count,
                len(beat.threads),
            )

        self._ensure_thread_relevance_coverage(beats, rng)

    def assign_thread_participants(
        self,
        thread: EmailThread,
        organizations: Sequence[Organization],
        rng: random.Random,
    ) -> None:
        """Select organizations, characters and roles for a thread.

        See ``ParticipantSelector.assign``.
        """
        self._participant_selector.assign(thread, organizations, rng)

    # =========================================================================
    # Thread Creation
    # =========================================================================

    def _create_threads(self, beat: StoryBeat, rng: random.Random) -> list[EmailThread]:
        if beat.storyline_id is None:
            raise MissingStorylineError(
                f"Story beat '{beat.name}' is missing a storyline id.",
                beat_name=beat.name,
            )

        threads: list[EmailThread] = []
        for position, size in enumerate(build_thread_size_plan(beat.email_count, rng)):
            thread = EmailThread(
                id=create_uuid("email-thread", beat.id.hex, str(position)),
                story_beat_id=beat.id,
                storyline_id=beat.storyline_id,
            )
            thread.scope = "internal" if rng.random() < INTERNAL_THREAD_ODDS else "external"
            thread.email_messages = _build_placeholders(thread, size)

            classification = evaluate_thread_relevance(
                len(thread.email_messages),
                rng.random(),
                rng.random(),
            )
            thread.relevance = classification.relevance
            thread.is_hot = classification.is_hot

            threads.append(thread)

        return threads

    # =========================================================================
    # Coverage Repair
    # =========================================================================

    def _ensure_thread_relevance_coverage(
        self,
        beats: Sequence[StoryBeat],
        rng: random.Random,
    ) -> None:
        # One-shot pass; it only ever promotes
        beats_with_threads = [beat for beat in beats if beat.threads]
        if not beats_with_threads:
            return

        for beat in beats_with_threads:
            if not any(thread.is_relevant for thread in beat.threads):
                promoted = self._select_thread_for_promotion(beat.threads, rng)
                promoted.relevance = "responsive"
                logger.warning(
                    "Promoted thread %s to responsive to cover beat '%s'",
                    promoted.id,
                    beat.name,
                )

        if not any(thread.is_hot for beat in beats_with_threads for thread in beat.threads):
            beat = beats_with_threads[len(beats_with_threads) // 2]
            promoted = self._select_thread_for_promotion(beat.threads, rng)
            promoted.relevance = "responsive"
            promoted.is_hot = True
            logger.warning(
                "Promoted thread %s in beat '%s' to hot; storyline had none",
                promoted.id,
                beat.name,
            )

    @staticmethod
    def _select_thread_for_promotion(
        threads: Sequence[EmailThread],
        rng: random.Random,
    ) -> EmailThread:
        if len(threads) == 1:
            return threads[0]
        return threads[rng.randrange(len(threads))]
