"""Storyline-level thread planning.

Ties the generator and planner together for a whole storyline: first every
beat is given its email volume and classified threads, then every thread is
staffed, windowed inside its beat and given a structure plan.

Classes:
    PlannedThread: A thread ready for content generation.

Functions:
    plan_storyline_threads: Create classified threads for every beat.
    build_thread_plans: Staff and structure-plan every thread.
    count_branches: Number of branch points in a plan.

Example:
    >>> config = GenerationConfig(generation_seed=42)
    >>> plan_storyline_threads(storyline, key_role_count=6, config=config)
    >>> planned = build_thread_plans(storyline, storyline.organizations, config)
    >>> sum(p.email_count for p in planned) == storyline.email_count
    True
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from src.common.config import GenerationConfig, resolve_generation_seed, validate_config
from src.common.dates import interpolate_date_in_range
from src.common.deterministic import create_random, create_seed
from src.threads.errors import ThreadPlanningError
from src.threads.generator import EmailThreadGenerator, ensure_placeholder_messages
from src.threads.models import EmailThread, Organization, StoryBeat, Storyline
from src.threads.plan import ThreadStructurePlan
from src.threads.planner import build_plan


logger = logging.getLogger(__name__)


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class PlannedThread:
    """A staffed, structure-planned thread.

    Attributes:
        index: Position of the thread across the whole storyline.
        thread: The thread itself, with participants assigned.
        email_count: Number of messages planned.
        start_date: Start of the thread's window inside its beat.
        end_date: End of that window.
        beat_name: Name of the owning beat.
        structure_plan: The per-message structure plan.
        branch_count: Number of branch points in the plan.
        thread_seed: Seed for content generation of this thread.
    """

    index: int
    thread: EmailThread
    email_count: int
    start_date: datetime
    end_date: datetime
    beat_name: str
    structure_plan: ThreadStructurePlan
    branch_count: int
    thread_seed: int

    def __post_init__(self) -> None:
        """Validate that the plan covers every planned message."""
        if len(self.structure_plan.slots) != self.email_count:
            raise ValueError(
                f"Structure plan has {len(self.structure_plan.slots)} slots, "
                f"expected {self.email_count}"
            )


# =============================================================================
# Helper Functions
# =============================================================================


def count_branches(plan: ThreadStructurePlan) -> int:
    """Count slots whose parent is not the immediately preceding slot."""
    branches = 0
    for previous, slot in zip(plan.slots, plan.slots[1:]):
        if slot.parent_email_id is not None and slot.parent_email_id != previous.email_id:
            branches += 1
    return branches


def _beat_needs_planning(beat: StoryBeat) -> bool:
    if beat.email_count <= 0:
        if beat.threads:
            raise ThreadPlanningError(f"Story beat '{beat.name}' has threads but zero planned emails.")
        return False

    if not beat.threads:
        raise ThreadPlanningError(f"Story beat '{beat.name}' has no planned threads.")
    return True


def _check_thread_belongs_to_beat(thread: EmailThread, beat: StoryBeat, storyline: Storyline) -> None:
    if not thread.email_messages:
        raise ThreadPlanningError(f"Story beat '{beat.name}' has a thread with no planned emails.")
    if thread.story_beat_id != beat.id:
        raise ThreadPlanningError(
            f"Story beat '{beat.name}' has a thread with an unexpected story beat id."
        )
    if thread.storyline_id != beat.storyline_id or thread.storyline_id != storyline.id:
        raise ThreadPlanningError(
            f"Story beat '{beat.name}' has a thread with an unexpected storyline id."
        )


# =============================================================================
# Pipeline Functions
# =============================================================================


def plan_storyline_threads(
    storyline: Storyline,
    key_role_count: int,
    generation_seed: int | None = None,
    generator: EmailThreadGenerator | None = None,
    config: GenerationConfig | None = None,
) -> None:
    """Give every beat of the storyline its email volume and threads.

    Uses one random stream scoped to the storyline, so storylines can be
    planned in any order.

    Args:
        storyline: Storyline whose beats are mutated in place.
        key_role_count: Number of key roles active in the storyline.
        generation_seed: Run-wide seed. Defaults to the configured seed.
        generator: Thread generator to use. Defaults to a new one.
        config: Configuration supplying the seed when none is given.
            Defaults to one loaded from the environment.
    """
    generator = generator or EmailThreadGenerator()
    seed = resolve_generation_seed(generation_seed, config)
    rng = create_random("storyline-threads", str(seed), storyline.id.hex)

    generator.plan_threads_for_beats(storyline.beats, key_role_count, rng)

    logger.info(
        "Planned storyline '%s': %d emails in %d threads across %d beats",
        storyline.title,
        storyline.email_count,
        storyline.thread_count,
        len(storyline.beats),
    )


def build_thread_plans(
    storyline: Storyline,
    organizations: Sequence[Organization],
    config: GenerationConfig,
    generation_seed: int | None = None,
    generator: EmailThreadGenerator | None = None,
) -> list[PlannedThread]:
    """Staff and structure-plan every thread of a storyline.

    Each thread gets a window inside its beat proportional to its share of
    the beat's emails, a participant selection from its own random stream,
    and a structure plan. Configuration warnings are logged before planning.

    Args:
        storyline: Storyline whose beats already carry threads.
        organizations: Organization roster for participant selection.
        config: Attachment settings and default seed.
        generation_seed: Run-wide seed. Defaults to
            ``config.generation_seed``.
        generator: Thread generator to use. Defaults to a new one.

    Returns:
        One ``PlannedThread`` per thread, in beat then thread order.

    Raises:
        ThreadPlanningError: If a beat's threads disagree with its email
            count or a thread does not belong to its beat.
    """
    generator = generator or EmailThreadGenerator()
    seed = resolve_generation_seed(generation_seed, config)
    for warning in validate_config(config):
        logger.warning("Configuration warning: %s", warning)

    planned: list[PlannedThread] = []

    for beat in storyline.beats:
        if not _beat_needs_planning(beat):
            continue

        emails_assigned = 0
        for thread in beat.threads:
            _check_thread_belongs_to_beat(thread, beat, storyline)

            email_count = len(thread.email_messages)
            start = interpolate_date_in_range(
                beat.start_date, beat.end_date, emails_assigned / beat.email_count
            )
            end = interpolate_date_in_range(
                beat.start_date, beat.end_date, (emails_assigned + email_count) / beat.email_count
            )

            participant_rng = create_random(
                "thread-participants", str(seed), thread.id.hex
            )
            generator.assign_thread_participants(thread, organizations, participant_rng)
            ensure_placeholder_messages(thread, email_count)

            structure_plan = build_plan(thread, email_count, start, end, config, seed)
            branch_count = count_branches(structure_plan)
            logger.debug(
                "Created structure plan for thread %s: %d emails, %d branches",
                thread.id,
                email_count,
                branch_count,
            )

            planned.append(
                PlannedThread(
                    index=len(planned),
                    thread=thread,
                    email_count=email_count,
                    start_date=start,
                    end_date=end,
                    beat_name=beat.name,
                    structure_plan=structure_plan,
                    branch_count=branch_count,
                    thread_seed=create_seed("thread-gen", str(seed), thread.id.hex),
                )
            )
            emails_assigned += email_count

        if emails_assigned != beat.email_count:
            raise ThreadPlanningError(
                f"Story beat '{beat.name}' planned {beat.email_count} emails but its "
                f"threads hold {emails_assigned}."
            )

    logger.info("Built %d thread plans for storyline '%s'", len(planned), storyline.title)
    return planned
