"""Structure planner for a single email thread.

Given a staffed thread, a message count and a time window, the planner
decides everything about each message except its text: send dates, the
reply/forward topology, branch identifiers, narrative phase, intent and
attachment placement. The result is a frozen ``ThreadStructurePlan``.

Functions:
    build_plan: Produce the structure plan for one thread.
    calculate_attachment_totals: Document, image and voicemail counts.
    pick_attachment_slots: Spread attachments across message positions.
    resolve_branch_count: How many side branches a thread gets.
    build_parent_plan: Parent index per message.
    resolve_intent: New, reply or forward for one message.
    resolve_narrative_phase: Narrative position for one message.

Design Note:
    Each call draws from its own ``random.Random`` seeded from the generation
    seed and the thread id, so plans are reproducible and independent of the
    order in which threads are planned. The draw order (dates, topology,
    attachment slots, document types, inline flags, then per-message intent)
    is part of the contract: changing it changes every plan.

Example:
    >>> plan = build_plan(thread, 10, start, end, GenerationConfig(), generation_seed=42)
    >>> plan.slots[0].intent
    'new'
"""

from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import NamedTuple

from src.common.config import AttachmentType, GenerationConfig, resolve_generation_seed
from src.common.dates import distribute_dates_for_thread
from src.common.deterministic import create_seed, create_uuid
from src.threads.errors import PlanInvariantError
from src.threads.models import EmailThread
from src.threads.plan import (
    BEGINNING_PHASE,
    LATE_PHASE,
    MIDDLE_PHASE,
    SINGLE_PHASE,
    NarrativePhase,
    ThreadAttachmentPlan,
    ThreadEmailIntent,
    ThreadEmailSlotPlan,
    ThreadStructurePlan,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

BRANCH_POINT_FORWARD_ODDS = 0.45
CHAIN_FORWARD_ODDS = 0.12
INLINE_IMAGE_ODDS = 0.7

# Attachment slot sweep
FIRST_SLOT_ODDS = 0.75
SECOND_SLOT_ODDS = 0.35
LATER_SLOT_BASE_ODDS = 0.18
LATER_SLOT_RAMP = 0.6
SKIP_BOOST = 0.15
MAX_SKIP_BOOST = 0.45
MAX_SLOT_ODDS = 0.95

# Narrative phase boundaries, as a fraction of the thread
BEGINNING_CUTOFF = 0.34
LATE_CUTOFF = 0.66


# =============================================================================
# Attachment Planning
# =============================================================================


class AttachmentTotals(NamedTuple):
    """How many messages of a thread carry each attachment kind."""

    documents: int
    images: int
    voicemails: int


class _AttachmentAssignments(NamedTuple):
    document_slots: set[int]
    document_types: dict[int, AttachmentType]
    image_slots: set[int]
    inline_images: set[int]
    voicemail_slots: set[int]


def calculate_attachment_totals(config: GenerationConfig, email_count: int) -> AttachmentTotals:
    """Compute attachment counts for a thread of ``email_count`` messages.

    Percentages are rounded half to even. A thread with images enabled at a
    non-zero percentage always gets at least one image. Every total is
    clamped to ``email_count``.

    Args:
        config: Generation settings.
        email_count: Number of messages in the thread.

    Returns:
        The ``AttachmentTotals``.
    """
    documents = 0
    if config.attachment_percentage > 0 and config.enabled_attachment_types:
        documents = max(0, round(email_count * config.attachment_percentage / 100.0))

    images = 0
    if config.include_images and config.image_percentage > 0:
        images = max(1, round(email_count * config.image_percentage / 100.0))

    voicemails = 0
    if config.include_voicemails and config.voicemail_percentage > 0:
        voicemails = max(0, round(email_count * config.voicemail_percentage / 100.0))

    return AttachmentTotals(
        documents=min(documents, email_count),
        images=min(images, email_count),
        voicemails=min(voicemails, email_count),
    )


def pick_attachment_slots(email_count: int, total: int, rng: random.Random) -> list[int]:
    """Choose which message positions carry an attachment kind.

    Positions are swept in order. The opening messages are likely picks and
    later ones grow more likely toward the end of the thread. Each skipped
    position raises the odds of the next, and a position is forced once the
    remaining attachments equal the remaining positions. Anything still
    unplaced after the sweep fills from the end backwards.

    Args:
        email_count: Number of messages in the thread.
        total: Number of attachments to place.
        rng: Random stream.

    Returns:
        Distinct slot indices in the order they were picked.
    """
    slots: list[int] = []
    if total <= 0:
        return slots

    remaining = min(total, email_count)
    boost = 0.0

    for index in range(email_count):
        if remaining <= 0:
            break

        if email_count - index == remaining:
            slots.append(index)
            remaining -= 1
            continue

        if index == 0:
            base = FIRST_SLOT_ODDS
        elif index == 1:
            base = SECOND_SLOT_ODDS
        else:
            base = LATER_SLOT_BASE_ODDS + LATER_SLOT_RAMP * index / max(1, email_count - 1)

        if rng.random() < min(MAX_SLOT_ODDS, base + boost):
            slots.append(index)
            remaining -= 1
            boost = 0.0
        else:
            boost = min(MAX_SKIP_BOOST, boost + SKIP_BOOST)

    taken = set(slots)
    for index in range(email_count - 1, -1, -1):
        if remaining <= 0:
            break
        if index not in taken:
            slots.append(index)
            taken.add(index)
            remaining -= 1

    return slots


def _build_attachment_assignments(
    email_count: int,
    config: GenerationConfig,
    rng: random.Random,
) -> _AttachmentAssignments:
    totals = calculate_attachment_totals(config, email_count)

    document_slots = pick_attachment_slots(email_count, totals.documents, rng)
    image_slots = (
        pick_attachment_slots(email_count, totals.images, rng) if config.include_images else []
    )
    voicemail_slots = (
        pick_attachment_slots(email_count, totals.voicemails, rng)
        if config.include_voicemails
        else []
    )

    document_types: dict[int, AttachmentType] = {}
    enabled_types = config.enabled_attachment_types
    if document_slots and enabled_types:
        for slot in document_slots:
            document_types[slot] = enabled_types[rng.randrange(len(enabled_types))]

    inline_images = {slot for slot in image_slots if rng.random() < INLINE_IMAGE_ODDS}

    return _AttachmentAssignments(
        document_slots=set(document_slots),
        document_types=document_types,
        image_slots=set(image_slots),
        inline_images=inline_images,
        voicemail_slots=set(voicemail_slots),
    )


def _attachment_plan_for_slot(
    index: int,
    assignments: _AttachmentAssignments,
    config: GenerationConfig,
) -> ThreadAttachmentPlan:
    has_document = index in assignments.document_slots
    has_image = config.include_images and index in assignments.image_slots
    return ThreadAttachmentPlan(
        has_document=has_document,
        document_type=assignments.document_types.get(index) if has_document else None,
        has_image=has_image,
        is_image_inline=has_image and index in assignments.inline_images,
        has_voicemail=config.include_voicemails and index in assignments.voicemail_slots,
    )


# =============================================================================
# Topology
# =============================================================================


def resolve_branch_count(email_count: int, rng: random.Random) -> int:
    """Return how many side branches a thread of ``email_count`` gets (0-2).

    Threads under five messages never branch and do not consume a draw.
    """
    if email_count < 5:
        return 0
    if email_count < 8:
        return 1 if rng.random() < 0.6 else 0
    if email_count < 12:
        return 1 if rng.random() < 0.7 else 2
    return 1 if rng.random() < 0.4 else 2


def build_parent_plan(email_count: int, rng: random.Random) -> list[int]:
    """Return the parent index of every message, with -1 for the root.

    The thread starts as a linear chain. Each branch re-parents a randomly
    chosen message (index 2 or later) onto an earlier message that is not
    its immediate predecessor. A message chosen twice is skipped.

    Raises:
        PlanInvariantError: If a parent would not precede its child.
    """
    parents = [index - 1 for index in range(email_count)]

    branch_count = resolve_branch_count(email_count, rng)
    used_children: set[int] = set()
    for _ in range(branch_count):
        if email_count < 3:
            break

        child = rng.randrange(2, email_count)
        if child in used_children:
            continue
        used_children.add(child)

        parent = rng.randrange(0, child - 1)
        if parent == child - 1:
            parent = max(0, parent - 1)
        if parent >= child:
            raise PlanInvariantError(
                f"Parent index {parent} does not precede child index {child}"
            )

        parents[child] = parent

    return parents


def resolve_intent(index: int, parent_index: int, rng: random.Random) -> ThreadEmailIntent:
    """Return whether a message starts, replies to, or forwards its parent.

    The root is always "new" and consumes no draw. Branch points forward
    more often than chain continuations.
    """
    if index == 0 or parent_index < 0:
        return "new"

    odds = BRANCH_POINT_FORWARD_ODDS if parent_index != index - 1 else CHAIN_FORWARD_ODDS
    return "forward" if rng.random() < odds else "reply"


def resolve_narrative_phase(index: int, total: int) -> NarrativePhase:
    """Return the narrative phase of position ``index`` in a thread of ``total``."""
    if total <= 1:
        return SINGLE_PHASE

    fraction = index / max(1, total - 1)
    if fraction < BEGINNING_CUTOFF:
        return BEGINNING_PHASE
    if fraction > LATE_CUTOFF:
        return LATE_PHASE
    return MIDDLE_PHASE


# =============================================================================
# Plan Assembly
# =============================================================================


def _resolve_email_ids(thread: EmailThread, email_count: int) -> list[uuid.UUID]:
    if len(thread.email_messages) == email_count:
        return [message.id for message in thread.email_messages]
    return [
        create_uuid("email-message", thread.id.hex, str(index)) for index in range(email_count)
    ]


def _pad_dates(dates: Sequence[datetime], email_count: int, end: datetime) -> list[datetime]:
    padded = list(dates)
    while len(padded) < email_count:
        padded.append(end)
    return padded


def build_plan(
    thread: EmailThread,
    email_count: int,
    start: datetime,
    end: datetime,
    config: GenerationConfig,
    generation_seed: int | None = None,
) -> ThreadStructurePlan:
    """Build the structure plan for one thread.

    Args:
        thread: The thread being planned. Its placeholder ids are reused when
            their count equals ``email_count``.
        email_count: Number of messages to plan.
        start: Thread window start.
        end: Thread window end.
        config: Attachment settings.
        generation_seed: Run-wide seed. Defaults to
            ``config.generation_seed``.

    Returns:
        A ``ThreadStructurePlan`` whose slots are indexed ``0..email_count-1``.

    Raises:
        ValueError: If email_count is not positive.
        PlanInvariantError: If the generated topology is inconsistent.
    """
    if email_count <= 0:
        raise ValueError("Thread email count must be positive.")

    seed = resolve_generation_seed(generation_seed, config)
    rng = random.Random(create_seed("thread-plan", str(seed), thread.id.hex))

    dates = _pad_dates(distribute_dates_for_thread(email_count, start, end, rng), email_count, end)
    parents = build_parent_plan(email_count, rng)
    assignments = _build_attachment_assignments(email_count, config, rng)

    email_ids = _resolve_email_ids(thread, email_count)
    root_email_id = email_ids[0]
    branch_ids = [create_uuid("email-branch", thread.id.hex, "root")]

    slots: list[ThreadEmailSlotPlan] = []
    for index in range(email_count):
        parent_index = parents[index]
        if index > 0:
            if parent_index == index - 1:
                branch_ids.append(branch_ids[parent_index])
            else:
                branch_ids.append(
                    create_uuid("email-branch", thread.id.hex, str(parent_index), str(index))
                )

        slots.append(
            ThreadEmailSlotPlan(
                index=index,
                email_id=email_ids[index],
                parent_email_id=email_ids[parent_index] if parent_index >= 0 else None,
                root_email_id=root_email_id,
                branch_id=branch_ids[index],
                sent_date=dates[index],
                narrative_phase=resolve_narrative_phase(index, email_count),
                intent=resolve_intent(index, parent_index, rng),
                attachments=_attachment_plan_for_slot(index, assignments, config),
            )
        )

    branch_count = sum(1 for index, parent in enumerate(parents) if index > 0 and parent != index - 1)
    logger.debug(
        "Planned structure for thread %s: %d emails, %d branches",
        thread.id,
        email_count,
        branch_count,
    )

    return ThreadStructurePlan(thread_id=thread.id, root_email_id=root_email_id, slots=tuple(slots))
