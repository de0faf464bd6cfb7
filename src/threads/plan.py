"""Structural plan value types produced by the thread structure planner.

A ``ThreadStructurePlan`` describes, for one thread, everything about each
message except its text: who it answers, which branch it belongs to, when it
is sent, what role it plays in the narrative and which attachments it
carries. Plans are transient; they are produced and consumed within one
planning call.

Models:
    NarrativePhase: Tag plus tone directive for one position in a thread
    ThreadAttachmentPlan: Attachment flags for one message
    ThreadEmailSlotPlan: Structural descriptor for one message
    ThreadStructurePlan: Ordered slots for a whole thread

Design Note:
    All models are frozen. Two plans built from identical inputs compare
    equal and serialize identically via ``model_dump_json()``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.common.config import AttachmentType


# =============================================================================
# Type Aliases
# =============================================================================

ThreadEmailIntent = Literal["new", "reply", "forward"]
NarrativePhaseTag = Literal["SINGLE", "BEGINNING", "MIDDLE", "LATE"]


# =============================================================================
# Narrative Phase
# =============================================================================


class NarrativePhase(BaseModel):
    """Narrative position of a message with its tone directive.

    Attributes:
        tag: Position label.
        directive: Short tone guidance for the content stage.
    """

    model_config = ConfigDict(frozen=True)

    tag: NarrativePhaseTag
    directive: str

    def __str__(self) -> str:
        return f"{self.tag} - {self.directive}"


SINGLE_PHASE = NarrativePhase(
    tag="SINGLE",
    directive="Introduce the conflict and leave open questions.",
)
BEGINNING_PHASE = NarrativePhase(
    tag="BEGINNING",
    directive="Set up the conflict and stakes.",
)
MIDDLE_PHASE = NarrativePhase(
    tag="MIDDLE",
    directive="Escalate tension and develop the conflict.",
)
LATE_PHASE = NarrativePhase(
    tag="LATE",
    directive="Escalate consequences without full resolution.",
)


# =============================================================================
# Slot Models
# =============================================================================


class ThreadAttachmentPlan(BaseModel):
    """Attachments planned for one message.

    A message may carry several attachment kinds at once.
    """

    model_config = ConfigDict(frozen=True)

    has_document: bool = False
    document_type: AttachmentType | None = None
    has_image: bool = False
    is_image_inline: bool = False
    has_voicemail: bool = False


class ThreadEmailSlotPlan(BaseModel):
    """Structural descriptor for one message in a thread.

    Attributes:
        index: Zero-based position in the thread.
        email_id: Identifier of the message occupying this slot.
        parent_email_id: Message this one answers; None only for index 0.
        root_email_id: First message of the thread.
        branch_id: Reply chain this message belongs to.
        sent_date: Planned send time.
        narrative_phase: Narrative position and tone directive.
        intent: Whether the message starts, replies to, or forwards.
        attachments: Planned attachments.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    email_id: uuid.UUID
    parent_email_id: uuid.UUID | None
    root_email_id: uuid.UUID
    branch_id: uuid.UUID
    sent_date: datetime
    narrative_phase: NarrativePhase
    intent: ThreadEmailIntent
    attachments: ThreadAttachmentPlan

    @model_validator(mode="after")
    def validate_parent_presence(self) -> "ThreadEmailSlotPlan":
        """Ensure only the first slot lacks a parent."""
        if self.index == 0 and self.parent_email_id is not None:
            raise ValueError("The first slot cannot have a parent")
        if self.index > 0 and self.parent_email_id is None:
            raise ValueError(f"Slot {self.index} must have a parent")
        return self


class ThreadStructurePlan(BaseModel):
    """Ordered structural plan for a whole thread.

    Attributes:
        thread_id: The planned thread.
        root_email_id: First message of the thread.
        slots: Per-message descriptors, sorted by index.

    Example:
        >>> plan.slots[0].intent
        'new'
        >>> plan.chronological_order[0] == plan.root_email_id
        True
    """

    model_config = ConfigDict(frozen=True)

    thread_id: uuid.UUID
    root_email_id: uuid.UUID
    slots: tuple[ThreadEmailSlotPlan, ...]

    @model_validator(mode="after")
    def validate_contiguous_indices(self) -> "ThreadStructurePlan":
        """Ensure slot indices are exactly 0..N-1 in order."""
        indices = [slot.index for slot in self.slots]
        if indices != list(range(len(self.slots))):
            raise ValueError(f"Slot indices must be contiguous from 0, got {indices}")
        return self

    @property
    def slot_lookup(self) -> dict[uuid.UUID, ThreadEmailSlotPlan]:
        """Slots keyed by email id."""
        return {slot.email_id: slot for slot in self.slots}

    @property
    def chronological_order(self) -> list[uuid.UUID]:
        """Email ids ordered by send date, then index."""
        ordered = sorted(self.slots, key=lambda slot: (slot.sent_date, slot.index))
        return [slot.email_id for slot in ordered]

    @property
    def parent_indices(self) -> list[int]:
        """Parent index per slot, with -1 for the root."""
        index_by_id = {slot.email_id: slot.index for slot in self.slots}
        return [
            -1 if slot.parent_email_id is None else index_by_id[slot.parent_email_id]
            for slot in self.slots
        ]
