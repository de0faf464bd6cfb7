"""Reply graph of a planned thread.

Once a ``ThreadStructurePlan`` has been stamped onto a thread's messages,
``ThreadGraph`` gives a navigable view of the conversation: which message
answers which, and in what order the messages were sent.

Classes:
    ThreadGraph: Parent/child links and chronological order of a thread.

Functions:
    apply_structure_plan: Copy a plan's slot data onto the thread's messages.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from src.threads.errors import PlaceholderMismatchError
from src.threads.models import EmailMessage, EmailThread
from src.threads.plan import ThreadStructurePlan


def apply_structure_plan(thread: EmailThread, plan: ThreadStructurePlan) -> None:
    """Stamp each plan slot onto the message at the same position.

    Message ids, sequence numbers, parent/root/branch ids, send dates and
    planned attachment flags are all overwritten.

    Args:
        thread: Thread whose placeholders receive the plan.
        plan: Plan built for this thread.

    Raises:
        PlaceholderMismatchError: If the message and slot counts differ.
    """
    if len(thread.email_messages) != len(plan.slots):
        raise PlaceholderMismatchError(
            f"Thread placeholder count ({len(thread.email_messages)}) does not match "
            f"plan slot count ({len(plan.slots)}).",
            expected=len(plan.slots),
            actual=len(thread.email_messages),
        )

    for message, slot in zip(thread.email_messages, plan.slots):
        message.id = slot.email_id
        message.sequence_in_thread = slot.index
        message.parent_email_id = slot.parent_email_id
        message.root_email_id = slot.root_email_id
        message.branch_id = slot.branch_id
        message.sent_date = slot.sent_date
        message.planned_has_document = slot.attachments.has_document
        message.planned_document_type = slot.attachments.document_type
        message.planned_has_image = slot.attachments.has_image
        message.planned_is_image_inline = slot.attachments.is_image_inline
        message.planned_has_voicemail = slot.attachments.has_voicemail


def _chronological_key(
    message: EmailMessage,
) -> tuple[bool, datetime | None, int, uuid.UUID]:
    # Undated messages sort first; dates are never compared with None
    return (
        message.sent_date is not None,
        message.sent_date,
        message.sequence_in_thread,
        message.id,
    )


@dataclass
class ThreadGraph:
    """Navigable reply structure of one thread.

    Attributes:
        thread_id: The thread this graph describes.
        root_email_id: First message without a parent, or the first message
            when every message has one. None for an empty thread.
        nodes: Messages keyed by id.
        children_by_parent: Child ids per parent id, ordered by send date,
            then sequence, then id.
        chronological_order: All message ids in the same order.

    Example:
        >>> graph = ThreadGraph.build(thread)
        >>> graph.chronological_order[0] == graph.root_email_id
        True
    """

    thread_id: uuid.UUID
    root_email_id: uuid.UUID | None
    nodes: dict[uuid.UUID, EmailMessage] = field(default_factory=dict)
    children_by_parent: dict[uuid.UUID, list[uuid.UUID]] = field(default_factory=dict)
    chronological_order: list[uuid.UUID] = field(default_factory=list)

    @classmethod
    def build(cls, thread: EmailThread) -> ThreadGraph:
        """Build the graph from a thread's current messages."""
        messages = thread.email_messages
        nodes = {message.id: message for message in messages}

        children_by_parent: dict[uuid.UUID, list[uuid.UUID]] = {}
        for message in messages:
            if message.parent_email_id is None:
                continue
            children_by_parent.setdefault(message.parent_email_id, []).append(message.id)

        for children in children_by_parent.values():
            children.sort(key=lambda child_id: _chronological_key(nodes[child_id]))

        chronological = [message.id for message in sorted(messages, key=_chronological_key)]

        root_email_id = next(
            (message.id for message in messages if message.parent_email_id is None),
            messages[0].id if messages else None,
        )

        return cls(
            thread_id=thread.id,
            root_email_id=root_email_id,
            nodes=nodes,
            children_by_parent=children_by_parent,
            chronological_order=chronological,
        )

    def children_of(self, email_id: uuid.UUID) -> list[uuid.UUID]:
        """Return the ordered children of a message (empty for a leaf)."""
        return list(self.children_by_parent.get(email_id, []))

    def parent_of(self, email_id: uuid.UUID) -> EmailMessage | None:
        """Return the message that ``email_id`` answers, if it is in the graph."""
        message = self.nodes.get(email_id)
        if message is None or message.parent_email_id is None:
            return None
        return self.nodes.get(message.parent_email_id)
