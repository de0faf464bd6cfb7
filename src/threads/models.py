"""Domain models for storylines, organizations and email threads.

This module defines the object graph that the thread planning engine reads
and mutates. Organizations own departments, departments own roles, and roles
own characters. A storyline owns story beats, beats own email threads, and
threads own their placeholder email messages.

Models:
    Character: A simulated person with an email address
    Role: A position inside a department, holding characters
    Department: A unit of an organization, holding roles
    Organization: A company or firm participating in the storyline
    CharacterAssignment: A character together with its role/department/org
    EmailMessage: One placeholder slot in a thread
    EmailThread: One simulated conversation
    StoryBeat: A narrative time window containing threads
    Storyline: An ordered sequence of story beats

Design Note:
    Unlike the plan value types in ``plan.py``, these models are mutable:
    the thread generator fills in beat volumes, thread classification and
    participants in place, and the planner's output is later stamped onto
    messages. Relationships between messages are stored as ids, never as
    object references.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Type Aliases
# =============================================================================

ThreadScope = Literal["internal", "external"]
ThreadRelevance = Literal["responsive", "non_responsive"]


# =============================================================================
# Organization Models
# =============================================================================


class Character(BaseModel):
    """A simulated person who can send and receive email.

    Attributes:
        id: Stable identifier.
        role_id: Role the character currently holds.
        department_id: Department of that role.
        organization_id: Organization of that department.
        first_name: Given name.
        last_name: Family name.
        email: Email address; blank means the character cannot take part in
            threads.
        is_key_character: Whether the character is central to the storyline.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    role_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None
    organization_id: uuid.UUID | None = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    is_key_character: bool = False

    @property
    def full_name(self) -> str:
        """First and last name joined by a space."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def domain(self) -> str:
        """Domain part of the email address, or an empty string."""
        if "@" not in self.email:
            return ""
        return self.email.split("@", 1)[1]

    @property
    def has_usable_email(self) -> bool:
        """Whether the address is non-blank."""
        return bool(self.email.strip())

    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}>"


class Role(BaseModel):
    """A position inside a department."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = ""
    department_id: uuid.UUID | None = None
    organization_id: uuid.UUID | None = None
    characters: list[Character] = Field(default_factory=list)


class Department(BaseModel):
    """A unit of an organization."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = ""
    organization_id: uuid.UUID | None = None
    roles: list[Role] = Field(default_factory=list)


@dataclass(frozen=True)
class CharacterAssignment:
    """A character located in its organizational hierarchy."""

    character: Character
    role: Role
    department: Department
    organization: Organization


class Organization(BaseModel):
    """A company or firm taking part in the storyline.

    Attributes:
        id: Stable identifier.
        name: Display name.
        domain: Email domain.
        departments: Ordered departments, each holding roles and characters.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = ""
    domain: str = ""
    departments: list[Department] = Field(default_factory=list)

    def enumerate_characters(self) -> Iterator[CharacterAssignment]:
        """Yield every character with its role, department and organization.

        Order is department, then role, then character, as stored.
        """
        for department in self.departments:
            for role in department.roles:
                for character in role.characters:
                    yield CharacterAssignment(character, role, department, self)

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Thread Models
# =============================================================================


class EmailMessage(BaseModel):
    """A placeholder slot in a thread.

    Placeholders are created before any content exists. The structural fields
    (parent, root, branch, date, planned attachments) are stamped later from a
    ``ThreadStructurePlan``; subject and body belong to a downstream stage.

    Attributes:
        id: Stable identifier.
        email_thread_id: Owning thread.
        story_beat_id: Owning beat.
        storyline_id: Owning storyline.
        sequence_in_thread: Zero-based position in the thread.
        parent_email_id: Message this one replies to or forwards.
        root_email_id: First message of the thread.
        branch_id: Identifier of the reply chain this message belongs to.
        sent_date: Planned send time.
        planned_has_document: Whether a document attachment is planned.
        planned_document_type: Planned document type, if any.
        planned_has_image: Whether an image attachment is planned.
        planned_is_image_inline: Whether the planned image is inline.
        planned_has_voicemail: Whether a voicemail attachment is planned.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    email_thread_id: uuid.UUID | None = None
    story_beat_id: uuid.UUID | None = None
    storyline_id: uuid.UUID | None = None
    sequence_in_thread: int = Field(default=0, ge=0)

    parent_email_id: uuid.UUID | None = None
    root_email_id: uuid.UUID | None = None
    branch_id: uuid.UUID | None = None
    sent_date: datetime | None = None

    planned_has_document: bool = False
    planned_document_type: str | None = None
    planned_has_image: bool = False
    planned_is_image_inline: bool = False
    planned_has_voicemail: bool = False


class EmailThread(BaseModel):
    """One simulated email conversation.

    Attributes:
        id: Stable identifier.
        story_beat_id: Owning beat.
        storyline_id: Owning storyline.
        scope: "internal" (one organization) or "external" (several).
        relevance: Coarse legal-discovery label.
        is_hot: Fine-grained significance flag; implies responsive. The
            rule is checked on every assignment, so promote relevance first.
        topic: Free-form topic label.
        organization_participants: Organizations taking part.
        character_participants: Characters taking part.
        role_participants: Roles of the participating characters.
        email_messages: Owned placeholder messages, ordered by sequence.

    Example:
        >>> thread = EmailThread(relevance="responsive", is_hot=True)
        >>> thread.is_relevant
        True
    """

    model_config = ConfigDict(validate_assignment=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    story_beat_id: uuid.UUID | None = None
    storyline_id: uuid.UUID | None = None
    scope: ThreadScope = "internal"
    relevance: ThreadRelevance = "non_responsive"
    is_hot: bool = False
    topic: str = ""
    organization_participants: list[Organization] = Field(default_factory=list)
    character_participants: list[Character] = Field(default_factory=list)
    role_participants: list[Role] = Field(default_factory=list)
    email_messages: list[EmailMessage] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_hot_is_responsive(self) -> "EmailThread":
        """Ensure a hot thread is also responsive."""
        if self.is_hot and self.relevance != "responsive":
            raise ValueError("A hot thread must be responsive")
        return self

    @property
    def is_relevant(self) -> bool:
        """Whether the thread is responsive or hot."""
        return self.is_hot or self.relevance == "responsive"

    @property
    def email_count(self) -> int:
        """Number of messages in the thread."""
        return len(self.email_messages)

    def __str__(self) -> str:
        label = self.topic or "Untitled thread"
        return f"{label} ({self.email_count} messages)"


# =============================================================================
# Storyline Models
# =============================================================================


class StoryBeat(BaseModel):
    """A bounded narrative time window.

    Attributes:
        id: Stable identifier.
        storyline_id: Owning storyline; required before threads are planned.
        name: Short beat title.
        plot: Narrative summary of the beat.
        start_date: Window start.
        end_date: Window end.
        email_count: Target email volume, set by the thread generator.
        threads: Owned threads, set by the thread generator.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    storyline_id: uuid.UUID | None = None
    name: str = ""
    plot: str = ""
    start_date: datetime
    end_date: datetime
    email_count: int = Field(default=0, ge=0)
    threads: list[EmailThread] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_date_ordering(self) -> "StoryBeat":
        """Ensure start_date is not after end_date."""
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class Storyline(BaseModel):
    """An ordered sequence of story beats with its cast of organizations."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    title: str = ""
    summary: str = ""
    beats: list[StoryBeat] = Field(default_factory=list)
    organizations: list[Organization] = Field(default_factory=list)

    @property
    def email_count(self) -> int:
        """Total planned emails across all beats."""
        return sum(beat.email_count for beat in self.beats)

    @property
    def thread_count(self) -> int:
        """Total planned threads across all beats."""
        return sum(len(beat.threads) for beat in self.beats)

    def __str__(self) -> str:
        return self.title
