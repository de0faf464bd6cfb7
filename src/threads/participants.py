"""Participant selection for email threads.

Chooses which organizations, characters and roles take part in a thread.
Internal threads stay inside one organization; external threads span two.
Threads that matter for discovery (responsive or hot) are steered toward
including a key character whenever the cast allows it.

Classes:
    ParticipantSelector: Staffs threads from an organization roster.

Functions:
    pick_random_distinct: Draw K distinct items by partial shuffle.
"""

from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Sequence
from typing import TypeVar

from src.threads.models import Character, EmailThread, Organization, Role


logger = logging.getLogger(__name__)

T = TypeVar("T")


# =============================================================================
# Constants
# =============================================================================

INTERNAL_MIN_CHARACTERS = 2
INTERNAL_MAX_CHARACTERS = 5
EXTERNAL_MIN_CHARACTERS_PER_ORG = 1
EXTERNAL_MAX_CHARACTERS_PER_ORG = 3
EXTERNAL_ORGANIZATION_COUNT = 2


# =============================================================================
# Helper Functions
# =============================================================================


def pick_random_distinct(items: Sequence[T], count: int, rng: random.Random) -> list[T]:
    """Draw ``count`` distinct items without replacement.

    Runs the first ``count`` steps of a Fisher-Yates shuffle on a copy, so
    only ``count`` random draws are consumed. When ``count`` covers the whole
    input, a copy is returned without drawing.

    Args:
        items: Candidates to draw from.
        count: Number of items wanted.
        rng: Random stream.

    Returns:
        The drawn items. Order is not meaningful.
    """
    if not items or count <= 0:
        return []
    if count >= len(items):
        return list(items)

    pool = list(items)
    for i in range(count):
        swap = rng.randrange(i, len(pool))
        pool[i], pool[swap] = pool[swap], pool[i]
    return pool[:count]


def organization_characters(organization: Organization) -> list[Character]:
    """Return the organization's characters with a usable email, deduplicated."""
    seen: set[uuid.UUID] = set()
    characters: list[Character] = []
    for assignment in organization.enumerate_characters():
        character = assignment.character
        if not character.has_usable_email or character.id in seen:
            continue
        seen.add(character.id)
        characters.append(character)
    return characters


def organization_has_key_character(organization: Organization) -> bool:
    """Whether any reachable character of the organization is a key character."""
    return any(
        assignment.character.is_key_character and assignment.character.has_usable_email
        for assignment in organization.enumerate_characters()
    )


def _dedupe_by_id(items: Sequence[T]) -> list[T]:
    seen: set[uuid.UUID] = set()
    unique: list[T] = []
    for item in items:
        item_id = item.id  # type: ignore[attr-defined]
        if item_id in seen:
            continue
        seen.add(item_id)
        unique.append(item)
    return unique


# =============================================================================
# ParticipantSelector Class
# =============================================================================


class ParticipantSelector:
    """Selects thread participants under scope and key-actor constraints.

    The selector holds no state between calls; all randomness comes from the
    stream passed to ``assign``.

    Example:
        >>> selector = ParticipantSelector()
        >>> selector.assign(thread, organizations, random.Random(7))
        >>> len(thread.organization_participants)
        1
    """

    def assign(
        self,
        thread: EmailThread,
        organizations: Sequence[Organization],
        rng: random.Random,
    ) -> None:
        """Replace the thread's participant lists with a fresh selection.

        Args:
            thread: Thread to staff. Its scope, relevance and hot flag drive
                the selection.
            organizations: Full organization roster.
            rng: Random stream for every draw.
        """
        available = [org for org in organizations if organization_characters(org)]

        thread.organization_participants = []
        thread.character_participants = []
        thread.role_participants = []

        if not available:
            logger.debug("No organization can staff thread %s", thread.id)
            return

        requires_key = thread.is_relevant

        if thread.scope == "external":
            selected_orgs = self.select_external_organizations(available, requires_key, rng)
            thread.organization_participants = selected_orgs
            thread.character_participants = self.select_external_characters(
                selected_orgs, requires_key, rng
            )
        else:
            selected_org = self.select_internal_organization(available, requires_key, rng)
            thread.organization_participants = [selected_org]
            thread.character_participants = self.select_internal_characters(
                selected_org, requires_key, rng
            )

        thread.role_participants = self.build_role_participants(
            thread.character_participants, organizations
        )

        logger.debug(
            "Staffed %s thread %s: %d orgs, %d characters, %d roles",
            thread.scope,
            thread.id,
            len(thread.organization_participants),
            len(thread.character_participants),
            len(thread.role_participants),
        )

    # =========================================================================
    # Organization Selection
    # =========================================================================

    def select_internal_organization(
        self,
        organizations: Sequence[Organization],
        requires_key: bool,
        rng: random.Random,
    ) -> Organization:
        """Pick one organization, preferring a key-bearing one when required."""
        if requires_key:
            key_orgs = [org for org in organizations if organization_has_key_character(org)]
            if key_orgs:
                return key_orgs[rng.randrange(len(key_orgs))]

        return organizations[rng.randrange(len(organizations))]

    def select_external_organizations(
        self,
        organizations: Sequence[Organization],
        requires_key: bool,
        rng: random.Random,
    ) -> list[Organization]:
        """Pick the organizations for a cross-organization thread.

        With two or fewer candidates all of them take part. Otherwise two are
        drawn; if a key character is required and neither has one, a random
        member of the pair is swapped for a key-bearing organization.
        """
        if len(organizations) <= EXTERNAL_ORGANIZATION_COUNT:
            return list(organizations)

        selected = pick_random_distinct(organizations, EXTERNAL_ORGANIZATION_COUNT, rng)
        if requires_key and not any(organization_has_key_character(org) for org in selected):
            selected_ids = {org.id for org in selected}
            key_orgs = [
                org
                for org in organizations
                if organization_has_key_character(org) and org.id not in selected_ids
            ]
            if key_orgs:
                replacement = key_orgs[rng.randrange(len(key_orgs))]
                selected[rng.randrange(len(selected))] = replacement

        return selected

    # =========================================================================
    # Character Selection
    # =========================================================================

    def select_internal_characters(
        self,
        organization: Organization,
        requires_key: bool,
        rng: random.Random,
    ) -> list[Character]:
        """Pick 2-5 characters from one organization, key character first."""
        candidates = organization_characters(organization)
        if not candidates:
            return []

        target = rng.randint(INTERNAL_MIN_CHARACTERS, INTERNAL_MAX_CHARACTERS)
        target = max(1, min(target, len(candidates)))

        selected: list[Character] = []
        if requires_key:
            key_candidates = [c for c in candidates if c.is_key_character]
            if key_candidates:
                selected.append(key_candidates[rng.randrange(len(key_candidates))])

        selected_ids = {c.id for c in selected}
        remaining = [c for c in candidates if c.id not in selected_ids]
        needed = target - len(selected)
        if needed > 0:
            selected.extend(pick_random_distinct(remaining, needed, rng))

        return selected

    def select_external_characters(
        self,
        organizations: Sequence[Organization],
        requires_key: bool,
        rng: random.Random,
    ) -> list[Character]:
        """Pick 1-3 characters per organization for a cross-organization thread.

        When a key character is required, one is drawn up front from all
        selected organizations and forced into its own organization's share.
        """
        roster = [(org, organization_characters(org)) for org in organizations]

        forced_key: Character | None = None
        forced_org_id: uuid.UUID | None = None
        if requires_key:
            key_candidates = [
                (character, org)
                for org, characters in roster
                for character in characters
                if character.is_key_character
            ]
            if key_candidates:
                forced_key, forced_org = key_candidates[rng.randrange(len(key_candidates))]
                forced_org_id = forced_org.id

        selected: list[Character] = []
        for org, characters in roster:
            if not characters:
                continue

            count = rng.randint(EXTERNAL_MIN_CHARACTERS_PER_ORG, EXTERNAL_MAX_CHARACTERS_PER_ORG)
            count = max(1, min(count, len(characters)))

            org_selected: list[Character] = []
            if forced_key is not None and forced_org_id == org.id:
                org_selected.append(forced_key)

            taken = {c.id for c in org_selected}
            remaining = [c for c in characters if c.id not in taken]
            needed = count - len(org_selected)
            if needed > 0:
                org_selected.extend(pick_random_distinct(remaining, needed, rng))

            selected.extend(org_selected)

        return _dedupe_by_id(selected)

    # =========================================================================
    # Role Derivation
    # =========================================================================

    def build_role_participants(
        self,
        characters: Sequence[Character],
        organizations: Sequence[Organization],
    ) -> list[Role]:
        """Map each character to its current role, deduplicated by role id."""
        if not characters:
            return []

        role_by_character: dict[uuid.UUID, Role] = {}
        for org in organizations:
            for assignment in org.enumerate_characters():
                role_by_character.setdefault(assignment.character.id, assignment.role)

        roles = [
            role_by_character[c.id] for c in characters if c.id in role_by_character
        ]
        return _dedupe_by_id(roles)
