"""Tests for src.threads.participants module.

Tests cover:
- Partial-shuffle distinct selection
- Roster filtering of characters without usable email
- Internal thread staffing (one organization, 2-5 characters)
- External thread staffing (two organizations, 1-3 characters each)
- Key-character preference for responsive and hot threads
- Role derivation and participant list resets
"""

from __future__ import annotations

import random

import pytest

from src.threads.models import Character, Department, EmailThread, Organization, Role
from src.threads.participants import (
    ParticipantSelector,
    organization_characters,
    organization_has_key_character,
    pick_random_distinct,
)


# =============================================================================
# Fixtures
# =============================================================================


def make_organization(
    name: str,
    character_count: int,
    key_count: int = 0,
    roles: int = 2,
) -> Organization:
    """Create an organization whose characters are spread across ``roles`` roles."""
    domain = f"{name.lower()}.test"
    role_list = [Role(name=f"{name} Role {r}") for r in range(roles)]
    for i in range(character_count):
        role_list[i % roles].characters.append(
            Character(
                first_name=f"{name}{i}",
                last_name="Person",
                email=f"p{i}@{domain}",
                is_key_character=i < key_count,
            )
        )
    return Organization(
        name=name,
        domain=domain,
        departments=[Department(name=f"{name} Ops", roles=role_list)],
    )


@pytest.fixture
def selector() -> ParticipantSelector:
    """Create a participant selector."""
    return ParticipantSelector()


@pytest.fixture
def organizations() -> list[Organization]:
    """Create three organizations; only the last has a key character."""
    return [
        make_organization("Acme", 6),
        make_organization("Beta", 5),
        make_organization("Gamma", 4, key_count=1),
    ]


def character_ids(org: Organization) -> set:
    """Return the ids of every character in an organization."""
    return {a.character.id for a in org.enumerate_characters()}


# =============================================================================
# Helper Tests
# =============================================================================


class TestPickRandomDistinct:
    """Tests for pick_random_distinct."""

    def test_distinct_and_sized(self) -> None:
        """Test that the draw has the requested size and no duplicates."""
        picked = pick_random_distinct(list(range(20)), 5, random.Random(1))
        assert len(picked) == 5
        assert len(set(picked)) == 5

    def test_count_covering_input_returns_copy(self) -> None:
        """Test that asking for everything returns all items without drawing."""
        rng = random.Random(1)
        state = rng.getstate()
        items = [1, 2, 3]

        picked = pick_random_distinct(items, 5, rng)

        assert picked == items
        assert picked is not items
        assert rng.getstate() == state

    @pytest.mark.parametrize("count", [0, -1])
    def test_non_positive_count_is_empty(self, count: int) -> None:
        """Test that non-positive counts give an empty draw."""
        assert pick_random_distinct([1, 2, 3], count, random.Random(1)) == []

    def test_consumes_one_draw_per_pick(self) -> None:
        """Test that exactly ``count`` draws are consumed."""
        rng = random.Random(4)
        reference = random.Random(4)
        pick_random_distinct(list(range(10)), 3, rng)
        for i in range(3):
            reference.randrange(i, 10)
        assert rng.random() == reference.random()


class TestRosterHelpers:
    """Tests for roster helper functions."""

    def test_blank_email_excluded(self) -> None:
        """Test that characters without email cannot participate."""
        org = make_organization("Delta", 3)
        org.departments[0].roles[0].characters[0].email = " "
        assert len(organization_characters(org)) == 2

    def test_key_character_requires_email(self) -> None:
        """Test that a key character without email does not count."""
        org = make_organization("Delta", 3, key_count=1)
        assert organization_has_key_character(org) is True
        org.departments[0].roles[0].characters[0].email = ""
        assert organization_has_key_character(org) is False


# =============================================================================
# Internal Thread Tests
# =============================================================================


class TestInternalThreads:
    """Tests for staffing internal threads."""

    @pytest.mark.parametrize("seed", range(20))
    def test_single_organization_and_size(
        self, selector: ParticipantSelector, organizations: list[Organization], seed: int
    ) -> None:
        """Test that internal threads use one org and 2-5 of its characters."""
        thread = EmailThread(scope="internal")
        selector.assign(thread, organizations, random.Random(seed))

        assert len(thread.organization_participants) == 1
        org_ids = character_ids(thread.organization_participants[0])
        assert 2 <= len(thread.character_participants) <= 5
        assert all(c.id in org_ids for c in thread.character_participants)

    @pytest.mark.parametrize("seed", range(20))
    def test_responsive_thread_includes_key_character(
        self, selector: ParticipantSelector, organizations: list[Organization], seed: int
    ) -> None:
        """Test that responsive internal threads pick the key organization first."""
        thread = EmailThread(scope="internal", relevance="responsive")
        selector.assign(thread, organizations, random.Random(seed))

        assert thread.organization_participants[0].name == "Gamma"
        assert thread.character_participants[0].is_key_character

    def test_small_roster_clamps(self, selector: ParticipantSelector) -> None:
        """Test that the character count never exceeds the roster."""
        thread = EmailThread(scope="internal")
        selector.assign(thread, [make_organization("Solo", 1, roles=1)], random.Random(3))
        assert len(thread.character_participants) == 1


# =============================================================================
# External Thread Tests
# =============================================================================


class TestExternalThreads:
    """Tests for staffing external threads."""

    @pytest.mark.parametrize("seed", range(20))
    def test_two_organizations(
        self, selector: ParticipantSelector, organizations: list[Organization], seed: int
    ) -> None:
        """Test that external threads span two distinct organizations."""
        thread = EmailThread(scope="external")
        selector.assign(thread, organizations, random.Random(seed))

        orgs = thread.organization_participants
        assert len(orgs) == 2
        assert orgs[0].id != orgs[1].id

        for org in orgs:
            ids = character_ids(org)
            count = sum(1 for c in thread.character_participants if c.id in ids)
            assert 1 <= count <= 3

    @pytest.mark.parametrize("seed", range(20))
    def test_hot_thread_swaps_in_key_organization(
        self, selector: ParticipantSelector, organizations: list[Organization], seed: int
    ) -> None:
        """Test that a hot external thread always reaches the key character."""
        thread = EmailThread(scope="external", relevance="responsive", is_hot=True)
        selector.assign(thread, organizations, random.Random(seed))

        assert "Gamma" in {org.name for org in thread.organization_participants}
        assert any(c.is_key_character for c in thread.character_participants)

    def test_two_candidates_used_without_drawing_orgs(
        self, selector: ParticipantSelector
    ) -> None:
        """Test that two candidates are both used as-is."""
        orgs = [make_organization("Acme", 3), make_organization("Beta", 3)]
        thread = EmailThread(scope="external")
        selector.assign(thread, orgs, random.Random(8))
        assert [org.name for org in thread.organization_participants] == ["Acme", "Beta"]

    def test_characters_unique(
        self, selector: ParticipantSelector, organizations: list[Organization]
    ) -> None:
        """Test that no character appears twice."""
        thread = EmailThread(scope="external", relevance="responsive")
        selector.assign(thread, organizations, random.Random(11))
        ids = [c.id for c in thread.character_participants]
        assert len(ids) == len(set(ids))


# =============================================================================
# General Tests
# =============================================================================


class TestAssign:
    """Tests for behavior shared by both scopes."""

    def test_no_candidates_leaves_lists_empty(self, selector: ParticipantSelector) -> None:
        """Test that organizations without usable emails yield no participants."""
        org = make_organization("Ghost", 2)
        for assignment in org.enumerate_characters():
            assignment.character.email = ""
        thread = EmailThread(
            scope="internal",
            organization_participants=[org],
            character_participants=[Character(email="old@x.test")],
        )

        selector.assign(thread, [org], random.Random(1))

        assert thread.organization_participants == []
        assert thread.character_participants == []
        assert thread.role_participants == []

    def test_roles_match_characters(
        self, selector: ParticipantSelector, organizations: list[Organization]
    ) -> None:
        """Test that roles are the deduplicated roles of the chosen characters."""
        thread = EmailThread(scope="external")
        selector.assign(thread, organizations, random.Random(2))

        role_ids = [r.id for r in thread.role_participants]
        assert len(role_ids) == len(set(role_ids))
        for character in thread.character_participants:
            assert any(character in role.characters for role in thread.role_participants)

    def test_deterministic_for_seed(
        self, selector: ParticipantSelector, organizations: list[Organization]
    ) -> None:
        """Test that the same stream gives the same participants."""
        first = EmailThread(scope="external", relevance="responsive")
        second = EmailThread(scope="external", relevance="responsive")
        selector.assign(first, organizations, random.Random(21))
        selector.assign(second, organizations, random.Random(21))
        assert [c.id for c in first.character_participants] == [
            c.id for c in second.character_participants
        ]
