"""Email thread structure and relevance engine.

Modules:
    models: Storyline, organization and thread domain models
    plan: Frozen structure-plan value types
    relevance: Responsive/hot probability model
    participants: Participant selection for threads
    generator: Beat volume, thread creation and coverage repair
    planner: Per-thread structure planning
    graph: Reply graph and plan application
    pipeline: Storyline-level orchestration
    errors: Exception hierarchy
"""

from __future__ import annotations

from src.threads.errors import (
    MissingStorylineError,
    PlaceholderMismatchError,
    PlanInvariantError,
    ThreadPlanningError,
)
from src.threads.generator import (
    EmailThreadGenerator,
    ensure_placeholder_messages,
    reset_thread_for_retry,
)
from src.threads.graph import ThreadGraph, apply_structure_plan
from src.threads.models import (
    Character,
    CharacterAssignment,
    Department,
    EmailMessage,
    EmailThread,
    Organization,
    Role,
    StoryBeat,
    Storyline,
    ThreadRelevance,
    ThreadScope,
)
from src.threads.participants import ParticipantSelector, pick_random_distinct
from src.threads.pipeline import (
    PlannedThread,
    build_thread_plans,
    count_branches,
    plan_storyline_threads,
)
from src.threads.plan import (
    NarrativePhase,
    ThreadAttachmentPlan,
    ThreadEmailIntent,
    ThreadEmailSlotPlan,
    ThreadStructurePlan,
)
from src.threads.planner import AttachmentTotals, build_plan, calculate_attachment_totals
from src.threads.relevance import (
    ThreadClassification,
    ThreadOdds,
    evaluate_thread_relevance,
    get_thread_odds,
)

__all__ = [
    # Models
    "Character",
    "CharacterAssignment",
    "Department",
    "EmailMessage",
    "EmailThread",
    "Organization",
    "Role",
    "StoryBeat",
    "Storyline",
    "ThreadRelevance",
    "ThreadScope",
    # Plans
    "NarrativePhase",
    "ThreadAttachmentPlan",
    "ThreadEmailIntent",
    "ThreadEmailSlotPlan",
    "ThreadStructurePlan",
    # Relevance
    "ThreadClassification",
    "ThreadOdds",
    "evaluate_thread_relevance",
    "get_thread_odds",
    # Generation and planning
    "AttachmentTotals",
    "EmailThreadGenerator",
    "ParticipantSelector",
    "build_plan",
    "calculate_attachment_totals",
    "ensure_placeholder_messages",
    "pick_random_distinct",
    "reset_thread_for_retry",
    # Graph
    "ThreadGraph",
    "apply_structure_plan",
    # Pipeline
    "PlannedThread",
    "build_thread_plans",
    "count_branches",
    "plan_storyline_threads",
    # Errors
    "MissingStorylineError",
    "PlaceholderMismatchError",
    "PlanInvariantError",
    "ThreadPlanningError",
]
