"""Shared helpers for the thread planning engine.

Modules:
    config: Pydantic-settings configuration for generation runs
    dates: Date distribution and email-volume helpers
    deterministic: Stable identifier and seed derivation
"""

from __future__ import annotations

from src.common.config import (
    AttachmentType,
    GenerationConfig,
    configure_logging,
    resolve_generation_seed,
    validate_config,
)
from src.common.dates import (
    adjust_to_business_hours,
    build_thread_size_plan,
    calculate_email_count_for_range,
    distribute_dates_for_thread,
    get_business_day_email_range,
    get_weekend_email_range,
    interpolate_date_in_range,
)
from src.common.deterministic import (
    create_random,
    create_seed,
    create_uuid,
)

__all__ = [
    # Configuration
    "AttachmentType",
    "GenerationConfig",
    "configure_logging",
    "resolve_generation_seed",
    "validate_config",
    # Dates and volume
    "adjust_to_business_hours",
    "build_thread_size_plan",
    "calculate_email_count_for_range",
    "distribute_dates_for_thread",
    "get_business_day_email_range",
    "get_weekend_email_range",
    "interpolate_date_in_range",
    # Deterministic ids and seeds
    "create_random",
    "create_seed",
    "create_uuid",
]
