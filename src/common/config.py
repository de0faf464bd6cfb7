"""Generation configuration for thread structure planning.

This module provides the Pydantic-based configuration consumed by the thread
planning engine, loaded from environment variables.

Configuration Sources (in order of precedence, highest first):
    1. Explicit constructor arguments
    2. Environment variables (automatic via pydantic-settings)
    3. Default values

Environment Variables:
    Environment variables are prefixed with "EVIDENCE_THREADS_". Variable
    names are derived from field names in SCREAMING_SNAKE_CASE.

    Examples:
        EVIDENCE_THREADS_ATTACHMENT_PERCENTAGE=35
        EVIDENCE_THREADS_INCLUDE_IMAGES=true
        EVIDENCE_THREADS_GENERATION_SEED=777

Example:
    >>> from src.common.config import GenerationConfig
    >>> config = GenerationConfig()
    >>> config.enabled_attachment_types
    ['word', 'excel', 'powerpoint']
    >>> resolve_generation_seed(None, GenerationConfig(generation_seed=7))
    7
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


AttachmentType = Literal["word", "excel", "powerpoint"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# =============================================================================
# Generation Configuration
# =============================================================================


class GenerationConfig(BaseSettings):
    """Settings that shape attachment planning and reproducibility.

    Attributes:
        attachment_percentage: Percentage of a thread's emails that carry a
            document attachment.
        include_word: Whether Word documents may be planned.
        include_excel: Whether Excel workbooks may be planned.
        include_powerpoint: Whether PowerPoint decks may be planned.
        include_images: Whether image attachments are planned at all.
        image_percentage: Percentage of a thread's emails carrying an image.
        include_voicemails: Whether voicemail attachments are planned at all.
        voicemail_percentage: Percentage of a thread's emails carrying a
            voicemail.
        generation_seed: Seed from which every planning stream is derived.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Example:
        >>> config = GenerationConfig(include_images=True, image_percentage=25)
        >>> config.include_images
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="EVIDENCE_THREADS_",
        case_sensitive=False,
        extra="ignore",
    )

    attachment_percentage: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Percentage of emails that carry a document attachment",
    )
    include_word: bool = Field(default=True, description="Plan Word documents")
    include_excel: bool = Field(default=True, description="Plan Excel workbooks")
    include_powerpoint: bool = Field(default=True, description="Plan PowerPoint decks")
    include_images: bool = Field(
        default=False,
        description="Whether image attachments are planned",
    )
    image_percentage: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Percentage of emails that carry an image",
    )
    include_voicemails: bool = Field(
        default=False,
        description="Whether voicemail attachments are planned",
    )
    voicemail_percentage: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Percentage of emails that carry a voicemail",
    )
    generation_seed: int = Field(
        default=0,
        description="Seed from which every planning stream is derived",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def enabled_attachment_types(self) -> list[AttachmentType]:
        """Document types that may be planned, in a fixed order.

        Images and voicemails are configured separately and never appear
        here.
        """
        types: list[AttachmentType] = []
        if self.include_word:
            types.append("word")
        if self.include_excel:
            types.append("excel")
        if self.include_powerpoint:
            types.append("powerpoint")
        return types


# =============================================================================
# Configuration Utilities
# =============================================================================


def resolve_generation_seed(
    generation_seed: int | None,
    config: GenerationConfig | None = None,
) -> int:
    """Return the run-wide seed for a planning call.

    An explicit seed wins. Otherwise the seed comes from ``config``, or from
    a freshly loaded ``GenerationConfig`` (and so the environment) when no
    configuration is given.

    Args:
        generation_seed: Explicit seed, or None.
        config: Configuration to fall back to.

    Returns:
        The seed to derive planning streams from.
    """
    if generation_seed is not None:
        return generation_seed
    if config is None:
        config = GenerationConfig()
    return config.generation_seed


def validate_config(config: GenerationConfig) -> list[str]:
    """Validate a configuration and return any warnings.

    Checks for combinations that are legal but almost certainly not what the
    caller meant.

    Args:
        config: The configuration to validate.

    Returns:
        A list of warning messages. Empty if no issues found.
    """
    warnings: list[str] = []

    if config.attachment_percentage > 0 and not config.enabled_attachment_types:
        warnings.append(
            f"attachment_percentage is {config.attachment_percentage}% but every "
            "document type is disabled; no documents will be planned"
        )
    if config.include_images and config.image_percentage == 0:
        warnings.append("Images are enabled with image_percentage=0; no images will be planned")
    if config.include_voicemails and config.voicemail_percentage == 0:
        warnings.append(
            "Voicemails are enabled with voicemail_percentage=0; no voicemails will be planned"
        )

    for name in ("attachment_percentage", "image_percentage", "voicemail_percentage"):
        value = getattr(config, name)
        if value > 50:
            warnings.append(
                f"{name}={value} is high and will crowd most threads with attachments"
            )

    return warnings


def configure_logging(config: GenerationConfig) -> None:
    """Configure root logging from the configured level."""
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format=LOG_FORMAT,
    )
