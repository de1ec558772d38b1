"""Configuration classes for CV parsing."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _env_flag(name: str, default: bool = True) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() != "false"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class UncertainField(BaseModel):
    """A top-level record field routed to the targeted second pass.

    The field is re-queried only when it is still empty after validation
    and inference, and the answer is restricted to ``options``.
    """

    model_config = ConfigDict(frozen=True)

    field: str = Field(description="CandidateRecord attribute name")
    options: tuple[str, ...] = Field(
        description="Canonical values the narrow response may contain",
    )
    instruction: str | None = Field(
        default=None,
        description="Task sentence for the focused prompt",
    )

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject an empty option set."""
        if not v:
            raise ValueError("An uncertain field needs at least one option")
        return v


class ParsingConfig(BaseModel):
    """Configuration for a CV parsing run."""

    model_config = ConfigDict(frozen=True)

    # LLM settings
    model: str = Field(
        default="gpt-4o",
        description="Model used for the first and second pass",
    )
    vision_model: str = Field(
        default="gpt-4o-mini",
        description="Model used to identify the profile picture",
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="LLM temperature for extraction",
    )
    max_tokens: int | None = Field(
        default=None,
        description="Maximum tokens for LLM response",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts for a failing first-pass client call",
    )
    use_cache: bool = Field(
        default=False,
        description="Whether the client may serve cached responses",
    )

    # Pipeline switches
    enable_two_pass: bool = Field(
        default=True,
        description="Run the targeted second pass on uncertain fields",
    )
    enable_inference: bool = Field(
        default=True,
        description="Infer desired locations and position types",
    )
    enable_profile_picture_extraction: bool = Field(
        default=True,
        description="Look for a profile picture inside the document",
    )

    # Profile picture settings
    vision_timeout_ms: int = Field(
        default=10_000,
        gt=0,
        description="Budget for the vision call, after which it counts as failed",
    )
    min_picture_confidence: int = Field(
        default=60,
        ge=0,
        le=100,
        description="Minimum vision confidence (0-100) to accept a picture",
    )
    max_picture_candidates: int = Field(
        default=5,
        ge=1,
        description="Images sent to the vision model",
    )
    max_picture_pages: int = Field(
        default=2,
        ge=1,
        description="PDF pages scanned for images",
    )
    min_image_side: int = Field(
        default=100,
        ge=1,
        description="Images smaller than this on either side are ignored",
    )

    # Normalization settings
    max_functional_expertise: int = Field(
        default=8,
        ge=1,
        description="Cap on the merged functional expertise list",
    )
    uncertain_fields: tuple[UncertainField, ...] = Field(
        default=(),
        description="Fields eligible for the targeted second pass",
    )

    @classmethod
    def from_env(cls, **overrides: object) -> ParsingConfig:
        """Build a config from environment variables.

        Keyword arguments take precedence over the environment.
        """
        values: dict[str, object] = {
            "enable_two_pass": _env_flag("ENABLE_TWO_PASS"),
            "enable_inference": _env_flag("ENABLE_INFERENCE"),
            "enable_profile_picture_extraction": _env_flag(
                "ENABLE_PROFILE_PICTURE_EXTRACTION"
            ),
            "vision_timeout_ms": _env_int("VISION_API_TIMEOUT_MS", 10_000),
            "min_picture_confidence": _env_int("MIN_CONFIDENCE_THRESHOLD", 60),
        }
        model = os.getenv("CV_PARSER_MODEL")
        if model:
            values["model"] = model
        values.update(overrides)
        return cls.model_validate(values)
