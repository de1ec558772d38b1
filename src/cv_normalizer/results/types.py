"""Result types for CV parsing outputs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from cv_normalizer.schemas.candidate import CandidateRecord


class FieldRefinement(BaseModel):
    """Outcome of the targeted second pass for a single field."""

    field: str = Field(description="CandidateRecord attribute name")
    value: Any = Field(default=None, description="Value returned by the narrow call")
    applied: bool = Field(
        default=False,
        description="Whether the value overwrote the field",
    )
    error: str | None = Field(
        default=None,
        description="Error message if the narrow call failed",
    )

    @model_validator(mode="after")
    def _validate_outcome(self) -> FieldRefinement:
        """A failed refinement can never have been applied."""
        if self.error is not None and self.applied:
            raise ValueError("a failed refinement cannot be applied")
        return self


class ProfilePicture(BaseModel):
    """A profile picture identified inside the source document."""

    image: bytes = Field(description="JPEG bytes of the selected image", repr=False)
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    confidence: int = Field(ge=0, le=100, description="Vision confidence (0-100)")
    reason: str | None = Field(default=None, description="Vision model's explanation")
    storage_path: str | None = Field(
        default=None,
        description="Path returned by the storage collaborator after upload",
    )


class ParseResult(BaseModel):
    """Result of parsing one CV.

    The record is the only part handed to persistence; the logs are
    diagnostics for the caller.
    """

    record: CandidateRecord = Field(description="The normalized candidate record")
    corrections: list[str] = Field(
        default_factory=list,
        description="Changes made by the record validator",
    )
    inferences: list[str] = Field(
        default_factory=list,
        description="Changes made by the inference engine",
    )
    refinements: dict[str, FieldRefinement] = Field(
        default_factory=dict,
        description="Second-pass outcomes keyed by field",
    )
    profile_picture: ProfilePicture | None = Field(
        default=None,
        description="Identified profile picture, if any",
    )

    # Metadata
    model_used: str | None = Field(
        default=None,
        description="LLM model used for the first pass",
    )
    tokens_used: int | None = Field(
        default=None,
        description="Total tokens used across all passes",
    )
    cost_usd: float | None = Field(
        default=None,
        description="Estimated cost in USD across all passes",
    )
    raw_response: str | None = Field(
        default=None,
        description="Raw first-pass response for debugging",
    )

    @property
    def failed_refinements(self) -> list[str]:
        return [name for name, r in self.refinements.items() if r.error is not None]
