"""Candidate profile schema.

The extraction step returns loosely-shaped JSON. These models give it a
strong shape with explicit nullability: a value of the wrong type becomes
the field's default instead of failing the whole record, and a list keeps
its valid items and drops the rest. Only a top-level value that is not an
object is rejected.

Attribute names are snake_case; the wire format (prompt, persisted JSON)
uses the camelCase aliases.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, get_args, get_origin

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from cv_normalizer.core.exceptions import ResponseParseError


def _accepts_list(annotation: Any) -> bool:
    if get_origin(annotation) is list:
        return True
    return any(get_origin(arg) is list for arg in get_args(annotation))


class LenientModel(BaseModel):
    """Base model that nulls out fields it cannot validate."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_on_mismatch(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields[info.field_name]
            if isinstance(value, list) and _accepts_list(field.annotation):
                kept: list[Any] = []
                for item in value:
                    try:
                        kept.extend(handler([item]))
                    except ValidationError:
                        continue
                return kept
            return field.get_default(call_default_factory=True)


class Address(LenientModel):
    """Postal address of the candidate."""

    street: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = Field(default=None, description="One of the country options")
    zip: str | None = None


class EducationEntry(LenientModel):
    """One degree or course of study."""

    university_name: str | None = Field(default=None, alias="universityName")
    degree_type: str | None = Field(
        default=None,
        alias="degreeType",
        description="One of the degree type options",
    )
    general_field: str | None = Field(
        default=None,
        alias="generalField",
        description="One of the general field options",
    )
    specific_field: str | None = Field(
        default=None,
        alias="specificField",
        description="Specific field of study, free text",
    )
    overall_grade: str | None = Field(
        default=None,
        alias="overallGrade",
        description="e.g. 'First Class Honours', 'Magna Cum Laude', 'GPA 3.8/4.0'",
    )
    overall_grade_value: str | None = Field(default=None, alias="overallGradeValue")
    overall_grade_max: str | None = Field(default=None, alias="overallGradeMax")
    start_date: str | None = Field(default=None, alias="startDate", description="YYYY-MM")
    end_date: str | None = Field(default=None, alias="endDate", description="YYYY-MM")
    city: str | None = None
    country: str | None = Field(default=None, description="One of the country options")
    is_current: bool | None = Field(default=None, alias="isCurrent")
    thesis_project_name: str | None = Field(default=None, alias="thesisProjectName")
    thesis_project_description: str | None = Field(
        default=None, alias="thesisProjectDescription"
    )
    relevant_coursework: list[str] | None = Field(default=None, alias="relevantCoursework")


class ExperienceEntry(LenientModel):
    """One position in the candidate's work history."""

    position_name: str | None = Field(default=None, alias="positionName")
    company_name: str | None = Field(default=None, alias="companyName")
    position_type: str | None = Field(
        default=None,
        alias="positionType",
        description="One of the position type options",
    )
    experience_type: str | None = Field(
        default=None,
        alias="experienceType",
        description="One of the experience type options ('industrial' or 'academic')",
    )
    description: str | None = Field(default=None, description="Brief job description")
    raw_bullet_points: list[str] | None = Field(
        default=None,
        description="Each bullet point or achievement exactly as written in the CV",
    )
    start_date: str | None = Field(default=None, alias="startDate", description="YYYY-MM")
    end_date: str | None = Field(
        default=None,
        alias="endDate",
        description="YYYY-MM or 'Present'",
    )
    city: str | None = None
    country: str | None = Field(default=None, description="One of the country options")
    is_current: bool | None = Field(default=None, alias="isCurrent")


class Skill(LenientModel):
    """A technical or soft skill."""

    name: str | None = None
    level: str | None = Field(default=None, description="One of the skill level options")


class IndustrySkill(LenientModel):
    """Domain expertise tied to an industry."""

    industry: str | None = Field(default=None, description="One of the industry skill options")
    name: str | None = None
    level: str | None = Field(default=None, description="One of the skill level options")


class Language(LenientModel):
    """A spoken language."""

    language: str | None = None
    proficiency: str | None = Field(
        default=None,
        description="One of the language proficiency options",
    )


class Certification(LenientModel):
    """A certification, license or credential."""

    name: str | None = None
    issuer: str | None = None
    date_obtained: str | None = Field(default=None, alias="dateObtained", description="YYYY-MM")
    expiry_date: str | None = Field(default=None, alias="expiryDate", description="YYYY-MM")
    credential_id: str | None = Field(default=None, alias="credentialId")
    url: str | None = Field(default=None, description="Verification URL")


class Activity(LenientModel):
    """Extracurricular activity."""

    organization: str | None = None
    role: str | None = None
    achievement: str | None = None


class Project(LenientModel):
    """Personal, portfolio or academic project."""

    project_name: str | None = Field(default=None, alias="projectName")
    description: str | None = None
    technologies: list[str] | None = None
    link: str | None = Field(default=None, description="Project URL")


class CandidateRecord(LenientModel):
    """Structured professional profile extracted from a CV.

    Use null for information that is not present in the CV.
    """

    contact_first_name: str | None = None
    contact_last_name: str | None = None
    email: str | None = None
    country_code: str | None = Field(default=None, description="Phone prefix, e.g. '+41'")
    phone_number: str | None = Field(
        default=None,
        alias="phoneNumber",
        description="Local phone number without the country code",
    )
    contact_address: Address | None = None
    linkedin_url: str | None = Field(default=None, alias="linkedinUrl", description="Full URL")
    github_url: str | None = Field(default=None, alias="githubUrl", description="Full URL")
    portfolio_url: str | None = Field(default=None, alias="portfolioUrl", description="Full URL")

    years_of_experience: int | None = Field(
        default=None,
        ge=0,
        description="Derived from professional_experience; never trusted from extraction",
    )
    education_history: list[EducationEntry] = Field(default_factory=list)
    professional_experience: list[ExperienceEntry] = Field(default_factory=list)

    technical_skills: list[Skill] = Field(
        default_factory=list,
        description="Programming languages, frameworks, tools, software",
    )
    soft_skills: list[Skill] = Field(
        default_factory=list,
        description="Behavioural traits: communication, leadership, teamwork",
    )
    industry_specific_skills: list[IndustrySkill] = Field(default_factory=list)
    base_languages: list[Language] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)

    professional_interests: list[str] = Field(default_factory=list)
    extracurricular_activities: list[Activity] = Field(default_factory=list)
    base_projects: list[Project] = Field(default_factory=list)

    working_capacity_percent: int | None = Field(default=None, ge=0, le=100)
    available_from_date: str | None = Field(default=None, description="YYYY-MM-DD")
    desired_duration_months: str | None = Field(
        default=None,
        description="One of the duration options",
    )
    desired_job_types: list[str] = Field(default_factory=list)
    desired_locations: list[str] = Field(default_factory=list)
    desired_industries: list[str] = Field(default_factory=list)
    functional_expertise: list[str] = Field(
        default_factory=list,
        description=(
            "Functional expertise categories. Extracted values fill the list up to 8; "
            "the candidate's own selections are always kept, even beyond 8"
        ),
    )

    profile_picture_storage_path: str | None = None
    profile_bio: str | None = None

    @classmethod
    def from_raw(cls, data: Any) -> CandidateRecord:
        """Coerce a raw extraction payload into a record.

        Raises:
            ResponseParseError: If ``data`` is not a JSON object.
        """
        if not isinstance(data, Mapping):
            raise ResponseParseError(
                f"Extraction response must be a JSON object, got {type(data).__name__}"
            )
        return cls.model_validate(dict(data))

    def to_storage(self) -> dict[str, Any]:
        """Serialize with wire-format keys for the persistence collaborator."""
        return self.model_dump(by_alias=True, mode="json")
