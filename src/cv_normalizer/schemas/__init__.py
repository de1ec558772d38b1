"""Candidate record schema.

The models accept loosely-shaped extraction output and coerce it into a
strongly-typed record with explicit nullability.
"""

from cv_normalizer.schemas.candidate import (
    Activity,
    Address,
    CandidateRecord,
    Certification,
    EducationEntry,
    ExperienceEntry,
    IndustrySkill,
    Language,
    LenientModel,
    Project,
    Skill,
)

__all__ = [
    "CandidateRecord",
    "Address",
    "EducationEntry",
    "ExperienceEntry",
    "Skill",
    "IndustrySkill",
    "Language",
    "Certification",
    "Activity",
    "Project",
    "LenientModel",
]
