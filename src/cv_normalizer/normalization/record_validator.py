"""Whole-record validation and auto-correction.

Walks a CandidateRecord and repairs every field it knows how to check:
URLs, email, phone country code, dates and every enum-shaped field. Each
repair adds one human-readable line to the correction log. Unmatched enum
values are cleared, never defaulted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from cv_normalizer.normalization.matcher import match_detailed
from cv_normalizer.normalization.validators import (
    normalize_country_code,
    normalize_date,
    normalize_email,
    normalize_url,
)
from cv_normalizer.options.catalog import FormOptions, OptionSet
from cv_normalizer.schemas.candidate import CandidateRecord, Skill

logger = logging.getLogger(__name__)


def _wire_name(model: BaseModel, attr: str) -> str:
    field = type(model).model_fields[attr]
    return field.alias or attr


class RecordValidator:
    """Validates and corrects a CandidateRecord against the option catalog.

    The validator is pure: it works on a deep copy and returns it together
    with the correction log. Running it on its own output changes nothing.

    Example:
        ```python
        validator = RecordValidator(FormOptions.default())
        corrected, corrections = validator.validate(record)
        ```
    """

    def __init__(self, options: FormOptions | None = None) -> None:
        self.options = options or FormOptions.default()

    def validate(self, record: CandidateRecord) -> tuple[CandidateRecord, list[str]]:
        """Return a corrected copy of ``record`` and the correction log."""
        corrected = record.model_copy(deep=True)
        log: list[str] = []
        opts = self.options

        self._scalar(corrected, "email", normalize_email, "", log)
        self._scalar(corrected, "country_code", normalize_country_code, "", log)
        for attr in ("linkedin_url", "github_url", "portfolio_url"):
            self._scalar(corrected, attr, normalize_url, "", log)

        if corrected.contact_address is not None:
            self._enum(corrected.contact_address, "country", opts.countries, "contact_address.", log)

        for i, edu in enumerate(corrected.education_history):
            path = f"education_history[{i}]."
            self._enum(edu, "degree_type", opts.degree_types, path, log)
            self._enum(edu, "general_field", opts.general_fields, path, log)
            self._enum(edu, "country", opts.countries, path, log)
            self._scalar(edu, "start_date", normalize_date, path, log)
            self._scalar(edu, "end_date", normalize_date, path, log)

        for i, exp in enumerate(corrected.professional_experience):
            path = f"professional_experience[{i}]."
            self._enum(exp, "position_type", opts.position_types, path, log)
            self._enum(exp, "experience_type", opts.experience_types, path, log)
            self._enum(exp, "country", opts.countries, path, log)
            self._scalar(exp, "start_date", normalize_date, path, log)
            self._scalar(exp, "end_date", normalize_date, path, log)

        for i, skill in enumerate(corrected.technical_skills):
            self._enum(skill, "level", opts.skill_levels, f"technical_skills[{i}].", log)

        corrected.soft_skills = self._filter_soft_skills(corrected.soft_skills, log)
        for i, skill in enumerate(corrected.soft_skills):
            self._enum(skill, "level", opts.skill_levels, f"soft_skills[{i}].", log)

        for i, skill in enumerate(corrected.industry_specific_skills):
            path = f"industry_specific_skills[{i}]."
            self._enum(skill, "industry", opts.industry_skills, path, log)
            self._enum(skill, "level", opts.skill_levels, path, log)

        for i, lang in enumerate(corrected.base_languages):
            self._enum(lang, "proficiency", opts.language_proficiencies, f"base_languages[{i}].", log)

        for i, cert in enumerate(corrected.certifications):
            path = f"certifications[{i}]."
            self._scalar(cert, "url", normalize_url, path, log)
            self._scalar(cert, "date_obtained", normalize_date, path, log)
            self._scalar(cert, "expiry_date", normalize_date, path, log)

        self._enum(corrected, "desired_duration_months", opts.durations, "", log)
        self._enum_list(corrected, "desired_job_types", opts.job_types, log)
        self._enum_list(corrected, "desired_locations", opts.locations, log)
        self._enum_list(corrected, "desired_industries", opts.industries, log)

        if log:
            logger.info("Applied %d corrections", len(log))
        return corrected, log

    def _scalar(
        self,
        model: BaseModel,
        attr: str,
        normalize: Callable[[Any], str | None],
        path: str,
        log: list[str],
    ) -> None:
        old = getattr(model, attr)
        if old is None:
            return
        new = normalize(old)
        if new == old:
            return
        setattr(model, attr, new)
        name = path + _wire_name(model, attr)
        if new is None:
            log.append(f"{name}: cleared invalid value {old!r}")
        else:
            log.append(f"{name}: {old!r} -> {new!r}")

    def _enum(
        self,
        model: BaseModel,
        attr: str,
        option_set: OptionSet,
        path: str,
        log: list[str],
    ) -> None:
        old = getattr(model, attr)
        if old is None:
            return
        outcome = match_detailed(old, option_set)
        if outcome.value == old:
            return
        setattr(model, attr, outcome.value)
        name = path + _wire_name(model, attr)
        if outcome.guard is not None:
            log.append(
                f"{name}: {old!r} -> {outcome.value!r} "
                f"(rule {outcome.guard} overrode {outcome.fuzzy_value!r})"
            )
        elif outcome.value is None:
            log.append(f"{name}: {old!r} is not a known {option_set.name} value, cleared")
        else:
            log.append(f"{name}: {old!r} -> {outcome.value!r} ({outcome.step.value})")

    def _enum_list(
        self,
        record: CandidateRecord,
        attr: str,
        option_set: OptionSet,
        log: list[str],
    ) -> None:
        kept: list[str] = []
        for raw in getattr(record, attr):
            outcome = match_detailed(raw, option_set)
            if outcome.value is None:
                log.append(f"{attr}: dropped unknown value {raw!r}")
            elif outcome.value in kept:
                log.append(f"{attr}: dropped duplicate {raw!r}")
            else:
                if outcome.value != raw:
                    log.append(f"{attr}: {raw!r} -> {outcome.value!r}")
                kept.append(outcome.value)
        setattr(record, attr, kept)

    def _filter_soft_skills(self, skills: list[Skill], log: list[str]) -> list[Skill]:
        excluded = self.options.soft_skill_exclusions
        kept = []
        for skill in skills:
            if skill.name and skill.name.strip().lower() in excluded:
                log.append(f"soft_skills: removed {skill.name!r}, not a soft skill")
                continue
            kept.append(skill)
        return kept
