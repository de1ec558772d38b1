"""Inference of missing or derived fields.

Runs after validation, on canonical values. ``years_of_experience`` is
always recomputed from the experience intervals; the remaining inferences
only fill fields the extraction left empty and can be switched off.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from cv_normalizer.normalization.intervals import total_months, years_from_months
from cv_normalizer.normalization.matcher import match
from cv_normalizer.options.catalog import FormOptions
from cv_normalizer.schemas.candidate import CandidateRecord

logger = logging.getLogger(__name__)

DEFAULT_FUNCTIONAL_EXPERTISE_CAP = 8

# First matching rule wins.
POSITION_TYPE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("intern",), "Internship"),
    (("freelance", "contractor", "consultant"), "Freelance"),
    (("part-time", "part time", "parttime"), "Part-time"),
    (("volunteer",), "Volunteer"),
)
DEFAULT_POSITION_TYPE = "Full-time"


def infer_position_type(title: str | None) -> str | None:
    """Guess the position type from a job title.

    Returns None when there is no title to go on.
    """
    if not title or not title.strip():
        return None
    text = title.lower()
    for keywords, position_type in POSITION_TYPE_RULES:
        if any(keyword in text for keyword in keywords):
            return position_type
    return DEFAULT_POSITION_TYPE


def merge_functional_expertise(
    user: Iterable[str] | None,
    extracted: Iterable[str] | None,
    allowed: Iterable[str],
    cap: int = DEFAULT_FUNCTIONAL_EXPERTISE_CAP,
) -> list[str]:
    """Merge user-selected and extracted functional expertise.

    Both inputs are filtered to ``allowed``. Every valid user selection is
    kept in its original order, even past the cap. Extracted values not
    already present fill the remaining capacity.

    Args:
        user: Selections made by the candidate, authoritative.
        extracted: Values found in the CV.
        allowed: The closed category set.
        cap: Maximum size of the merged list.

    Returns:
        The merged list.
    """
    allowed_set = set(allowed)
    merged: list[str] = []
    for value in user or ():
        if value in allowed_set and value not in merged:
            merged.append(value)
    for value in extracted or ():
        if len(merged) >= cap:
            break
        if value in allowed_set and value not in merged:
            merged.append(value)
    return merged


class InferenceEngine:
    """Derives and fills fields of a validated CandidateRecord.

    Example:
        ```python
        engine = InferenceEngine(FormOptions.default())
        inferred, inferences = engine.infer(record, now=date.today())
        ```
    """

    def __init__(
        self,
        options: FormOptions | None = None,
        enabled: bool = True,
        functional_expertise_cap: int = DEFAULT_FUNCTIONAL_EXPERTISE_CAP,
    ) -> None:
        self.options = options or FormOptions.default()
        self.enabled = enabled
        self.functional_expertise_cap = functional_expertise_cap

    def infer(
        self,
        record: CandidateRecord,
        now: date,
        user_functional_expertise: list[str] | None = None,
    ) -> tuple[CandidateRecord, list[str]]:
        """Return an inferred copy of ``record`` and the inference log.

        Args:
            record: A record that already went through RecordValidator.
            now: Reference date for current and open-ended positions.
            user_functional_expertise: The candidate's own selections, if any.
        """
        inferred = record.model_copy(deep=True)
        log: list[str] = []

        self._years_of_experience(inferred, now, log)
        if self.enabled:
            self._desired_locations(inferred, log)
            self._position_types(inferred, log)
        self._functional_expertise(inferred, user_functional_expertise, log)

        if log:
            logger.info("Applied %d inferences", len(log))
        return inferred, log

    def _years_of_experience(self, record: CandidateRecord, now: date, log: list[str]) -> None:
        months = total_months(record.professional_experience, now)
        years = years_from_months(months)
        if record.years_of_experience != years:
            log.append(
                f"years_of_experience: {record.years_of_experience!r} -> {years} "
                f"({months} months of merged experience)"
            )
        record.years_of_experience = years

    def _desired_locations(self, record: CandidateRecord, log: list[str]) -> None:
        if record.desired_locations:
            return
        countries = {exp.country for exp in record.professional_experience if exp.country}
        if len(countries) != 1:
            return
        location = match(countries.pop(), self.options.locations)
        if location is None:
            return
        record.desired_locations = [location]
        log.append(f"desired_locations: inferred {location!r} from experience country")

    def _position_types(self, record: CandidateRecord, log: list[str]) -> None:
        for i, exp in enumerate(record.professional_experience):
            if exp.position_type:
                continue
            guess = infer_position_type(exp.position_name)
            if guess is None:
                continue
            position_type = match(guess, self.options.position_types)
            if position_type is None:
                continue
            exp.position_type = position_type
            log.append(
                f"professional_experience[{i}].positionType: inferred {position_type!r} "
                f"from title {exp.position_name!r}"
            )

    def _functional_expertise(
        self,
        record: CandidateRecord,
        user: list[str] | None,
        log: list[str],
    ) -> None:
        merged = merge_functional_expertise(
            user,
            record.functional_expertise,
            self.options.functional_expertise.values,
            cap=self.functional_expertise_cap,
        )
        if merged != record.functional_expertise:
            log.append(f"functional_expertise: {record.functional_expertise!r} -> {merged!r}")
        record.functional_expertise = merged
