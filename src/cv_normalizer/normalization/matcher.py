"""Categorical matching of free text onto closed option sets.

Matching is layered, case-insensitive and whitespace-trimmed. The first
step that produces a hit wins:

1. exact match on an option value
2. substring match on option values, in either direction
3. substring match on option labels, in either direction
4. synonym table lookup (optionally on the opening words of the raw text)
5. no match (None)

Step 2 is deliberately permissive and produces known false positives
(e.g. "Master of Accounting" contains "as", the code of an Associate
degree). Option sets therefore carry declarative guard rules that are
applied to the fuzzy result afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from cv_normalizer.options.catalog import GuardRule, Option, OptionSet

OptionsInput = Union[OptionSet, Iterable[Union[str, Option, Mapping[str, Any]]]]


class MatchStep(str, Enum):
    """Which matching layer produced the result."""

    EXACT = "exact"
    VALUE_SUBSTRING = "value_substring"
    LABEL_SUBSTRING = "label_substring"
    SYNONYM = "synonym"
    NONE = "none"


@dataclass(frozen=True)
class MatchOutcome:
    """Detailed result of a categorical match.

    Attributes:
        value: Canonical value, or None when nothing matched.
        step: Matching layer that produced the fuzzy result.
        fuzzy_value: The value before guard rules were applied.
        guard: Name of the guard rule that overrode the fuzzy result.
    """

    value: str | None
    step: MatchStep
    fuzzy_value: str | None = None
    guard: str | None = None

    @property
    def matched(self) -> bool:
        return self.value is not None


def _as_options(
    options: OptionsInput,
) -> tuple[list[Option], dict[str, str], bool, tuple[GuardRule, ...]]:
    if isinstance(options, OptionSet):
        return list(options.options), options.synonyms, options.prefix_synonyms, options.guards

    resolved: list[Option] = []
    for option in options:
        if isinstance(option, Option):
            resolved.append(option)
        elif isinstance(option, str):
            if option:
                resolved.append(Option(value=option))
        elif isinstance(option, Mapping) and option.get("value"):
            resolved.append(Option(value=option["value"], label=option.get("label")))
    return resolved, {}, False, ()


def _contains_either(a: str, b: str) -> bool:
    return a in b or b in a


def _synonym(raw: str, synonyms: Mapping[str, str], prefix: bool) -> str | None:
    if raw in synonyms:
        return synonyms[raw]
    if not prefix:
        return None
    # Longest key first so "m.sc." wins over "m.s."
    for key in sorted(synonyms, key=len, reverse=True):
        if raw.startswith(key) and raw[len(key) : len(key) + 1] in (" ", ",", "(", "-"):
            return synonyms[key]
    return None


def _fuzzy_match(
    raw: str,
    options: list[Option],
    synonyms: Mapping[str, str],
    prefix: bool = False,
) -> tuple[str | None, MatchStep]:
    for option in options:
        if option.value.strip().lower() == raw:
            return option.value, MatchStep.EXACT

    for option in options:
        if _contains_either(option.value.strip().lower(), raw):
            return option.value, MatchStep.VALUE_SUBSTRING

    for option in options:
        if option.label and _contains_either(option.label.strip().lower(), raw):
            return option.value, MatchStep.LABEL_SUBSTRING

    synonym = _synonym(raw, synonyms, prefix)
    if synonym is not None:
        return synonym, MatchStep.SYNONYM

    return None, MatchStep.NONE


def match_detailed(raw_value: Any, options: OptionsInput) -> MatchOutcome:
    """Match a raw value and report how the match was made.

    Args:
        raw_value: Free text from the extraction step. Non-strings never match.
        options: An OptionSet, or a sequence of bare strings, Options or
            ``{"value": ..., "label": ...}`` mappings.

    Returns:
        MatchOutcome with the canonical value (or None) and match details.
    """
    if not isinstance(raw_value, str):
        return MatchOutcome(value=None, step=MatchStep.NONE)
    raw = raw_value.strip().lower()
    if not raw:
        return MatchOutcome(value=None, step=MatchStep.NONE)

    resolved, synonyms, prefix, guards = _as_options(options)
    value, step = _fuzzy_match(raw, resolved, synonyms, prefix)
    if value is None:
        return MatchOutcome(value=None, step=step)

    # Exact hits are canonical already; guards only correct fuzzy hits.
    if step is not MatchStep.EXACT:
        for guard in guards:
            if guard.applies_to(raw, value):
                return MatchOutcome(
                    value=guard.replacement,
                    step=step,
                    fuzzy_value=value,
                    guard=guard.name,
                )

    return MatchOutcome(value=value, step=step, fuzzy_value=value)


def match(raw_value: Any, options: OptionsInput) -> str | None:
    """Map free text onto a canonical option value.

    Returns None when no layer matches; callers treat None as unknown and
    never substitute a default.

    Example:
        ```python
        options = FormOptions.default()
        match("usa", options.countries)             # "United States"
        match("Master of Accounting", options.degree_types)  # "Master"
        ```
    """
    return match_detailed(raw_value, options).value
