"""Closed option sets for enum-shaped candidate fields.

Option sets are configuration, not logic: they are loaded once from a
versioned YAML catalog and passed explicitly to the matcher, the record
validator, the inference engine and the prompt builder. All models are
frozen so a loaded catalog can be shared across concurrent jobs.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cv_normalizer.core.exceptions import ConfigurationError

DEFAULT_CATALOG = "form_options.yaml"


class Option(BaseModel):
    """A canonical value with an optional human-readable label."""

    model_config = ConfigDict(frozen=True)

    value: str
    label: str | None = None


class GuardRule(BaseModel):
    """Override for a fuzzy match that lands in a known false-positive context.

    The rule fires when the fuzzy result is one of ``categories`` and the raw
    text contains (or, with ``exact``, equals) one of ``keywords``. A rule
    without keywords fires on any raw text. Raw text containing one of
    ``keep_keywords`` or equal to one of ``keep_values`` is left alone. The
    result is then replaced by ``replacement``, or dropped when it is None.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    categories: tuple[str, ...]
    keywords: tuple[str, ...] = ()
    keep_keywords: tuple[str, ...] = ()
    keep_values: tuple[str, ...] = ()
    replacement: str | None = None
    exact: bool = False

    @field_validator("keywords", "keep_keywords", "keep_values")
    @classmethod
    def lower_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(k.strip().lower() for k in v if k.strip())

    def applies_to(self, raw: str, matched: str) -> bool:
        """Check whether this rule overrides ``matched`` for ``raw``."""
        if matched not in self.categories:
            return False
        text = raw.strip().lower()
        if text in self.keep_values or any(k in text for k in self.keep_keywords):
            return False
        if not self.keywords:
            return True
        if self.exact:
            return text in self.keywords
        return any(keyword in text for keyword in self.keywords)


class OptionSet(BaseModel):
    """A named, ordered, closed set of options.

    Options are declared either as bare strings or as ``{value, label}``
    pairs. Order matters: the matcher returns the first option that hits.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    options: tuple[Option, ...]
    bare: bool = Field(
        default=False,
        description="True when the options were declared as bare strings",
    )
    synonyms: dict[str, str] = Field(default_factory=dict)
    prefix_synonyms: bool = Field(
        default=False,
        description="Also match synonyms that open the raw text, e.g. 'ma' in 'MA in Economics'",
    )
    guards: tuple[GuardRule, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _coerce_options(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        raw_options = data.get("options") or []
        data = dict(data)
        data["bare"] = bool(raw_options) and all(isinstance(o, str) for o in raw_options)
        data["options"] = [
            {"value": o} if isinstance(o, str) else o for o in raw_options
        ]
        data["synonyms"] = {
            str(k).strip().lower(): v for k, v in (data.get("synonyms") or {}).items()
        }
        return data

    @model_validator(mode="after")
    def _check_references(self) -> OptionSet:
        known = set(self.values)
        if len(known) != len(self.options):
            raise ValueError(f"Option set '{self.name}' has duplicate values")
        for synonym, target in self.synonyms.items():
            if target not in known:
                raise ValueError(
                    f"Synonym '{synonym}' in '{self.name}' maps to unknown value '{target}'"
                )
        for guard in self.guards:
            if guard.replacement is not None and guard.replacement not in known:
                raise ValueError(
                    f"Guard '{guard.name}' in '{self.name}' replaces with unknown "
                    f"value '{guard.replacement}'"
                )
        return self

    @property
    def values(self) -> list[str]:
        return [o.value for o in self.options]

    def __contains__(self, value: object) -> bool:
        return value in self.values

    def __len__(self) -> int:
        return len(self.options)


class FormOptions(BaseModel):
    """The complete, versioned option catalog."""

    model_config = ConfigDict(frozen=True)

    version: str
    countries: OptionSet
    degree_types: OptionSet
    general_fields: OptionSet
    position_types: OptionSet
    experience_types: OptionSet
    skill_levels: OptionSet
    language_proficiencies: OptionSet
    industry_skills: OptionSet
    durations: OptionSet
    job_types: OptionSet
    locations: OptionSet
    industries: OptionSet
    functional_expertise: OptionSet
    soft_skill_exclusions: frozenset[str] = frozenset()

    @field_validator("soft_skill_exclusions", mode="before")
    @classmethod
    def lower_exclusions(cls, v: Any) -> Any:
        if v is None:
            return frozenset()
        return frozenset(str(item).strip().lower() for item in v)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FormOptions:
        """Build a catalog from a parsed YAML mapping.

        Each option set entry gets its key as ``name`` unless one is given.
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Option catalog must be a mapping")
        prepared: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, dict) and "options" in value:
                prepared[key] = {"name": key, **value}
            else:
                prepared[key] = value
        try:
            return cls.model_validate(prepared)
        except ValueError as e:
            raise ConfigurationError(f"Invalid option catalog: {e}") from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> FormOptions:
        """Load a catalog from a YAML file."""
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot load option catalog {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def default(cls) -> FormOptions:
        """Return the catalog shipped with the package (loaded once)."""
        return _load_default_catalog()


@lru_cache(maxsize=1)
def _load_default_catalog() -> FormOptions:
    text = resources.files("cv_normalizer.options").joinpath(DEFAULT_CATALOG).read_text(
        encoding="utf-8"
    )
    return FormOptions.from_dict(yaml.safe_load(text))
