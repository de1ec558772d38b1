"""Tests for the option catalog."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cv_normalizer.core.exceptions import ConfigurationError
from cv_normalizer.options.catalog import FormOptions, GuardRule, OptionSet


class TestDefaultCatalog:
    """Tests for the shipped catalog."""

    def test_loads_once(self) -> None:
        """Test the default catalog is cached."""
        assert FormOptions.default() is FormOptions.default()

    def test_has_version(self) -> None:
        """Test the catalog is versioned."""
        assert FormOptions.default().version

    def test_option_shapes(self) -> None:
        """Test bare and pair option sets are told apart."""
        options = FormOptions.default()

        assert options.countries.bare is True
        assert options.degree_types.bare is False
        assert options.degree_types.options[1].label == "Associate of Arts"

    def test_locations_include_every_country(self) -> None:
        """Test every country is also a valid desired location."""
        options = FormOptions.default()

        assert set(options.countries.values) <= set(options.locations.values)
        assert "Remote" in options.locations

    def test_functional_expertise_is_closed_set(self) -> None:
        """Test the functional expertise set is non-trivial."""
        options = FormOptions.default()

        assert len(options.functional_expertise) > 8
        assert "Software Engineering" in options.functional_expertise

    def test_soft_skill_exclusions_are_lowercase(self) -> None:
        """Test exclusions are normalized for comparison."""
        exclusions = FormOptions.default().soft_skill_exclusions

        assert "project management" in exclusions
        assert all(item == item.lower() for item in exclusions)

    def test_catalog_is_frozen(self) -> None:
        """Test a loaded catalog cannot be mutated."""
        options = FormOptions.default()

        with pytest.raises(ValidationError):
            options.version = "changed"


class TestOptionSet:
    """Tests for OptionSet validation."""

    def test_synonym_keys_lowercased(self) -> None:
        """Test synonym keys are normalized."""
        option_set = OptionSet(name="x", options=["Yes", "No"], synonyms={" YEP ": "Yes"})

        assert option_set.synonyms == {"yep": "Yes"}

    def test_rejects_duplicate_values(self) -> None:
        """Test duplicate option values are rejected."""
        with pytest.raises(ValidationError):
            OptionSet(name="x", options=["Yes", "Yes"])

    def test_rejects_unknown_synonym_target(self) -> None:
        """Test synonyms must point at a declared value."""
        with pytest.raises(ValidationError):
            OptionSet(name="x", options=["Yes"], synonyms={"nope": "No"})

    def test_rejects_unknown_guard_replacement(self) -> None:
        """Test guard replacements must be declared values."""
        guard = GuardRule(name="g", categories=("Yes",), keywords=("y",), replacement="No")

        with pytest.raises(ValidationError):
            OptionSet(name="x", options=["Yes"], guards=[guard])

    def test_guard_keywords_lowercased(self) -> None:
        """Test guard keywords are normalized."""
        guard = GuardRule(name="g", categories=("A",), keywords=(" MBA ", ""))

        assert guard.keywords == ("mba",)


class TestCatalogLoading:
    """Tests for loading custom catalogs."""

    def test_from_yaml(self, tmp_path: Path) -> None:
        """Test loading a minimal catalog from YAML."""
        sets = [
            "countries",
            "degree_types",
            "general_fields",
            "position_types",
            "experience_types",
            "skill_levels",
            "language_proficiencies",
            "industry_skills",
            "durations",
            "job_types",
            "locations",
            "industries",
            "functional_expertise",
        ]
        lines = ['version: "test"']
        for name in sets:
            lines.append(f"{name}:\n  options:\n    - Alpha\n    - Beta")
        path = tmp_path / "options.yaml"
        path.write_text("\n".join(lines), encoding="utf-8")

        options = FormOptions.from_yaml(path)

        assert options.version == "test"
        assert options.countries.name == "countries"
        assert options.durations.values == ["Alpha", "Beta"]
        assert options.soft_skill_exclusions == frozenset()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            FormOptions.from_yaml(tmp_path / "missing.yaml")

    def test_invalid_catalog(self) -> None:
        """Test an incomplete catalog raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            FormOptions.from_dict({"version": "1"})

    def test_not_a_mapping(self) -> None:
        """Test a non-mapping document raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            FormOptions.from_dict(["not", "a", "mapping"])  # type: ignore[arg-type]
