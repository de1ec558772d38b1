"""Prompt builder for CV extraction."""

import types
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from cv_normalizer.core.config import UncertainField
from cv_normalizer.options.catalog import FormOptions, OptionSet
from cv_normalizer.schemas.candidate import CandidateRecord

# (model name, attribute) -> FormOptions attribute holding its closed set
FIELD_OPTION_SETS: dict[tuple[str, str], str] = {
    ("Address", "country"): "countries",
    ("EducationEntry", "degree_type"): "degree_types",
    ("EducationEntry", "general_field"): "general_fields",
    ("EducationEntry", "country"): "countries",
    ("ExperienceEntry", "position_type"): "position_types",
    ("ExperienceEntry", "experience_type"): "experience_types",
    ("ExperienceEntry", "country"): "countries",
    ("Skill", "level"): "skill_levels",
    ("IndustrySkill", "industry"): "industry_skills",
    ("IndustrySkill", "level"): "skill_levels",
    ("Language", "proficiency"): "language_proficiencies",
    ("CandidateRecord", "desired_duration_months"): "durations",
    ("CandidateRecord", "desired_job_types"): "job_types",
    ("CandidateRecord", "desired_locations"): "locations",
    ("CandidateRecord", "desired_industries"): "industries",
    ("CandidateRecord", "functional_expertise"): "functional_expertise",
}


class PromptBuilder:
    """Builds CV extraction prompts from the CandidateRecord schema.

    Field names are rendered with their wire aliases, and every enum-shaped
    field points at the closed option set it must be mapped onto.
    """

    DEFAULT_SYSTEM_PROMPT = (
        "You are an expert CV data extraction assistant. Your goal is to extract "
        "as much structured information as possible from CVs so candidates do not "
        "have to fill in their profiles by hand.\n\n"
        "Rules:\n"
        "1. Return only a valid JSON object matching the schema, with no commentary\n"
        "2. Only extract information that exists in the CV; use null for missing data\n"
        "3. For every position, put each bullet point, achievement and responsibility "
        "exactly as written into raw_bullet_points, one string per bullet\n"
        "4. All URLs (linkedinUrl, githubUrl, portfolioUrl, certification URLs, project "
        "links) must include the full https:// prefix\n"
        "5. Split phone numbers: country_code is the international prefix with '+' "
        "(e.g. '+41'), phoneNumber is the local number only\n"
        "6. All dates use the YYYY-MM format; use 'Present' for current positions\n"
        "7. For fields with allowed values, map the CV text to the closest allowed "
        "value; if no confident match exists, use null\n"
        "8. Extract the full address into contact_address\n"
        "9. Extract all certifications, licenses and credentials with as much detail "
        "as available\n"
        "10. Extract personal, portfolio and significant academic projects with the "
        "technologies used\n"
        "11. technical_skills are languages, frameworks, tools and software; "
        "soft_skills are behavioural traits such as communication or teamwork; "
        "domain expertise goes to industry_specific_skills\n"
        "12. Extract grades, thesis information and relevant coursework when available\n"
        "13. If the CV mentions career goals, preferred locations or availability, "
        "fill the desired_* fields\n"
        "14. Set isCurrent to true for ongoing education and current positions"
    )

    PICTURE_PROMPT = (
        "Analyze these {count} images extracted from a CV. Identify which one is most "
        "likely a professional profile picture of the person who wrote the CV.\n\n"
        "Criteria:\n"
        "1. Contains a human face (headshot or upper body)\n"
        "2. Professional appearance, not a casual snapshot\n"
        "3. Composition suitable for a profile picture\n"
        "4. The person is the main subject, not a group photo\n"
        "5. Clear, well-lit image\n\n"
        "The images are numbered 1 to {count}. If none of them is a profile picture "
        "(logos, charts, diagrams, group photos), set has_profile_picture to false "
        "and image_index to null. Confidence is an integer from 0 to 100."
    )

    def __init__(
        self,
        options: FormOptions | None = None,
        include_field_descriptions: bool = True,
    ) -> None:
        """Initialize the prompt builder.

        Args:
            options: Option catalog whose values are listed in the prompt
            include_field_descriptions: Whether to include field descriptions in prompts
        """
        self.options = options or FormOptions.default()
        self.include_field_descriptions = include_field_descriptions

    def build_system_prompt(self, custom_prompt: str | None = None) -> str:
        """Build the system prompt.

        Args:
            custom_prompt: Optional custom system prompt to use instead of default

        Returns:
            The system prompt string
        """
        return custom_prompt or self.DEFAULT_SYSTEM_PROMPT

    def build_extraction_prompt(
        self,
        document: str,
        schema: type[BaseModel] = CandidateRecord,
    ) -> str:
        """Build the first-pass user prompt.

        Args:
            document: The CV text
            schema: The record schema to describe

        Returns:
            The formatted extraction prompt
        """
        referenced: list[str] = []
        parts: list[str] = [
            f"## Extraction Schema\n\n{self._describe_schema(schema, referenced)}",
            f"## Allowed Values\n\n{self._describe_option_sets(referenced)}",
            f"## CV\n\n---\n{document}\n---",
            "## Task\n\n"
            "Extract the data from the CV above according to the schema. "
            "Return ONLY the JSON object, using the field names shown in bold.",
        ]
        return "\n\n".join(parts)

    def build_focused_prompt(self, document: str, field: UncertainField) -> str:
        """Build a second-pass prompt for a single field.

        Args:
            document: The CV text
            field: The field to re-extract and its admissible values

        Returns:
            The formatted focused prompt
        """
        instruction = field.instruction or f"Determine the value of '{field.field}' for this candidate."
        values = ", ".join(field.options)
        return (
            f"{instruction}\n\n"
            f"The value must be EXACTLY one of: {values}. "
            "Use null if the CV does not support any of them.\n\n"
            f"CV:\n---\n{document}\n---"
        )

    def build_picture_prompt(self, count: int) -> str:
        """Build the vision prompt for ``count`` candidate images."""
        return self.PICTURE_PROMPT.format(count=count)

    def _describe_schema(
        self,
        schema: type[BaseModel],
        referenced: list[str],
        indent: int = 0,
        described_models: set[str] | None = None,
    ) -> str:
        """Generate a human-readable description of the schema.

        Args:
            schema: The Pydantic model to describe
            referenced: Collects the option sets the description points to
            indent: Indentation level for nested schemas
            described_models: Set of already described model names to avoid recursion

        Returns:
            A formatted schema description
        """
        described_models = described_models or set()
        lines: list[str] = []
        indent_str = "  " * indent

        schema_name = schema.__name__
        lines.append(f"{indent_str}**{schema_name}**")

        if schema.__doc__ and indent == 0:
            lines.append(f"\n{indent_str}{schema.__doc__.strip()}")

        lines.append(f"\n{indent_str}Fields:")

        nested_models: list[type[BaseModel]] = []

        for field_name, field_info in schema.model_fields.items():
            option_set = FIELD_OPTION_SETS.get((schema_name, field_name))
            if option_set and option_set not in referenced:
                referenced.append(option_set)
            lines.append(self._describe_field(field_name, field_info, option_set, indent + 1))

            for model in self._get_nested_models(field_info.annotation):
                if model.__name__ not in described_models:
                    nested_models.append(model)
                    described_models.add(model.__name__)

        if nested_models and indent == 0:
            lines.append(f"\n{indent_str}### Nested Types")
            described_models.add(schema_name)
            for nested_model in nested_models:
                lines.append("")
                lines.append(
                    self._describe_schema(
                        nested_model, referenced, indent=0, described_models=described_models
                    )
                )

        return "\n".join(lines)

    def _describe_option_sets(self, names: list[str]) -> str:
        blocks: list[str] = []
        for name in names:
            option_set: OptionSet = getattr(self.options, name)
            values = ", ".join(
                f"{o.value} ({o.label})" if o.label else o.value for o in option_set.options
            )
            blocks.append(f"- **{name}**: {values}")
        return "\n".join(blocks)

    def _get_nested_models(self, annotation: Any) -> list[type[BaseModel]]:
        """Extract nested Pydantic models from a type annotation."""
        models: list[type[BaseModel]] = []

        if annotation is None:
            return models

        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            models.append(annotation)
            return models

        origin = get_origin(annotation)
        if origin is not None:
            for arg in get_args(annotation):
                models.extend(self._get_nested_models(arg))

        return models

    def _describe_field(
        self,
        name: str,
        field_info: FieldInfo,
        option_set: str | None = None,
        indent: int = 0,
    ) -> str:
        """Describe a single field by its wire name.

        Args:
            name: Attribute name
            field_info: Pydantic FieldInfo object
            option_set: Name of the closed option set the value must come from
            indent: Indentation level

        Returns:
            Formatted field description
        """
        indent_str = "  " * indent
        wire_name = field_info.alias or name
        type_str = self._format_type(field_info.annotation)

        parts = [f"{indent_str}- **{wire_name}** ({type_str})"]

        if self.include_field_descriptions and field_info.description:
            parts.append(f": {field_info.description}")

        constraints = self._get_field_constraints(field_info)
        if constraints:
            parts.append(f" {constraints}")

        if option_set:
            parts.append(f" [Allowed values: {option_set}]")

        return "".join(parts)

    def _get_field_constraints(self, field_info: FieldInfo) -> str:
        """Extract numeric bounds from Pydantic metadata."""
        constraints: list[str] = []

        for meta in field_info.metadata:
            meta_type = type(meta).__name__

            if meta_type == "Ge":
                constraints.append(f">={getattr(meta, 'ge', '?')}")
            elif meta_type == "Le":
                constraints.append(f"<={getattr(meta, 'le', '?')}")

        if constraints:
            return f"[Constraints: {', '.join(constraints)}]"
        return ""

    def _format_type(self, annotation: Any) -> str:
        """Format a type annotation as a readable string.

        Args:
            annotation: The type annotation

        Returns:
            Human-readable type string
        """
        if annotation is None:
            return "any"

        origin = get_origin(annotation)

        if origin is not None:
            args = get_args(annotation)

            if origin is Union or origin is types.UnionType:
                non_none_args = [a for a in args if a is not type(None)]
                if len(non_none_args) == 1 and type(None) in args:
                    return f"{self._format_type(non_none_args[0])} | null"
                return " | ".join(self._format_type(a) for a in args)

            if origin is list:
                inner = self._format_type(args[0]) if args else "any"
                return f"list[{inner}]"

        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            return annotation.__name__

        if annotation is bool:
            return "boolean"
        if annotation is int:
            return "integer"
        if annotation is str:
            return "string"

        if hasattr(annotation, "__name__"):
            return annotation.__name__

        return str(annotation)
