"""CV parsing orchestrator."""

import asyncio
import json
import logging
import os
import re
from collections.abc import Callable
from datetime import date
from typing import Any, Literal, get_origin

from pydantic import BaseModel, Field, create_model
from seeds_clients import Message, OpenAIClient
from seeds_clients.core.base_client import BaseClient

from cv_normalizer.core.config import ParsingConfig, UncertainField
from cv_normalizer.core.exceptions import ConfigurationError, LLMError, ResponseParseError
from cv_normalizer.documents.text import SourceDocument, extract_text
from cv_normalizer.normalization.inference import InferenceEngine
from cv_normalizer.normalization.record_validator import RecordValidator
from cv_normalizer.options.catalog import FormOptions
from cv_normalizer.prompts.builder import PromptBuilder
from cv_normalizer.results.types import FieldRefinement, ParseResult, ProfilePicture
from cv_normalizer.schemas.candidate import CandidateRecord
from cv_normalizer.vision.picture import ProfilePictureFinder

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_response(content: str | None) -> dict[str, Any]:
    """Decode a first-pass response into a JSON object.

    Markdown code fences around the JSON are tolerated.

    Raises:
        ResponseParseError: If the content is not a JSON object.
    """
    if not content or not content.strip():
        raise ResponseParseError("Empty response from extraction model", raw_response=content)
    text = _CODE_FENCE.sub("", content.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            f"Extraction response is not valid JSON: {e}",
            raw_response=content,
            last_error=e,
        ) from e
    if not isinstance(data, dict):
        raise ResponseParseError(
            f"Extraction response must be a JSON object, got {type(data).__name__}",
            raw_response=content,
        )
    return data


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _refinement_model(field: UncertainField) -> type[BaseModel]:
    """Response model admitting only the field's option values."""
    allowed = Literal[field.options]  # type: ignore[valid-type]
    annotation = CandidateRecord.model_fields[field.field].annotation
    name = "".join(part.title() for part in field.field.split("_")) + "Refinement"
    if get_origin(annotation) is list:
        return create_model(
            name,
            **{field.field: (list[allowed], Field(default_factory=list))},  # type: ignore[valid-type]
        )
    return create_model(
        name,
        **{field.field: (allowed | None, Field(default=None))},  # type: ignore[operator]
    )


class CVParser:
    """LLM-driven CV parser with deterministic post-processing.

    Pass 1 extracts the whole record, the record validator and the
    inference engine repair it, and pass 2 re-asks for configured fields
    that are still empty. Uses seeds-clients for LLM integration.

    Example:
        ```python
        from cv_normalizer import CVParser, SourceDocument

        parser = CVParser()
        document = SourceDocument.from_bytes(data, "resume.pdf")
        result = asyncio.run(parser.parse_document(document, job_id="job-1"))
        print(result.record.years_of_experience)
        ```
    """

    _client: BaseClient

    def __init__(
        self,
        client: BaseClient | None = None,
        vision_client: BaseClient | None = None,
        api_key: str | None = None,
        config: ParsingConfig | None = None,
        options: FormOptions | None = None,
        cache_dir: str = "cache",
        cache_ttl_hours: float | None = 24.0,
        clock: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the parser.

        Args:
            client: Pre-configured LLM client from seeds-clients. If provided,
                api_key, cache_dir and cache_ttl_hours are ignored.
            vision_client: Client for profile picture identification. Defaults
                to ``client`` when one is given, otherwise to an OpenAIClient
                for ``config.vision_model``.
            api_key: OpenAI API key. If not provided, uses OPENAI_API_KEY env var.
            config: Parsing configuration.
            options: Option catalog. Defaults to the shipped catalog.
            cache_dir: Directory for caching LLM responses.
            cache_ttl_hours: Cache TTL in hours.
            clock: Returns the reference date for current positions.

        Raises:
            ConfigurationError: If an uncertain field is not a record field.
        """
        self.config = config or ParsingConfig()
        self.options = options or FormOptions.default()
        self.clock = clock

        for uncertain in self.config.uncertain_fields:
            if uncertain.field not in CandidateRecord.model_fields:
                raise ConfigurationError(
                    f"Uncertain field '{uncertain.field}' is not a CandidateRecord field"
                )

        if client is not None:
            self._client = client
            self.model = client.model
        else:
            self.model = self.config.model
            self._client = OpenAIClient(
                api_key=api_key or os.getenv("OPENAI_API_KEY"),
                model=self.config.model,
                cache_dir=cache_dir,
                ttl_hours=cache_ttl_hours,
            )

        if vision_client is None:
            if client is not None:
                vision_client = client
            else:
                vision_client = OpenAIClient(
                    api_key=api_key or os.getenv("OPENAI_API_KEY"),
                    model=self.config.vision_model,
                    cache_dir=cache_dir,
                    ttl_hours=cache_ttl_hours,
                )

        self._prompt_builder = PromptBuilder(self.options)
        self._validator = RecordValidator(self.options)
        self._inference = InferenceEngine(
            self.options,
            enabled=self.config.enable_inference,
            functional_expertise_cap=self.config.max_functional_expertise,
        )
        self._picture_finder = ProfilePictureFinder(
            vision_client, self.config, self._prompt_builder
        )

    async def parse_document(
        self,
        document: SourceDocument,
        job_id: str | None = None,
        user_functional_expertise: list[str] | None = None,
    ) -> ParseResult:
        """Parse a PDF or DOCX CV.

        Text preparation and profile picture identification run
        concurrently. A picture failure never fails the parse.

        Raises:
            DocumentReadError: If the document has no readable text.
            ResponseParseError: If the first-pass response is not a JSON object.
            LLMError: If the first-pass call keeps failing.
        """
        text, picture = await asyncio.gather(
            asyncio.to_thread(extract_text, document),
            self._find_picture(document, job_id),
        )
        result = await self.parse_text(text, job_id, user_functional_expertise)
        result.profile_picture = picture
        return result

    async def parse_text(
        self,
        text: str,
        job_id: str | None = None,
        user_functional_expertise: list[str] | None = None,
    ) -> ParseResult:
        """Parse CV text into a normalized record.

        Args:
            text: Plain text of the CV.
            job_id: Identifier used in log messages.
            user_functional_expertise: The candidate's own selections.

        Returns:
            ParseResult with the record and the diagnostic logs.
        """
        logger.info("[Job %s] Starting first-pass extraction", job_id)
        record, response = await asyncio.to_thread(self._first_pass, text, job_id)
        logger.info(
            "[Job %s] First pass completed (%d experience, %d education entries)",
            job_id,
            len(record.professional_experience),
            len(record.education_history),
        )

        record, corrections, inferences = self.postprocess(
            record, user_functional_expertise=user_functional_expertise
        )
        if corrections:
            logger.info("[Job %s] Corrections: %s", job_id, "; ".join(corrections))
        if inferences:
            logger.info("[Job %s] Inferences: %s", job_id, "; ".join(inferences))

        refinements: dict[str, FieldRefinement] = {}
        responses = [response]
        if self.config.enable_two_pass:
            record, refinements, refinement_responses = await self.refine(record, text, job_id)
            responses.extend(refinement_responses)

        tokens = [r.usage.total_tokens for r in responses if r.usage is not None]
        costs = [
            r.tracking.cost_usd
            for r in responses
            if r.tracking is not None and r.tracking.cost_usd is not None
        ]
        return ParseResult(
            record=record,
            corrections=corrections,
            inferences=inferences,
            refinements=refinements,
            model_used=response.model,
            tokens_used=sum(tokens) if tokens else None,
            cost_usd=sum(costs) if costs else None,
            raw_response=response.content,
        )

    def postprocess(
        self,
        record: CandidateRecord,
        now: date | None = None,
        user_functional_expertise: list[str] | None = None,
    ) -> tuple[CandidateRecord, list[str], list[str]]:
        """Validate then infer, in that order.

        Returns:
            The final record, the correction log and the inference log.
        """
        corrected, corrections = self._validator.validate(record)
        inferred, inferences = self._inference.infer(
            corrected,
            now or self.clock(),
            user_functional_expertise=user_functional_expertise,
        )
        return inferred, corrections, inferences

    async def refine(
        self,
        record: CandidateRecord,
        text: str,
        job_id: str | None = None,
    ) -> tuple[CandidateRecord, dict[str, FieldRefinement], list[Any]]:
        """Run the targeted second pass on empty uncertain fields.

        Each field is queried independently; a failing field is recorded in
        its refinement and never affects the others.

        Returns:
            The refined record, refinements keyed by field and the raw responses.
        """
        pending = [
            f for f in self.config.uncertain_fields if _is_empty(getattr(record, f.field))
        ]
        if not pending:
            return record, {}, []

        logger.info(
            "[Job %s] Second pass for uncertain fields: %s",
            job_id,
            ", ".join(f.field for f in pending),
        )
        outcomes = await asyncio.gather(
            *(self._refine_field(field, text, job_id) for field in pending)
        )

        refinements: dict[str, FieldRefinement] = {}
        responses: list[Any] = []
        updates: dict[str, Any] = {}
        for refinement, response in outcomes:
            refinements[refinement.field] = refinement
            if response is not None:
                responses.append(response)
            if refinement.applied:
                updates[refinement.field] = refinement.value

        if updates:
            record = CandidateRecord.model_validate({**record.model_dump(), **updates})
        return record, refinements, responses

    async def _refine_field(
        self,
        field: UncertainField,
        text: str,
        job_id: str | None,
    ) -> tuple[FieldRefinement, Any]:
        messages = [
            Message(role="user", content=self._prompt_builder.build_focused_prompt(text, field)),
        ]
        try:
            response = await asyncio.to_thread(
                self._client.generate,
                messages,
                use_cache=self.config.use_cache,
                response_format=_refinement_model(field),
                **self._llm_kwargs(),
            )
        except Exception as e:
            logger.warning("[Job %s] Second pass failed for %s: %s", job_id, field.field, e)
            return FieldRefinement(field=field.field, error=str(e)), None

        if response.parsed is None:
            logger.warning("[Job %s] Second pass for %s returned no data", job_id, field.field)
            return FieldRefinement(field=field.field, error="No parsed data"), response

        value = getattr(response.parsed, field.field)
        applied = not _is_empty(value)
        if applied:
            logger.info("[Job %s] Second pass refined %s: %s", job_id, field.field, value)
        return FieldRefinement(field=field.field, value=value, applied=applied), response

    def _first_pass(self, text: str, job_id: str | None) -> tuple[CandidateRecord, Any]:
        messages = [
            Message(role="system", content=self._prompt_builder.build_system_prompt()),
            Message(role="user", content=self._prompt_builder.build_extraction_prompt(text)),
        ]
        response = self._call_llm_with_retry(messages, job_id, **self._llm_kwargs())
        data = parse_json_response(response.content)
        return CandidateRecord.from_raw(data), response

    def _llm_kwargs(self) -> dict[str, Any]:
        llm_kwargs: dict[str, Any] = {"temperature": self.config.temperature}
        if self.config.max_tokens:
            llm_kwargs["max_tokens"] = self.config.max_tokens
        return llm_kwargs

    def _call_llm_with_retry(
        self,
        messages: list[Message],
        job_id: str | None,
        **llm_kwargs: Any,
    ) -> Any:
        """Call the LLM, retrying client failures.

        Returns:
            The LLM response if successful.

        Raises:
            LLMError: If every attempt fails.
        """
        last_error: Exception | None = None

        for attempt in range(self.config.max_retries):
            try:
                logger.debug(
                    "[Job %s] Extraction attempt %d/%d (model=%s)",
                    job_id,
                    attempt + 1,
                    self.config.max_retries,
                    self.model,
                )
                return self._client.generate(
                    messages,
                    use_cache=self.config.use_cache,
                    **llm_kwargs,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "[Job %s] LLM call failed on attempt %d: %s", job_id, attempt + 1, str(e)
                )

        logger.error(
            "[Job %s] Extraction failed after %d attempts: %s",
            job_id,
            self.config.max_retries,
            str(last_error),
        )
        raise LLMError(
            f"LLM call failed after {self.config.max_retries} attempts: {last_error}",
            last_error=last_error,
        )

    async def _find_picture(
        self,
        document: SourceDocument,
        job_id: str | None,
    ) -> ProfilePicture | None:
        try:
            return await self._picture_finder.find(document)
        except Exception as e:
            logger.warning("[Job %s] Profile picture extraction failed: %s", job_id, e)
            return None
