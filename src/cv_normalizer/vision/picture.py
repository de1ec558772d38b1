"""Profile picture identification with a vision model."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field
from seeds_clients import Message
from seeds_clients.core.base_client import BaseClient

from cv_normalizer.core.config import ParsingConfig
from cv_normalizer.documents.images import CandidateImage, extract_candidate_images
from cv_normalizer.documents.text import SourceDocument
from cv_normalizer.prompts.builder import PromptBuilder
from cv_normalizer.results.types import ProfilePicture

logger = logging.getLogger(__name__)


class PictureVerdict(BaseModel):
    """Vision model answer about a set of candidate images."""

    has_profile_picture: bool = Field(
        default=False,
        description="Whether one of the images is a profile picture",
    )
    image_index: int | None = Field(
        default=None,
        description="1-based index of the best candidate, or null if none",
    )
    confidence: int = Field(default=0, ge=0, le=100, description="Confidence from 0 to 100")
    reason: str | None = Field(default=None, description="Brief explanation")


class ProfilePictureFinder:
    """Finds the candidate's profile picture among the images of a CV.

    Any failure (unreadable images, vision error, timeout, low confidence)
    yields None. The vision call is bounded by ``vision_timeout_ms`` and is
    never retried.

    Example:
        ```python
        finder = ProfilePictureFinder(client, ParsingConfig())
        picture = await finder.find(document)
        ```
    """

    def __init__(
        self,
        client: BaseClient,
        config: ParsingConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._client = client
        self.config = config or ParsingConfig()
        self._prompt_builder = prompt_builder or PromptBuilder()

    async def find(self, document: SourceDocument) -> ProfilePicture | None:
        """Identify the profile picture of ``document``, if there is one."""
        if not self.config.enable_profile_picture_extraction:
            return None

        images = await asyncio.to_thread(
            extract_candidate_images,
            document,
            self.config.min_image_side,
            self.config.max_picture_pages,
        )
        if not images:
            logger.info("No candidate images in %s", document.name)
            return None

        candidates = images[: self.config.max_picture_candidates]
        try:
            verdict = await asyncio.wait_for(
                asyncio.to_thread(self.identify, candidates),
                timeout=self.config.vision_timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Vision call timed out after %d ms for %s",
                self.config.vision_timeout_ms,
                document.name,
            )
            return None
        except Exception as e:
            logger.warning("Vision call failed for %s: %s", document.name, e)
            return None

        return self.select(verdict, candidates)

    def identify(self, candidates: Sequence[CandidateImage]) -> PictureVerdict:
        """Ask the vision model which candidate is the profile picture."""
        content: list[dict[str, Any]] = [
            {"type": "text", "text": self._prompt_builder.build_picture_prompt(len(candidates))},
        ]
        for candidate in candidates:
            content.append({"type": "image", "source": candidate.data})

        response = self._client.generate(
            [Message(role="user", content=content)],
            use_cache=self.config.use_cache,
            response_format=PictureVerdict,
            temperature=0.3,
            max_tokens=200,
        )
        if response.parsed is None:
            return PictureVerdict(reason="Unparseable vision response")
        return response.parsed

    def select(
        self,
        verdict: PictureVerdict,
        candidates: Sequence[CandidateImage],
    ) -> ProfilePicture | None:
        """Apply the verdict to the candidates.

        Returns None when the model found no picture, pointed outside the
        candidate list or was not confident enough.
        """
        if not verdict.has_profile_picture or verdict.image_index is None:
            logger.info("No profile picture identified: %s", verdict.reason)
            return None

        index = verdict.image_index - 1
        if not 0 <= index < len(candidates):
            logger.warning("Vision model returned invalid image index %d", verdict.image_index)
            return None

        if verdict.confidence < self.config.min_picture_confidence:
            logger.info(
                "Profile picture confidence %d below threshold %d",
                verdict.confidence,
                self.config.min_picture_confidence,
            )
            return None

        chosen = candidates[index]
        return ProfilePicture(
            image=chosen.data,
            width=chosen.width,
            height=chosen.height,
            confidence=verdict.confidence,
            reason=verdict.reason,
        )
