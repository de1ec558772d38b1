"""Parsing job runner: fetch a CV, parse it and persist the outcome."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, Field

from cv_normalizer.core.exceptions import CVNormalizerError, DocumentReadError
from cv_normalizer.core.parser import CVParser
from cv_normalizer.documents.text import SourceDocument
from cv_normalizer.results.types import ParseResult, ProfilePicture

logger = logging.getLogger(__name__)


class DocumentStorage(Protocol):
    """Object storage holding uploaded CVs and extracted profile pictures."""

    def download(self, path: str) -> bytes: ...

    def upload_profile_picture(self, image: bytes, owner_id: str) -> str | None: ...


class JobStore(Protocol):
    """Persistence of parsing job status and the extracted record."""

    def mark_processing(self, job_id: str) -> None: ...

    def mark_completed(self, job_id: str, extracted_data: dict[str, Any]) -> None: ...

    def mark_failed(self, job_id: str, message: str) -> None: ...


class JobStatus(str, Enum):
    """Terminal status of a parsing job."""

    COMPLETED = "completed"
    FAILED = "failed"


class JobOutcome(BaseModel):
    """What happened to a parsing job."""

    job_id: str
    status: JobStatus
    result: ParseResult | None = Field(
        default=None,
        description="Parse result when the job completed",
    )
    error: str | None = Field(default=None, description="Failure message when the job failed")

    @property
    def succeeded(self) -> bool:
        return self.status is JobStatus.COMPLETED


class ParsingJobRunner:
    """Runs one parsing job end to end.

    The runner never raises: every failure is recorded through the job
    store and reported in the returned JobOutcome. Only the record is
    persisted, never a partial one.

    Example:
        ```python
        runner = ParsingJobRunner(CVParser(), storage, jobs)
        outcome = await runner.run("job-1", "user-42/cv.pdf", owner_id="user-42")
        ```
    """

    def __init__(self, parser: CVParser, storage: DocumentStorage, jobs: JobStore) -> None:
        self.parser = parser
        self.storage = storage
        self.jobs = jobs

    async def run(
        self,
        job_id: str,
        storage_path: str,
        owner_id: str,
        user_functional_expertise: list[str] | None = None,
    ) -> JobOutcome:
        """Fetch, parse and persist the CV at ``storage_path``.

        Args:
            job_id: Parsing job identifier.
            storage_path: Location of the CV in document storage.
            owner_id: Owner of the profile picture folder.
            user_functional_expertise: The candidate's own selections.

        Returns:
            The terminal outcome of the job.
        """
        try:
            self.jobs.mark_processing(job_id)
            document = await self._fetch(storage_path)
            result = await self.parser.parse_document(
                document,
                job_id=job_id,
                user_functional_expertise=user_functional_expertise,
            )
            if result.profile_picture is not None:
                path = await self._upload_picture(result.profile_picture, owner_id, job_id)
                result.profile_picture.storage_path = path
                result.record.profile_picture_storage_path = path
            self.jobs.mark_completed(job_id, result.record.to_storage())
        except CVNormalizerError as e:
            return self._fail(job_id, str(e))
        except Exception as e:
            logger.exception("[Job %s] Unexpected failure", job_id)
            return self._fail(job_id, f"Unexpected error: {e}")

        logger.info("[Job %s] Completed", job_id)
        return JobOutcome(job_id=job_id, status=JobStatus.COMPLETED, result=result)

    async def _fetch(self, storage_path: str) -> SourceDocument:
        try:
            content = await asyncio.to_thread(self.storage.download, storage_path)
        except Exception as e:
            raise DocumentReadError(f"Cannot download {storage_path}: {e}") from e
        logger.debug("Downloaded %s (%d bytes)", storage_path, len(content))
        return SourceDocument.from_bytes(content, storage_path)

    async def _upload_picture(
        self,
        picture: ProfilePicture,
        owner_id: str,
        job_id: str,
    ) -> str | None:
        try:
            path = await asyncio.to_thread(
                self.storage.upload_profile_picture, picture.image, owner_id
            )
        except Exception as e:
            logger.warning("[Job %s] Profile picture upload failed: %s", job_id, e)
            return None
        logger.info("[Job %s] Profile picture uploaded to %s", job_id, path)
        return path

    def _fail(self, job_id: str, message: str) -> JobOutcome:
        logger.error("[Job %s] Failed: %s", job_id, message)
        try:
            self.jobs.mark_failed(job_id, message)
        except Exception:
            logger.exception("[Job %s] Could not record failure", job_id)
        return JobOutcome(job_id=job_id, status=JobStatus.FAILED, error=message)
