"""Tests for profile picture identification."""

import asyncio
import time
from io import BytesIO
from unittest.mock import MagicMock, patch

import pytest
from docx import Document
from PIL import Image

from cv_normalizer import BaseClient, ParsingConfig, SourceDocument
from cv_normalizer.documents.images import CandidateImage
from cv_normalizer.vision.picture import PictureVerdict, ProfilePictureFinder

CANDIDATES = [
    CandidateImage(data=b"logo", width=300, height=120, page=1),
    CandidateImage(data=b"face", width=300, height=400, page=1),
]


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a mock vision client."""
    client = MagicMock(spec=BaseClient)
    client.model = "mock-vision"
    return client


@pytest.fixture
def finder(mock_client: MagicMock) -> ProfilePictureFinder:
    """A finder with the default thresholds."""
    return ProfilePictureFinder(mock_client, ParsingConfig())


@pytest.fixture
def document() -> SourceDocument:
    """A DOCX CV with one photo."""
    buffer = BytesIO()
    Image.new("RGB", (300, 400), "gray").save(buffer, format="PNG")
    doc = Document()
    doc.add_paragraph("Jane Doe")
    doc.add_picture(BytesIO(buffer.getvalue()))
    out = BytesIO()
    doc.save(out)
    return SourceDocument.from_bytes(out.getvalue(), "cv.docx")


def verdict_response(verdict: PictureVerdict | None) -> MagicMock:
    response = MagicMock()
    response.parsed = verdict
    return response


class TestSelect:
    """Tests for applying a verdict."""

    def test_selects_indexed_image(self, finder: ProfilePictureFinder) -> None:
        """Test the 1-based index picks the candidate."""
        verdict = PictureVerdict(
            has_profile_picture=True, image_index=2, confidence=90, reason="Headshot"
        )

        picture = finder.select(verdict, CANDIDATES)

        assert picture is not None
        assert picture.image == b"face"
        assert (picture.width, picture.height) == (300, 400)
        assert picture.confidence == 90
        assert picture.reason == "Headshot"

    def test_threshold_is_inclusive(self, finder: ProfilePictureFinder) -> None:
        """Test a confidence equal to the threshold is accepted."""
        verdict = PictureVerdict(has_profile_picture=True, image_index=1, confidence=60)

        assert finder.select(verdict, CANDIDATES) is not None

    def test_low_confidence(self, finder: ProfilePictureFinder) -> None:
        """Test a confidence below the threshold is rejected."""
        verdict = PictureVerdict(has_profile_picture=True, image_index=1, confidence=59)

        assert finder.select(verdict, CANDIDATES) is None

    @pytest.mark.parametrize("index", [0, 3, -1, None])
    def test_invalid_index(self, finder: ProfilePictureFinder, index: int | None) -> None:
        """Test indices outside the candidate list are rejected."""
        verdict = PictureVerdict(has_profile_picture=True, image_index=index, confidence=95)

        assert finder.select(verdict, CANDIDATES) is None

    def test_no_picture(self, finder: ProfilePictureFinder) -> None:
        """Test a negative verdict is respected."""
        verdict = PictureVerdict(has_profile_picture=False, image_index=1, confidence=95)

        assert finder.select(verdict, CANDIDATES) is None


class TestIdentify:
    """Tests for the vision call."""

    def test_message_content(self, finder: ProfilePictureFinder, mock_client: MagicMock) -> None:
        """Test the prompt and every image are sent in one message."""
        mock_client.generate.return_value = verdict_response(PictureVerdict())

        finder.identify(CANDIDATES)

        args, kwargs = mock_client.generate.call_args
        content = args[0][0].content
        assert content[0]["type"] == "text"
        assert "these 2 images" in content[0]["text"]
        assert content[1:] == [
            {"type": "image", "source": b"logo"},
            {"type": "image", "source": b"face"},
        ]
        assert kwargs["response_format"] is PictureVerdict
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 200

    def test_unparseable_response(
        self, finder: ProfilePictureFinder, mock_client: MagicMock
    ) -> None:
        """Test a response without parsed data means no picture."""
        mock_client.generate.return_value = verdict_response(None)

        verdict = finder.identify(CANDIDATES)

        assert verdict.has_profile_picture is False
        assert verdict.reason == "Unparseable vision response"


class TestFind:
    """Tests for the end-to-end search."""

    def test_finds_picture(
        self, finder: ProfilePictureFinder, mock_client: MagicMock, document: SourceDocument
    ) -> None:
        """Test a confident verdict returns the document's photo."""
        mock_client.generate.return_value = verdict_response(
            PictureVerdict(has_profile_picture=True, image_index=1, confidence=88)
        )

        picture = asyncio.run(finder.find(document))

        assert picture is not None
        assert (picture.width, picture.height) == (300, 400)
        assert picture.image[:2] == b"\xff\xd8"

    def test_disabled(self, mock_client: MagicMock, document: SourceDocument) -> None:
        """Test no vision call when the feature is switched off."""
        finder = ProfilePictureFinder(
            mock_client, ParsingConfig(enable_profile_picture_extraction=False)
        )

        assert asyncio.run(finder.find(document)) is None
        mock_client.generate.assert_not_called()

    def test_no_images(self, finder: ProfilePictureFinder, mock_client: MagicMock) -> None:
        """Test a document without images skips the vision call."""
        with patch("cv_normalizer.vision.picture.extract_candidate_images", return_value=[]):
            result = asyncio.run(finder.find(SourceDocument.from_bytes(b"", "cv.pdf")))

        assert result is None
        mock_client.generate.assert_not_called()

    def test_candidates_capped(
        self, mock_client: MagicMock, document: SourceDocument
    ) -> None:
        """Test at most max_picture_candidates images are sent."""
        finder = ProfilePictureFinder(mock_client, ParsingConfig(max_picture_candidates=1))
        mock_client.generate.return_value = verdict_response(PictureVerdict())

        with patch(
            "cv_normalizer.vision.picture.extract_candidate_images", return_value=CANDIDATES
        ):
            asyncio.run(finder.find(document))

        content = mock_client.generate.call_args.args[0][0].content
        assert len(content) == 2

    def test_vision_error(
        self, finder: ProfilePictureFinder, mock_client: MagicMock, document: SourceDocument
    ) -> None:
        """Test a failing vision call yields no picture."""
        mock_client.generate.side_effect = RuntimeError("vision API down")

        assert asyncio.run(finder.find(document)) is None
        assert mock_client.generate.call_count == 1

    def test_timeout(self, mock_client: MagicMock, document: SourceDocument) -> None:
        """Test a slow vision call is abandoned."""
        finder = ProfilePictureFinder(mock_client, ParsingConfig(vision_timeout_ms=50))

        def slow_generate(*args, **kwargs):
            time.sleep(0.5)
            return verdict_response(
                PictureVerdict(has_profile_picture=True, image_index=1, confidence=99)
            )

        mock_client.generate.side_effect = slow_generate

        assert asyncio.run(finder.find(document)) is None
