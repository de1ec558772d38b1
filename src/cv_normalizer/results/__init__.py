"""Result types for CV parsing."""

from cv_normalizer.results.types import FieldRefinement, ParseResult, ProfilePicture

__all__ = [
    "FieldRefinement",
    "ParseResult",
    "ProfilePicture",
]
