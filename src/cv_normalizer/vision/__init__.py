"""Vision-model helpers."""

from cv_normalizer.vision.picture import PictureVerdict, ProfilePictureFinder

__all__ = ["PictureVerdict", "ProfilePictureFinder"]
