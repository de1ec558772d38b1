"""Closed option sets and their versioned catalog."""

from cv_normalizer.options.catalog import FormOptions, GuardRule, Option, OptionSet

__all__ = [
    "FormOptions",
    "GuardRule",
    "Option",
    "OptionSet",
]
