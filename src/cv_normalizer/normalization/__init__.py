"""Post-extraction normalization: validation, matching and inference."""

from cv_normalizer.normalization.inference import (
    InferenceEngine,
    infer_position_type,
    merge_functional_expertise,
)
from cv_normalizer.normalization.intervals import (
    Interval,
    YearMonth,
    merge_intervals,
    total_months,
    years_from_months,
)
from cv_normalizer.normalization.matcher import MatchOutcome, MatchStep, match, match_detailed
from cv_normalizer.normalization.record_validator import RecordValidator
from cv_normalizer.normalization.validators import (
    normalize_country_code,
    normalize_date,
    normalize_email,
    normalize_url,
)

__all__ = [
    "InferenceEngine",
    "Interval",
    "MatchOutcome",
    "MatchStep",
    "RecordValidator",
    "YearMonth",
    "infer_position_type",
    "match",
    "match_detailed",
    "merge_functional_expertise",
    "merge_intervals",
    "normalize_country_code",
    "normalize_date",
    "normalize_email",
    "normalize_url",
    "total_months",
    "years_from_months",
]
