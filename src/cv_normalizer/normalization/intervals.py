"""Total work experience from employment intervals.

Overlapping employment (e.g. a freelance gig alongside a full-time job) is
counted once: intervals are merged before their lengths are summed. The
reference date for open-ended and current positions is always passed in by
the caller.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cv_normalizer.schemas.candidate import ExperienceEntry

logger = logging.getLogger(__name__)

_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True, order=True)
class YearMonth:
    """A calendar month."""

    year: int
    month: int

    @classmethod
    def parse(cls, value: str | None) -> YearMonth | None:
        """Parse a YYYY-MM string, returning None for anything else."""
        if not value:
            return None
        match = _YEAR_MONTH.match(value.strip())
        if not match:
            return None
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            return None
        return cls(year, month)

    @classmethod
    def from_date(cls, value: date) -> YearMonth:
        return cls(value.year, value.month)

    def months_until(self, other: YearMonth) -> int:
        """Whole calendar months from self to other, floored at zero."""
        return max(0, (other.year - self.year) * 12 + (other.month - self.month))


@dataclass(frozen=True)
class Interval:
    """A [start, end] employment interval in months."""

    start: YearMonth
    end: YearMonth

    @property
    def months(self) -> int:
        return self.start.months_until(self.end)


def resolve_interval(entry: ExperienceEntry, now: date) -> Interval | None:
    """Resolve one experience entry into an interval.

    The end is ``now`` for current positions and for entries without a
    usable end date ('present', null or an unparsed shape).

    Returns:
        The interval, or None when the entry has no usable start or starts
        after it ends.
    """
    start = YearMonth.parse(entry.start_date)
    if start is None:
        logger.debug("Skipping experience entry without usable start: %r", entry.start_date)
        return None

    current = YearMonth.from_date(now)
    if entry.is_current is True:
        end = current
    else:
        end = YearMonth.parse(entry.end_date) or current

    if start > end:
        logger.debug(
            "Skipping experience entry %r: start %s is after end %s",
            entry.position_name,
            entry.start_date,
            entry.end_date,
        )
        return None
    return Interval(start=start, end=end)


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Merge overlapping or touching intervals into disjoint segments."""
    merged: list[Interval] = []
    for interval in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(start=last.start, end=max(last.end, interval.end))
        else:
            merged.append(interval)
    return merged


def total_months(entries: Iterable[ExperienceEntry], now: date) -> int:
    """Total non-overlapping months of experience.

    Args:
        entries: Professional experience entries.
        now: Reference date for current and open-ended positions.

    Returns:
        Sum of the lengths of the merged intervals.
    """
    intervals = [i for i in (resolve_interval(e, now) for e in entries) if i is not None]
    return sum(segment.months for segment in merge_intervals(intervals))


def years_from_months(months: int) -> int:
    return max(0, months) // 12
