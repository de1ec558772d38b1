"""Single-value validators.

Each validator takes one raw value and returns its canonical form or None.
Validators never raise: non-string and blank input resolve to None.
"""

import re
from typing import Any

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MONTH_YEAR_PATTERN = re.compile(r"^(\d{1,2})[/-](\d{4})$")
YEAR_MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")
YEAR_PATTERN = re.compile(r"^\d{4}$")

PRESENT = "present"


def _clean(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_url(value: Any) -> str | None:
    """Ensure a URL carries an explicit scheme, defaulting to https."""
    url = _clean(value)
    if url is None:
        return None
    if not url.startswith(("http://", "https://")):
        return f"https://{url}"
    return url


def normalize_email(value: Any) -> str | None:
    """Return the trimmed email if it has a local@domain.tld shape."""
    email = _clean(value)
    if email is None or not EMAIL_PATTERN.match(email):
        return None
    return email


def normalize_country_code(value: Any) -> str | None:
    """Ensure a phone country code starts with '+'."""
    code = _clean(value)
    if code is None:
        return None
    if not code.startswith("+"):
        return f"+{code}"
    return code


def normalize_date(value: Any) -> str | None:
    """Normalize a date to YYYY-MM.

    Accepts M/YYYY, MM/YYYY (or with '-'), YYYY-MM, YYYY and 'present'.
    Other shapes are returned trimmed but otherwise untouched, so no data
    is lost when the extraction step used an unexpected format.
    """
    text = _clean(value)
    if text is None:
        return None

    if text.lower() == PRESENT:
        return PRESENT

    match = MONTH_YEAR_PATTERN.match(text)
    if match:
        month, year = match.groups()
        return f"{year}-{int(month):02d}"

    if YEAR_MONTH_PATTERN.match(text):
        return text

    if YEAR_PATTERN.match(text):
        return f"{text}-01"

    return text
