"""Pattern-based field extraction: emails, phones, money, dates, websites.

Every extractor returns the FIRST match only. A capture mentioning two dates
or two amounts yields just the earliest one; this is a known limitation, not
something the rest of the pipeline tries to disambiguate.
"""

import re
from datetime import date, datetime

from pydantic import BaseModel

# Starts only at a token boundary; possessive/atomic runs keep long unbroken
# tokens linear.
EMAIL_PATTERN = re.compile(r"(?<![\w.+-])[\w.+-]++@(?>[A-Za-z0-9-]+\.)+[A-Za-z]{2,}")

# North-American 10-digit numbers: 615-555-1234, (615) 555 1234, +1.615.555.1234
PHONE_PATTERN = re.compile(
    r"(?<![\w$])(?:\+?1[\s.-]?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}(?!\d)"
)

# "$5k", "$5,000", "$1.5K"
DOLLAR_PATTERN = re.compile(r"\$\s?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?(?:[kK](?![A-Za-z]))?")
# Bare 4+ digit numbers, not glued to other digits, words or separators
BARE_AMOUNT_PATTERN = re.compile(r"(?<![\w.,/$-])\d{4,}(?![\w/-]|[.,]\d)")

_MONTHS = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)
DATE_PATTERN = re.compile(
    rf"\b(?:{_MONTHS})\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,?\s+\d{{4}})?\b"
    r"|\b\d{1,2}/\d{1,2}(?:/(?:\d{4}|\d{2}))?\b",
    re.IGNORECASE,
)

_COMMON_TLDS = (
    r"com|net|org|info|biz|edu|gov|io|co|us|ca|uk|me|app|dev|ai|tv|fm"
    r"|events|live|music|studio|agency"
)
# Any domain with a scheme or www., bare domains only with a common TLD so
# "follow up.Then" is not a website.
WEBSITE_PATTERN = re.compile(
    r"(?<![\w.@/-])"
    r"(?:(?:https?://|www\.)(?>[A-Za-z0-9-]+\.)+[A-Za-z]{2,}"
    rf"|(?>[A-Za-z0-9-]+\.)+(?:{_COMMON_TLDS}))"
    r"\b(?:/[^\s,;)]*)?",
    re.IGNORECASE,
)

_MONTH_FORMATS = ("%b %d %Y", "%B %d %Y")
_ORDINAL_SUFFIX = re.compile(r"(?<=\d)(?:st|nd|rd|th)\b", re.IGNORECASE)


class ExtractedFields(BaseModel):
    """Candidate structured fields found in raw text. Missing fields are None."""

    email: str | None = None
    phone: str | None = None
    money: str | None = None
    date: str | None = None
    website: str | None = None

    def has_contact(self) -> bool:
        return bool(self.email or self.phone)


def _first(pattern: re.Pattern, text: str) -> str | None:
    match = pattern.search(text)
    return match.group(0).strip() if match else None


def extract_fields(text: str) -> ExtractedFields:
    """Extract the first email, phone, money amount, date and website from text.

    Pure and total: never raises, returns empty fields for empty input.
    """
    if not isinstance(text, str):
        text = ""

    # Email domains must not double as websites
    without_emails = EMAIL_PATTERN.sub(" ", text)

    return ExtractedFields(
        email=_first(EMAIL_PATTERN, text),
        phone=_first(PHONE_PATTERN, text),
        money=_extract_money(without_emails),
        date=_first(DATE_PATTERN, text),
        website=_first(WEBSITE_PATTERN, without_emails),
    )


def _extract_money(text: str) -> str | None:
    """Dollar amounts win over bare numbers; years and phone digits are not amounts."""
    dollars = _first(DOLLAR_PATTERN, text)
    if dollars:
        return dollars
    stripped = DATE_PATTERN.sub(" ", PHONE_PATTERN.sub(" ", text))
    return _first(BARE_AMOUNT_PATTERN, stripped)


def to_iso_date(raw: str | None, today: date | None = None) -> str | None:
    """Normalize an extracted date string to YYYY-MM-DD.

    Month-name dates without a year resolve to the next occurrence on or after
    ``today``; so do MM/DD dates. Two-digit years are taken as 20YY.
    Returns None when the string is not a real calendar date.
    """
    if not raw:
        return None
    today = today or date.today()
    cleaned = _ORDINAL_SUFFIX.sub("", raw.strip()).replace(",", " ").replace(".", " ")
    cleaned = " ".join(cleaned.split())

    if "/" in cleaned:
        return _parse_slash_date(cleaned, today)

    parts = cleaned.split(" ")
    has_year = len(parts) == 3
    candidate = cleaned if has_year else f"{cleaned} {today.year}"
    parsed = _parse_month_date(candidate)
    if parsed is None:
        return None
    if not has_year and parsed < today:
        parsed = _safe_replace_year(parsed, today.year + 1)
        if parsed is None:
            return None
    return parsed.isoformat()


def _parse_month_date(value: str) -> date | None:
    # "Sept" is not a strptime abbreviation
    value = re.sub(r"^sept\b", "Sep", value, flags=re.IGNORECASE)
    for fmt in _MONTH_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def _parse_slash_date(value: str, today: date) -> str | None:
    pieces = value.split("/")
    try:
        month, day = int(pieces[0]), int(pieces[1])
        year = int(pieces[2]) if len(pieces) == 3 else None
    except (ValueError, IndexError):
        return None
    if year is not None and year < 100:
        year += 2000
    try:
        parsed = date(year or today.year, month, day)
    except ValueError:
        return None
    if year is None and parsed < today:
        rolled = _safe_replace_year(parsed, today.year + 1)
        if rolled is None:
            return None
        parsed = rolled
    return parsed.isoformat()


def _safe_replace_year(value: date, year: int) -> date | None:
    try:
        return value.replace(year=year)
    except ValueError:  # Feb 29 in a non-leap year
        return None
