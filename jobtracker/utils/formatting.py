"""Display formatting helpers."""

from datetime import date, datetime

INVALID_DATE = "Invalid date"


def truncate_string(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + " ..."
    return text


def ordinal_suffix(day: int) -> str:
    if 3 < day < 21:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_date_with_ordinal(value: date | datetime | str | None) -> str:
    """Format as e.g. ``5th March 2024``."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return INVALID_DATE
    if not isinstance(value, date):
        return INVALID_DATE
    return f"{value.day}{ordinal_suffix(value.day)} {value.strftime('%B %Y')}"


def user_initials(name: str | None) -> str:
    """Up to two upper-case initials, ``U`` when there is no name."""
    if not name or not name.strip():
        return "U"
    return "".join(word[0] for word in name.split()).upper()[:2]
