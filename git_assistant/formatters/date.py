"""Date and time formatting utilities."""

from datetime import datetime
from typing import Any


def format_date(date: Any) -> str:
    """
    Format a date object or ISO 8601 string as YYYY-MM-DD HH:MM.

    Args:
        date: datetime or ISO string as printed by git (%aI)

    Returns:
        Formatted date string, or the input unchanged if it cannot be parsed
    """
    if isinstance(date, str):
        try:
            date = datetime.fromisoformat(date)
        except ValueError:
            return date
    if hasattr(date, "strftime"):
        return date.strftime("%Y-%m-%d %H:%M")
    return str(date)
