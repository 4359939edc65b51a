from datetime import date, datetime
from typing import Any, Optional
import re

from reward_points.core.config import settings

DEFAULT_PROJECT_SLUG = "sample-entry"
SLUG_SOURCE_LENGTH = 10


def fiscal_year_number(on: Optional[date] = None) -> int:
    """Two digit fiscal year; the fiscal year starting Oct 2024 is FY25"""
    on = on or date.today()
    if on.month >= settings.FISCAL_YEAR_START_MONTH:
        return (on.year + 1) % 100
    return on.year % 100


def fiscal_year(on: Optional[date] = None) -> str:
    return f"FY{fiscal_year_number(on):02d}"


def fiscal_quarter(on: Optional[date] = None) -> int:
    on = on or date.today()
    return ((on.month - settings.FISCAL_YEAR_START_MONTH) % 12) // 3 + 1


def race_season(on: Optional[date] = None) -> str:
    """Fiscal year and quarter label, e.g. FY25 Q2"""
    return f"{fiscal_year(on)} Q{fiscal_quarter(on)}"


def leaderboard_alias(fiscal_year_label: str, sequence: int) -> str:
    return f"{fiscal_year_label}-{sequence:04d}"


def project_slug(project_name: Optional[str]) -> str:
    """Folder name for a project's attachments, built from its first 10 characters"""
    if not project_name or not isinstance(project_name, str):
        return DEFAULT_PROJECT_SLUG
    slug = re.sub(r"[^a-z0-9]+", "-", project_name[:SLUG_SOURCE_LENGTH].lower()).strip("-")
    return slug or DEFAULT_PROJECT_SLUG


def capitalize_title(title: Optional[str]) -> Optional[str]:
    if not title:
        return title
    return " ".join(word[:1].upper() + word[1:].lower() for word in title.split())


def parse_yes_no(value: Any) -> bool:
    """Spreadsheet cells use Yes/No for flags"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("yes", "y", "true", "1")


def parse_date(value: Any) -> date:
    """Accepts date objects, ISO dates and MM/DD/YYYY strings"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%m/%d/%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value}")
