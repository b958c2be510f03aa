"""
Formatting and validation helpers used across the portal pages.
"""
import re
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar, Union

from claims_portal.core.states import ClaimStatus, Priority, UserRole

T = TypeVar("T")

DateLike = Union[str, date, datetime]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")

STATUS_COLORS = {
    ClaimStatus.DRAFT: "gray",
    ClaimStatus.SUBMITTED: "blue",
    ClaimStatus.IN_REVIEW: "yellow",
    ClaimStatus.INFO_REQUESTED: "orange",
    ClaimStatus.APPROVED: "green",
    ClaimStatus.REJECTED: "red",
    ClaimStatus.PAID: "emerald",
    ClaimStatus.CLOSED: "gray",
}

STATUS_LABELS = {
    ClaimStatus.DRAFT: "Draft",
    ClaimStatus.SUBMITTED: "Submitted",
    ClaimStatus.IN_REVIEW: "In Review",
    ClaimStatus.INFO_REQUESTED: "Info Requested",
    ClaimStatus.APPROVED: "Approved",
    ClaimStatus.REJECTED: "Rejected",
    ClaimStatus.PAID: "Paid",
    ClaimStatus.CLOSED: "Closed",
}

PRIORITY_COLORS = {
    Priority.LOW: "green",
    Priority.MEDIUM: "yellow",
    Priority.HIGH: "orange",
    Priority.URGENT: "red",
}

ROLE_LABELS = {
    UserRole.POLICYHOLDER: "Policyholder",
    UserRole.ADJUSTER: "Adjuster",
    UserRole.SUPERVISOR: "Supervisor",
    UserRole.ADMIN: "Admin",
}

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}

FILE_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


# ============================================
# DATES
# ============================================

def _to_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_date(value: DateLike, fmt: str = "%b %d, %Y") -> str:
    """Format a date like ``Jan 15, 2024``."""
    return _to_datetime(value).strftime(fmt)


def format_datetime(value: DateLike) -> str:
    return format_date(value, "%b %d, %Y %H:%M")


def _pluralize(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def _whole_months(earlier: datetime, later: datetime) -> int:
    months = (later.year - earlier.year) * 12 + later.month - earlier.month
    if (later.day, later.time()) < (earlier.day, earlier.time()):
        months -= 1
    return months


def format_relative_time(value: DateLike, now: Optional[datetime] = None) -> str:
    """
    Describe the distance to ``now`` in words, e.g. ``3 days ago`` or ``in 2 hours``.

    Thresholds follow the usual "distance in words" buckets: seconds collapse
    into "less than a minute", hours and days are rounded, and distances past
    a year read "about", "over" or "almost" depending on the leftover months.
    """
    moment = _to_datetime(value)
    if now is None:
        now = datetime.now(moment.tzinfo)
    seconds = (now - moment).total_seconds()
    future = seconds < 0
    seconds = abs(seconds)
    minutes = round(seconds / 60)
    month = 30 * 24 * 60

    if seconds < 30:
        words = "less than a minute"
    elif minutes < 45:
        words = _pluralize(max(minutes, 1), "minute")
    elif minutes < 90:
        words = "about 1 hour"
    elif minutes < 24 * 60:
        words = f"about {round(minutes / 60)} hours"
    elif minutes < 42 * 60:
        words = "1 day"
    elif minutes < month:
        words = _pluralize(round(minutes / (24 * 60)), "day")
    elif minutes < 2 * month:
        words = f"about {_pluralize(round(minutes / month), 'month')}"
    else:
        months = _whole_months(*sorted((moment, now)))
        if months < 12:
            words = f"{round(minutes / month)} months"
        else:
            years, leftover = divmod(months, 12)
            if leftover < 3:
                words = f"about {_pluralize(years, 'year')}"
            elif leftover < 9:
                words = f"over {_pluralize(years, 'year')}"
            else:
                words = f"almost {years + 1} years"

    return f"in {words}" if future else f"{words} ago"


# ============================================
# CURRENCY & LABELS
# ============================================

def format_currency(amount: float, currency: str = "USD") -> str:
    """Format an amount like ``$1,500.00``; unknown currencies get a code prefix."""
    decimals = 0 if currency == "JPY" else 2
    body = f"{abs(amount):,.{decimals}f}"
    symbol = CURRENCY_SYMBOLS.get(currency)
    text = f"{symbol}{body}" if symbol else f"{currency} {body}"
    return f"-{text}" if amount < 0 else text


def _enum_value(value: Any) -> str:
    return value.value if hasattr(value, "value") else str(value)


def get_status_color(status: Union[ClaimStatus, str]) -> str:
    try:
        return STATUS_COLORS[ClaimStatus(status)]
    except ValueError:
        return "gray"


def get_status_label(status: Union[ClaimStatus, str]) -> str:
    try:
        return STATUS_LABELS[ClaimStatus(status)]
    except ValueError:
        return _enum_value(status)


def get_priority_color(priority: Union[Priority, str]) -> str:
    try:
        return PRIORITY_COLORS[Priority(priority)]
    except ValueError:
        return "gray"


def get_priority_label(priority: Union[Priority, str]) -> str:
    try:
        return Priority(priority).value.capitalize()
    except ValueError:
        return _enum_value(priority)


def get_role_label(role: Union[UserRole, str]) -> str:
    try:
        return ROLE_LABELS[UserRole(role)]
    except ValueError:
        return _enum_value(role)


# ============================================
# FILES
# ============================================

def format_file_size(size: int) -> str:
    """Human readable size: ``0 Bytes``, ``1.5 KB``, ``2 MB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(FILE_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {FILE_SIZE_UNITS[index]}"


def get_file_icon(mime_type: str) -> str:
    if mime_type.startswith("image/"):
        return "🖼️"
    if "pdf" in mime_type:
        return "📄"
    if "word" in mime_type:
        return "📝"
    if "excel" in mime_type or "spreadsheet" in mime_type:
        return "📊"
    return "📎"


# ============================================
# VALIDATION & TEXT
# ============================================

def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def is_valid_phone_number(phone: str) -> bool:
    if not phone or not PHONE_PATTERN.match(phone):
        return False
    return len(re.sub(r"\D", "", phone)) >= 10


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:].lower()


def group_by(items: Iterable[T], key: Union[str, Callable[[T], Any]]) -> Dict[str, List[T]]:
    """Group items by an attribute name (or dict key) or a key function."""
    groups: Dict[str, List[T]] = defaultdict(list)
    for item in items:
        if callable(key):
            group = key(item)
        elif isinstance(item, dict):
            group = item.get(key)
        else:
            group = getattr(item, key, None)
        groups[_enum_value(group) if group is not None else "None"].append(item)
    return dict(groups)


def get_error_message(error: Any) -> str:
    """Best user-facing message for an exception raised by an API call."""
    message = getattr(error, "message", None)
    if message:
        return str(message)
    if isinstance(error, BaseException) and str(error):
        return str(error)
    return "An unexpected error occurred"
