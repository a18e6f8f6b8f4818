"""Status and priority normalization utilities.

Centralized status handling shared by the mappers and every analytics
module. It uses the workflow configuration from config.py
(STATUS_ALIASES, ISSUE_STATUSES, CLOSED_STATUSES).
"""

from __future__ import annotations

from .config import (
    CLOSED_STATUSES,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    ISSUE_STATUSES,
    PRIORITIES,
    PRIORITY_ALIASES,
    REJECTED_STATUS,
    RESOLVED_STATUS,
    STATUS_ALIASES,
)

_NULL_LIKE = frozenset({"nan", "none", "null", "undefined"})


def clean_text(value, placeholder: str) -> str:
    """Return a stripped string, or ``placeholder`` for empty/null-like values.

    >>> clean_text("  Electrical ", "Other")
    'Electrical'
    >>> clean_text(None, "Other")
    'Other'
    """
    if value is None:
        return placeholder
    text = str(value).strip()
    if not text or text.lower() in _NULL_LIKE:
        return placeholder
    return text


def _status_key(value) -> str:
    return str(value).strip().lower().replace("-", "_").replace(" ", "_")


def normalize_status(value: str | None) -> str:
    """Map a raw status string to one of ISSUE_STATUSES.

    Unrecognised or empty values fall back to ``pending`` so the record is
    still counted as open work.

    Examples
    --------
    >>> normalize_status("In Progress")
    'in_progress'
    >>> normalize_status("canceled")
    'cancelled'
    """
    if not value:
        return DEFAULT_STATUS
    key = _status_key(value)
    if key in ISSUE_STATUSES:
        return key
    return STATUS_ALIASES.get(key, DEFAULT_STATUS)


def normalize_priority(value: str | None) -> str:
    """Map a raw priority string to one of PRIORITIES (default ``medium``)."""
    if not value:
        return DEFAULT_PRIORITY
    key = str(value).strip().lower()
    if key in PRIORITIES:
        return key
    return PRIORITY_ALIASES.get(key, DEFAULT_PRIORITY)


def is_open_status(status: str) -> bool:
    return status not in CLOSED_STATUSES


def is_resolved_status(status: str) -> bool:
    return status == RESOLVED_STATUS


def is_rejected_status(status: str) -> bool:
    return status == REJECTED_STATUS
