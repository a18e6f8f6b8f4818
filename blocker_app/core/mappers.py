"""Mapping raw store rows into IssueRecord / Actor instances and DataFrames."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from .config import DEFAULT_CATEGORY, DEFAULT_LOCATION
from .models import Actor, IssueRecord, StatusChange
from .status import clean_text, normalize_priority, normalize_status

logger = logging.getLogger(__name__)

RECORD_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "category",
    "priority",
    "status",
    "location",
    "created_at",
    "updated_at",
    "completed_at",
    "assigned_actor_id",
    "project_id",
    "has_documentation",
    "status_history",
    "due_date",
)

DATETIME_COLUMNS: tuple[str, ...] = ("created_at", "updated_at", "completed_at", "due_date")


def parse_dt(val):
    if val is None or val == "":
        return None
    ts = pd.to_datetime(val, utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _ref_id(value: Any) -> str | None:
    """Extract an id from either a bare id or an embedded user/project object."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        for key in ("id", "user_id"):
            if value.get(key):
                return str(value[key])
        return None
    text = str(value).strip()
    return text or None


def _has_attachments(raw: Mapping[str, Any]) -> bool:
    if "has_documentation" in raw:
        return bool(raw.get("has_documentation"))
    for key in ("photo_urls", "photos", "attachments"):
        value = raw.get(key)
        if isinstance(value, (list, tuple)) and len(value) > 0:
            return True
    return False


def _map_history(entries: Any) -> tuple[StatusChange, ...]:
    if not isinstance(entries, (list, tuple)):
        return ()
    changes: list[StatusChange] = []
    for entry in entries:
        if isinstance(entry, StatusChange):
            changes.append(entry)
            continue
        if not isinstance(entry, Mapping):
            continue
        status = entry.get("status") or entry.get("to_status")
        if not status:
            continue
        ts = parse_dt(entry.get("timestamp") or entry.get("created_at") or entry.get("changed_at"))
        changes.append(StatusChange(status=normalize_status(status), timestamp=ts))
    return tuple(changes)


def map_record(
    raw: Mapping[str, Any],
    project_locations: Mapping[str, str] | None = None,
) -> IssueRecord | None:
    """Map a raw blocker row to an IssueRecord.

    Parameters
    ----------
    raw : Mapping
        Row as returned by the data-access layer. Accepts the store's
        snake_case names (``created_at``, ``assigned_to``, ``photo_urls`` ...).
    project_locations : Mapping, optional
        Project id to project location, used when the row has no location.

    Returns
    -------
    IssueRecord or None
        None when the row has no id or no parsable ``created_at``.
    """
    record_id = raw.get("id")
    created_at = parse_dt(raw.get("created_at"))
    if record_id is None or created_at is None:
        logger.warning("Dropping blocker row without id/created_at: %r", record_id)
        return None

    status = normalize_status(raw.get("status"))
    project = raw.get("project") if isinstance(raw.get("project"), Mapping) else {}
    project_id = _ref_id(raw.get("project_id")) or _ref_id(project)

    location = raw.get("location")
    if not clean_text(location, ""):
        location = project.get("location")
    if not clean_text(location, "") and project_locations and project_id:
        location = project_locations.get(project_id)

    updated_at = parse_dt(raw.get("updated_at"))
    completed_at = parse_dt(raw.get("completed_at") or raw.get("resolved_at"))
    if completed_at is None and status == "verified_complete":
        # The store stamps updated_at on the final status change
        completed_at = updated_at

    return IssueRecord(
        id=str(record_id),
        created_at=created_at,
        category=clean_text(raw.get("category") or raw.get("type"), DEFAULT_CATEGORY),
        priority=normalize_priority(raw.get("priority")),
        status=status,
        location=clean_text(location, DEFAULT_LOCATION),
        updated_at=updated_at,
        completed_at=completed_at,
        assigned_actor_id=_ref_id(raw.get("assigned_actor_id") or raw.get("assigned_to")),
        project_id=project_id,
        status_history=_map_history(raw.get("status_history")),
        has_documentation=_has_attachments(raw),
        title=raw.get("title"),
        due_date=parse_dt(raw.get("due_date")),
    )


def map_records(
    rows: Iterable[Mapping[str, Any]],
    project_locations: Mapping[str, str] | None = None,
) -> list[IssueRecord]:
    records = []
    for row in rows:
        record = map_record(row, project_locations)
        if record is not None:
            records.append(record)
    return records


def map_actor(raw: Mapping[str, Any]) -> Actor:
    display_name = raw.get("display_name") or raw.get("full_name") or raw.get("name")
    if not display_name:
        parts = [raw.get("first_name"), raw.get("last_name")]
        display_name = " ".join(p for p in parts if p)
    actor_id = _ref_id(raw.get("id") or raw.get("user_id"))
    return Actor(
        id=actor_id or "",
        display_name=clean_text(display_name, actor_id or "Unknown Actor"),
        role=raw.get("role"),
        team_id=_ref_id(raw.get("team_id")),
        last_active_at=parse_dt(raw.get("last_active_at") or raw.get("last_login")),
    )


def records_to_dataframe(records: Iterable[IssueRecord]) -> pd.DataFrame:
    """Flatten IssueRecords into one row per record with fallbacks applied."""
    rows = []
    for r in records:
        rows.append(
            {
                "id": r.id,
                "title": r.title,
                "category": clean_text(r.category, DEFAULT_CATEGORY),
                "priority": normalize_priority(r.priority),
                "status": normalize_status(r.status),
                "location": clean_text(r.location, DEFAULT_LOCATION),
                "created_at": r.created_at,
                "updated_at": r.updated_at,
                "completed_at": r.completed_at,
                "assigned_actor_id": r.assigned_actor_id or None,
                "project_id": r.project_id,
                "has_documentation": bool(r.has_documentation),
                "status_history": tuple(r.status_history or ()),
                "due_date": r.due_date,
            }
        )
    df = pd.DataFrame(rows, columns=list(RECORD_COLUMNS))
    for col in DATETIME_COLUMNS:
        df[col] = pd.to_datetime(df[col], utc=True, errors="coerce")
    df["has_documentation"] = df["has_documentation"].astype(bool)
    return df
