"""
Row (de)serialization helpers shared by the Supabase repositories.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from postgrest.exceptions import APIError

from domain.errors import LeadMatchingError, RepositoryError
from domain.time import require_utc_timestamp


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    # A naive timestamp from the backend is interpreted as UTC.
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_optional_datetime(value: Any) -> Optional[datetime]:
    return parse_utc_datetime(value) if value else None


def rows_or_raise(response: Any, action: str) -> List[Mapping[str, Any]]:
    """Return response rows, raising RepositoryError if the backend reported an error."""

    error = getattr(response, "error", None)
    if error:
        raise RepositoryError(f"Failed to {action}: {error}")
    return getattr(response, "data", None) or []


# Postgres SQLSTATE for a unique constraint violation.
UNIQUE_VIOLATION = "23505"


def execute_query(
    query: Any,
    action: str,
    *,
    on_unique_violation: Optional[Callable[[], LeadMatchingError]] = None,
) -> Any:
    """
    Execute a postgrest query, translating backend failures into domain errors.

    supabase-py raises APIError from execute() rather than setting
    response.error, so both paths end in RepositoryError. A unique constraint
    violation raises the error built by on_unique_violation when one is given.
    """

    try:
        response = query.execute()
    except APIError as e:
        if on_unique_violation is not None and getattr(e, "code", None) == UNIQUE_VIOLATION:
            raise on_unique_violation() from e
        raise RepositoryError(f"Failed to {action}: {getattr(e, 'message', None) or e}") from e
    rows_or_raise(response, action)
    return response


def fetch_rows(
    query: Any,
    action: str,
    *,
    on_unique_violation: Optional[Callable[[], LeadMatchingError]] = None,
) -> List[Mapping[str, Any]]:
    """Execute a query and return its rows."""

    response = execute_query(query, action, on_unique_violation=on_unique_violation)
    return rows_or_raise(response, action)
