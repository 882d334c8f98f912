"""Stage timeline helpers shared by import workflows."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured import timeline event.

    Args:
        stage: Stage name (`mandates`, `values`, `stats`, `import`).
        status: Stage status marker.
        details: Optional structured details object.

    Returns:
        dict[str, object]: JSON-compatible timeline event.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details is not None:
        event_payload["details"] = details
    return event_payload


def domain_elapsed_ms(started_at_utc: datetime) -> int:
    """Return non-negative elapsed milliseconds since a UTC start timestamp.

    Args:
        started_at_utc: Timezone-aware start timestamp.

    Returns:
        int: Elapsed milliseconds clamped at zero.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return max(0, int((datetime.now(timezone.utc) - started_at_utc).total_seconds() * 1000))
