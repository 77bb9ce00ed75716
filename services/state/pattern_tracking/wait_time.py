"""Days-since-modification for tracked artifacts."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from services.state.pattern_tracking.domain import StageKey
from services.state.pattern_tracking.errors import InvalidInputError

_ONE_DAY = timedelta(days=1)


def compute_wait_days(modified_at: object, now: datetime, stage: StageKey) -> int:
    """Return whole days between ``modified_at`` and ``now``.

    Finished artifacts always wait zero days, whatever their timestamp.
    ``now`` must not precede ``modified_at``; naive datetimes are read as UTC.
    """
    if stage is StageKey.DONE:
        return 0
    if not isinstance(modified_at, datetime):
        raise InvalidInputError(f"modification time must be a datetime, got {modified_at!r}")
    if not isinstance(now, datetime):
        raise InvalidInputError(f"current time must be a datetime, got {now!r}")

    elapsed = _as_utc(now) - _as_utc(modified_at)
    if elapsed < timedelta(0):
        raise InvalidInputError(
            f"modification time {modified_at.isoformat()} is after {now.isoformat()}"
        )
    return elapsed // _ONE_DAY


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
