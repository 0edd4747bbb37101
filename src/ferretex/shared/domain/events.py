"""Domain event base class.

Events are immutable notifications published after a state change has
been committed.  Subclasses declare their payload fields positionally;
the metadata fields are keyword-only so they never collide.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    event_id: UUID = field(default_factory=uuid4, kw_only=True)
    occurred_on: datetime = field(default_factory=_utcnow, kw_only=True)
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", type(self).__name__)
