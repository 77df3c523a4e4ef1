"""
Domain events and the in-process dispatcher that delivers them.

Workflow operations only *return* events. The caller commits the state
change first and then hands the events to ``EventDispatcher.dispatch``,
so a failing handler can never undo the change that produced it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NoRecipientFound

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AbsenceEvent:
    absence_id: int
    person_id: int
    occurred_at: datetime = field(default_factory=_utcnow, compare=False)

    name = "absence_event"


@dataclass(frozen=True)
class AbsenceRequested(AbsenceEvent):
    name = "absence_requested"


@dataclass(frozen=True)
class AbsenceStatusUpdated(AbsenceEvent):
    status: str = ""

    name = "absence_status_updated"


Handler = Callable[[AbsenceEvent, AsyncSession], Awaitable[None]]


class EventDispatcher:
    """Routes events to the handlers subscribed to their exact type."""

    def __init__(self) -> None:
        self._handlers: dict[type[AbsenceEvent], list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type[AbsenceEvent], handler: Handler) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def handlers_for(self, event: AbsenceEvent) -> list[Handler]:
        return list(self._handlers.get(type(event), ()))

    async def dispatch(self, events: Iterable[AbsenceEvent], db: AsyncSession) -> int:
        """Run every handler for every event; return how many failed.

        Failures are logged and their partial writes rolled back. Nothing
        is retried.
        """
        failures = 0
        for event in events:
            for handler in self.handlers_for(event):
                try:
                    await handler(event, db)
                except NoRecipientFound as exc:
                    failures += 1
                    await db.rollback()
                    logger.warning(
                        "No recipient for %s (absence %d): %s",
                        event.name,
                        event.absence_id,
                        exc.detail,
                    )
                except Exception:
                    failures += 1
                    await db.rollback()
                    logger.exception(
                        "Handler %s failed for %s (absence %d)",
                        getattr(handler, "__name__", handler),
                        event.name,
                        event.absence_id,
                    )
        return failures


dispatcher = EventDispatcher()
