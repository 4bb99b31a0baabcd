from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

STREAK_INCREASED = "streak_increased"
COUNTER_CHANGED = "counter_changed"
ACTIVE_AT_HOUR = "active_at_hour"


@dataclass(frozen=True)
class DomainEvent:
    name: str
    conn: Any
    payload: Dict[str, Any] = field(default_factory=dict)


Handler = Callable[[DomainEvent], None]


class EventBus:
    """Synchronous observer list keyed by event name."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        self._handlers[name].append(handler)

    def publish(self, name: str, conn, **payload) -> None:
        event = DomainEvent(name=name, conn=conn, payload=payload)
        handlers = self._handlers.get(name, [])
        logger.debug("Dispatching %s to %d handler(s): %s", name, len(handlers), payload)
        for handler in handlers:
            handler(event)
