from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

BUDGET_CHANGED = "BUDGET_CHANGED"

Handler = Callable[[Any], None]
Unsubscribe = Callable[[], None]


@dataclasses.dataclass(frozen=True)
class BudgetChangedEvent:
    budget_id: str
    previous_amount: Optional[float] = None
    new_amount: Optional[float] = None
    reason: str = ""
    type: str = BUDGET_CHANGED


class NotificationBus:
    """
    In-process publish/subscribe. A failing handler is logged and the
    remaining handlers still run.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, event_kind: str, handler: Handler) -> Unsubscribe:
        self._handlers.setdefault(event_kind, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_kind, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: Any) -> None:
        kind = event.get("type") if isinstance(event, Mapping) else getattr(event, "type", None)
        for handler in list(self._handlers.get(kind, [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler for %s failed", kind)

    def handler_count(self, event_kind: str) -> int:
        return len(self._handlers.get(event_kind, []))
