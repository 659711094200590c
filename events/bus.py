"""
Event Bus - Ordered Synchronous Dispatch.

Routes each event to every handler registered for its kind, in
registration order, on the caller's thread. A handler may dispatch further
events; those are delivered before the outer dispatch moves on.
"""

from collections import defaultdict
from datetime import datetime

from events.types import Event, EventHandler, EventKind, HandlerBinding
from logging_config import get_logger

logger = get_logger(__name__)


class EventBus:
    """
    Fixed routing table from event kind to handlers.

    Features:
    - Registration order is dispatch order, per kind
    - A failing handler is logged and skipped; later handlers still run
    - Nested dispatch (handler emitting an event) completes depth-first
    """

    def __init__(self, bindings=None):
        self._routes: dict[EventKind, list[EventHandler]] = defaultdict(list)
        self._bindings: list[HandlerBinding] = []
        for binding in bindings or ():
            self.register(binding.kind, binding.handler)

    @property
    def bindings(self) -> list[HandlerBinding]:
        """Registered bindings in table order."""
        return list(self._bindings)

    def register(self, kind: EventKind, handler: EventHandler) -> None:
        self._routes[kind].append(handler)
        self._bindings.append(HandlerBinding(kind, handler))

    def handlers_for(self, kind: EventKind) -> list[EventHandler]:
        return list(self._routes.get(kind, ()))

    def dispatch(
        self,
        ctx,
        kind: EventKind,
        image=None,
        filename: str | None = None,
        payload=None,
        timestamp: datetime | None = None,
    ) -> None:
        """
        Delivers one event to every handler bound to its kind.

        Args:
            ctx: DaemonContext passed through to handlers.
            kind: Event kind.
            image: Frame buffer or None.
            filename: File path or None.
            payload: Kind-specific payload (file type mask, ImageData, fd).
            timestamp: Event time; recorded on the context when given.
        """
        if timestamp is not None:
            ctx.current_time = timestamp

        for handler in self.handlers_for(kind):
            try:
                handler(ctx, kind, image, filename, payload, timestamp)
            except Exception as e:
                name = getattr(handler, "__name__", repr(handler))
                logger.error(f"Handler {name} failed for {kind.name}: {e}", exc_info=True)

    def emit(self, ctx, event: Event) -> None:
        self.dispatch(
            ctx, event.kind, event.image, event.filename, event.payload, event.timestamp
        )


def create_event_bus(handlers=None) -> EventBus:
    """
    Builds a bus from a binding table.

    Args:
        handlers: Iterable of HandlerBinding; defaults to DEFAULT_HANDLERS.
    """
    if handlers is None:
        from events.handlers import DEFAULT_HANDLERS

        handlers = DEFAULT_HANDLERS
    return EventBus(handlers)
