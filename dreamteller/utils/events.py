"""Minimal in-process event channel with cancellable subscriptions."""

from typing import Callable, Dict, Generic, TypeVar

from dreamteller.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by :meth:`EventChannel.subscribe`. Cancelling twice is harmless."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._cancel()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cancel()


class EventChannel(Generic[T]):
    """
    Synchronous fan-out of events to registered listeners.

    The owner of the channel is its only emitter. Listeners are invoked in
    registration order on the emitting context; a listener that raises is
    logged and does not stop delivery to the others.
    """

    def __init__(self, name: str = "events"):
        self.name = name
        self._listeners: Dict[int, Callable[[T], None]] = {}
        self._next_id = 0

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        listener_id = self._next_id
        self._next_id += 1
        self._listeners[listener_id] = listener
        return Subscription(lambda: self._listeners.pop(listener_id, None))

    def emit(self, event: T) -> None:
        for listener in list(self._listeners.values()):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Listener on {self.name} failed: {e}", exc_info=True)

    def __len__(self) -> int:
        return len(self._listeners)
