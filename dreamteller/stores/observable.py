"""Published-state base for stores observed by a presentation layer."""

from typing import Any, Callable, Dict, Tuple

from dreamteller.utils.events import EventChannel, Subscription

Change = Tuple[str, Any]


class ObservableStore:
    """
    Owns a set of published fields and notifies listeners on every change.

    All mutation happens on the owning event loop. Listeners receive
    ``(field_name, new_value)`` after the field is updated.
    """

    PUBLISHED_FIELDS: Tuple[str, ...] = ()

    def __init__(self):
        self._state: Dict[str, Any] = {}
        self._changes: EventChannel[Change] = EventChannel(self.__class__.__name__)
        self._loading_depth = 0
        self._state["is_loading"] = False

    def subscribe(self, listener: Callable[[str, Any], None]) -> Subscription:
        return self._changes.subscribe(lambda change: listener(*change))

    def _set(self, name: str, value: Any) -> None:
        self._state[name] = value
        self._changes.emit((name, value))

    def _get(self, name: str) -> Any:
        return self._state.get(name)

    def snapshot(self) -> Dict[str, Any]:
        """Copy of every published field, for polling observers."""
        snapshot = {}
        for name in self.PUBLISHED_FIELDS:
            value = self._state.get(name)
            snapshot[name] = list(value) if isinstance(value, list) else value
        return snapshot

    # ── Loading flag ─────────────────────────────────────────────────
    # Counted rather than toggled, so overlapping operations cannot
    # clear the flag while another is still running.

    def _begin_loading(self) -> None:
        self._loading_depth += 1
        if self._loading_depth == 1:
            self._set("is_loading", True)

    def _end_loading(self) -> None:
        self._loading_depth = max(self._loading_depth - 1, 0)
        if self._loading_depth == 0:
            self._set("is_loading", False)
