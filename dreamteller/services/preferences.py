"""
File-backed client preferences that persist across launches.
Holds only the onboarding flag.
"""

import json
import threading
from pathlib import Path
from typing import Optional, Union

from dreamteller.utils.logger import get_logger

logger = get_logger(__name__)

HAS_SEEN_ONBOARDING = "hasSeenOnboarding"


class ClientPreferences:
    """JSON file holding the "has completed onboarding" flag."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data: dict = {}
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences at {self._path}: {e}")
            return
        if isinstance(data, dict):
            self._data = data

    def _persist(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(self._data, f, indent=2)
        tmp_path.replace(self._path)

    @property
    def has_seen_onboarding(self) -> bool:
        return bool(self._data.get(HAS_SEEN_ONBOARDING, False))

    def set_has_seen_onboarding(self, value: bool) -> None:
        with self._lock:
            self._data[HAS_SEEN_ONBOARDING] = bool(value)
            self._persist()

    def mark_onboarding_seen(self) -> None:
        self.set_has_seen_onboarding(True)


def resolve_root_screen(is_authenticated: bool, preferences: Optional[ClientPreferences]) -> str:
    """Pick the first screen: ``main``, ``login`` or ``onboarding``."""
    if is_authenticated:
        return "main"
    if preferences is not None and preferences.has_seen_onboarding:
        return "login"
    return "onboarding"
