"""Bearer token holder gating every authenticated request."""

from typing import Optional

from dreamteller.utils.exceptions import UnauthorizedError


class Session:
    """
    Holds the current bearer token in memory only.

    The auth session is the sole writer; stores only read through
    :meth:`require_token`.
    """

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def set_token(self, token: Optional[str]) -> None:
        """Replace the held token unconditionally. ``None`` clears it."""
        self._token = token

    def clear(self) -> None:
        self._token = None

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def require_token(self) -> str:
        """
        Return the held token.

        Raises:
            UnauthorizedError: If no token, or an empty one, is held.
        """
        if not self._token:
            raise UnauthorizedError()
        return self._token
