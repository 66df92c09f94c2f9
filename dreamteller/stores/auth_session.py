"""Sign-in state and the token pushed into the dream store's session."""

from typing import Optional

from dreamteller.services.firebase.auth_service import MIN_PASSWORD_LENGTH, AuthServiceProtocol, AuthUser
from dreamteller.services.session import Session
from dreamteller.stores.observable import ObservableStore
from dreamteller.utils.exceptions import (
    AuthError,
    InvalidEmailError,
    InvalidNameError,
    NoCurrentUserError,
    UnknownAuthError,
    WeakPasswordError,
    map_auth_error,
)
from dreamteller.utils.logger import get_logger

logger = get_logger(__name__)


class AuthSession(ObservableStore):
    """
    Identity state for the signed-in user.

    Follows the provider's auth-state stream: every transition updates
    the identity fields and drops the held ID token, which is fetched
    again explicitly. The fetched token is pushed one way into the
    shared :class:`Session`; nothing reads it back from there.
    """

    PUBLISHED_FIELDS = (
        "name",
        "email",
        "password",
        "repeat_password",
        "is_loading",
        "error_message",
        "info_message",
        "is_authenticated",
        "user_id",
        "display_name",
        "email_verified",
        "id_token",
    )

    def __init__(self, auth_service: AuthServiceProtocol, session: Optional[Session] = None):
        super().__init__()
        self.auth_service = auth_service
        self.session = session

        user_id = auth_service.current_user_id()
        self._state.update(
            name="",
            email="",
            password="",
            repeat_password="",
            error_message=None,
            info_message=None,
            is_authenticated=user_id is not None,
            user_id=user_id,
            display_name=None,
            email_verified=False,
            id_token=None,
        )
        self._listener = auth_service.add_state_listener(self._on_auth_state_changed)

    def close(self) -> None:
        """Stop following the provider's auth-state stream."""
        self._listener.cancel()

    # ── Published state ──────────────────────────────────────────────

    @property
    def is_loading(self) -> bool:
        return self._get("is_loading")

    @property
    def error_message(self) -> Optional[str]:
        return self._get("error_message")

    @property
    def info_message(self) -> Optional[str]:
        return self._get("info_message")

    @property
    def is_authenticated(self) -> bool:
        return self._get("is_authenticated")

    @property
    def user_id(self) -> Optional[str]:
        return self._get("user_id")

    @property
    def display_name(self) -> Optional[str]:
        return self._get("display_name")

    @property
    def email_verified(self) -> bool:
        return self._get("email_verified")

    @property
    def id_token(self) -> Optional[str]:
        return self._get("id_token")

    # Form inputs

    @property
    def name(self) -> str:
        return self._get("name")

    @name.setter
    def name(self, value: str) -> None:
        self._set("name", value)

    @property
    def email(self) -> str:
        return self._get("email")

    @email.setter
    def email(self, value: str) -> None:
        self._set("email", value)

    @property
    def password(self) -> str:
        return self._get("password")

    @password.setter
    def password(self, value: str) -> None:
        self._set("password", value)

    @property
    def repeat_password(self) -> str:
        return self._get("repeat_password")

    @repeat_password.setter
    def repeat_password(self, value: str) -> None:
        self._set("repeat_password", value)

    # ── Internals ────────────────────────────────────────────────────

    def _on_auth_state_changed(self, user: Optional[AuthUser]) -> None:
        self._set("user_id", user.uid if user else None)
        self._set("is_authenticated", user is not None)
        self._set("display_name", user.display_name if user else None)
        self._set("email_verified", user.email_verified if user else False)
        self._set_token(None)
        logger.info(f"Auth state changed: {'signed in' if user else 'signed out'}")

    def _set_token(self, token: Optional[str]) -> None:
        self._set("id_token", token)
        if self.session is not None:
            self.session.set_token(token)

    def _fail(self, operation: str, exc: Exception) -> None:
        error = map_auth_error(exc)
        logger.warning(f"{operation} failed: {error.error_code}")
        self._set("error_message", error.message)

    def _reset_messages(self) -> None:
        self._set("error_message", None)
        self._set("info_message", None)

    def validate_sign_in(self) -> Optional[AuthError]:
        if "@" not in self.email:
            return InvalidEmailError()
        if len(self.password) < MIN_PASSWORD_LENGTH:
            return WeakPasswordError()
        return None

    def validate_sign_up(self) -> Optional[AuthError]:
        if not self.name.strip():
            return InvalidNameError()
        error = self.validate_sign_in()
        if error is not None:
            return error
        if self.password != self.repeat_password:
            return UnknownAuthError("Passwords do not match.")
        return None

    # ── Actions ──────────────────────────────────────────────────────

    async def sign_in(self, email: Optional[str] = None, password: Optional[str] = None) -> None:
        if email is not None:
            self.email = email
        if password is not None:
            self.password = password

        self._set("error_message", None)
        validation_error = self.validate_sign_in()
        if validation_error is not None:
            self._set("error_message", validation_error.message)
            return

        self._begin_loading()
        try:
            uid = await self.auth_service.sign_in(self.email, self.password)
            self._set("user_id", uid)
            self._set("is_authenticated", True)
            logger.info(f"Signed in with UID: {uid}")
            await self.fetch_id_token()
        except Exception as e:
            self._fail("sign_in", e)
        finally:
            self._end_loading()

    async def sign_up(self) -> None:
        self._set("error_message", None)
        validation_error = self.validate_sign_up()
        if validation_error is not None:
            self._set("error_message", validation_error.message)
            return

        self._begin_loading()
        try:
            uid = await self.auth_service.sign_up(self.name, self.email, self.password)
            self._set("user_id", uid)
            self._set("is_authenticated", True)
            logger.info(f"Signed up with UID: {uid}")
            await self.fetch_id_token()
        except Exception as e:
            self._fail("sign_up", e)
        finally:
            self._end_loading()

    async def sign_out(self) -> None:
        self._set("error_message", None)
        self._begin_loading()
        try:
            await self.auth_service.sign_out()
            self._set("user_id", None)
            self._set("is_authenticated", False)
            self._set_token(None)
            for field in ("name", "email", "password", "repeat_password"):
                self._set(field, "")
        except Exception as e:
            self._fail("sign_out", e)
        finally:
            self._end_loading()

    async def send_password_reset(self) -> None:
        self._reset_messages()
        if not self.email.strip() or "@" not in self.email:
            self._set("error_message", InvalidEmailError().message)
            return
        try:
            await self.auth_service.send_password_reset(self.email)
            self._set("info_message", "Password reset email sent.")
        except Exception as e:
            self._fail("send_password_reset", e)

    async def send_email_verification(self) -> None:
        self._reset_messages()
        if self.auth_service.current_user() is None:
            self._set("error_message", NoCurrentUserError().message)
            return
        try:
            await self.auth_service.send_email_verification()
            self._set("info_message", "Verification email sent.")
        except Exception as e:
            self._fail("send_email_verification", e)

    async def reload_user(self) -> None:
        if self.auth_service.current_user() is None:
            return
        try:
            user = await self.auth_service.reload_user()
        except Exception as e:
            self._fail("reload_user", e)
            return
        self._set("display_name", user.display_name)
        self._set("email_verified", user.email_verified)
        await self.fetch_id_token(force_refresh=True)

    async def fetch_id_token(self, force_refresh: bool = False) -> None:
        """Obtain an ID token from the provider and push it into the session."""
        if self.auth_service.current_user() is None:
            return
        try:
            token = await self.auth_service.get_id_token(force_refresh)
        except Exception as e:
            self._fail("fetch_id_token", e)
            return
        self._set_token(token)
