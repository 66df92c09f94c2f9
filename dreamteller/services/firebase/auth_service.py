"""Identity providers: Firebase Auth over REST, and an in-memory local provider."""

import hashlib
import time
import uuid
from typing import Callable, Dict, Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict

from dreamteller.utils.events import EventChannel, Subscription
from dreamteller.utils.exceptions import (
    IdentityProviderError,
    InvalidEmailError,
    InvalidNameError,
    NoCurrentUserError,
    WeakPasswordError,
)
from dreamteller.utils.logger import get_logger

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


class AuthUser(BaseModel):
    """Identity snapshot delivered to auth-state listeners."""

    model_config = ConfigDict(frozen=True)

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    email_verified: bool = False


class AuthServiceProtocol(Protocol):
    """Operations the auth session consumes from an identity provider."""

    async def sign_in(self, email: str, password: str) -> str: ...

    async def sign_up(self, name: str, email: str, password: str) -> str: ...

    async def sign_out(self) -> None: ...

    def current_user_id(self) -> Optional[str]: ...

    def current_user(self) -> Optional[AuthUser]: ...

    async def get_id_token(self, force_refresh: bool = False) -> str: ...

    def add_state_listener(self, listener: Callable[[Optional[AuthUser]], None]) -> Subscription: ...

    async def send_password_reset(self, email: str) -> None: ...

    async def send_email_verification(self) -> None: ...

    async def reload_user(self) -> AuthUser: ...


class BaseAuthService:
    """Holds the current user and is the sole emitter of auth-state changes."""

    def __init__(self):
        self._user: Optional[AuthUser] = None
        self._state_changes: EventChannel[Optional[AuthUser]] = EventChannel("auth-state")

    def current_user(self) -> Optional[AuthUser]:
        return self._user

    def current_user_id(self) -> Optional[str]:
        return self._user.uid if self._user else None

    def add_state_listener(self, listener: Callable[[Optional[AuthUser]], None]) -> Subscription:
        return self._state_changes.subscribe(listener)

    def _set_user(self, user: Optional[AuthUser]) -> None:
        self._user = user
        self._state_changes.emit(user)

    def _require_user(self) -> AuthUser:
        if self._user is None:
            raise NoCurrentUserError()
        return self._user


class FirebaseAuthService(BaseAuthService):
    """
    Firebase Authentication for an end-user client.

    Uses the public Identity Toolkit and Secure Token REST APIs with the
    project's Web API key; the Admin SDK is server-only and cannot sign
    users in with a password.
    """

    IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts"
    SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
    DEFAULT_TIMEOUT = 30.0  # seconds
    # Refresh a little before Firebase's one-hour expiry
    TOKEN_EXPIRY_MARGIN = 60  # seconds

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Firebase client.

        Args:
            api_key: Firebase project Web API key.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).

        Raises:
            ValueError: If api_key is empty.
        """
        if not api_key:
            raise ValueError("Firebase API key cannot be empty")
        super().__init__()
        self._api_key = api_key
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at: float = 0.0

        logger.info("FirebaseAuthService initialized")

    async def _request(self, url: str, **kwargs) -> dict:
        try:
            response = await self._client.post(url, params={"key": self._api_key}, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Firebase request failed: {e!r}")
            raise IdentityProviderError("NETWORK_REQUEST_FAILED", "Network error. Please try again.") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_success:
            return data

        error = data.get("error", {}) if isinstance(data, dict) else {}
        code = error.get("message") or f"HTTP_{response.status_code}"
        logger.warning(f"Firebase rejected request: {code}")
        raise IdentityProviderError(code)

    async def _accounts(self, action: str, payload: dict) -> dict:
        return await self._request(f"{self.IDENTITY_TOOLKIT_URL}:{action}", json=payload)

    def _store_tokens(self, id_token: str, refresh_token: str, expires_in) -> None:
        self._id_token = id_token
        self._refresh_token = refresh_token
        self._expires_at = time.time() + int(expires_in or 3600)

    def _clear_tokens(self) -> None:
        self._id_token = None
        self._refresh_token = None
        self._expires_at = 0.0

    async def _lookup(self, id_token: str) -> AuthUser:
        data = await self._accounts("lookup", {"idToken": id_token})
        users = data.get("users") or []
        if not users:
            raise IdentityProviderError("USER_NOT_FOUND")
        record = users[0]
        return AuthUser(
            uid=record["localId"],
            email=record.get("email"),
            display_name=record.get("displayName") or None,
            email_verified=bool(record.get("emailVerified", False)),
        )

    async def sign_in(self, email: str, password: str) -> str:
        data = await self._accounts(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        self._store_tokens(data["idToken"], data["refreshToken"], data.get("expiresIn"))
        user = await self._lookup(data["idToken"])
        self._set_user(user)
        logger.info(f"Signed in user: {user.uid}")
        return user.uid

    async def sign_up(self, name: str, email: str, password: str) -> str:
        data = await self._accounts(
            "signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        self._store_tokens(data["idToken"], data["refreshToken"], data.get("expiresIn"))
        uid = data["localId"]

        display_name = name
        try:
            await self._accounts(
                "update",
                {"idToken": data["idToken"], "displayName": name, "returnSecureToken": False},
            )
        except IdentityProviderError as e:
            # Account exists already; a missing display name is recoverable
            logger.warning(f"Display name update failed for {uid}: {e.code}")
            display_name = None

        self._set_user(AuthUser(uid=uid, email=data.get("email", email), display_name=display_name))
        logger.info(f"User created: {uid}")
        return uid

    async def sign_out(self) -> None:
        uid = self.current_user_id()
        self._clear_tokens()
        self._set_user(None)
        logger.info(f"Signed out user: {uid}")

    async def get_id_token(self, force_refresh: bool = False) -> str:
        self._require_user()
        fresh = self._id_token and time.time() < self._expires_at - self.TOKEN_EXPIRY_MARGIN
        if fresh and not force_refresh:
            return self._id_token

        if not self._refresh_token:
            raise NoCurrentUserError()
        data = await self._request(
            self.SECURE_TOKEN_URL,
            data={"grant_type": "refresh_token", "refresh_token": self._refresh_token},
        )
        token = data.get("id_token")
        if not token:
            raise IdentityProviderError("TOKEN_MISSING", "Token missing")
        self._store_tokens(token, data.get("refresh_token", self._refresh_token), data.get("expires_in"))
        logger.debug("ID token refreshed")
        return token

    async def send_password_reset(self, email: str) -> None:
        await self._accounts("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
        logger.info("Password reset email requested")

    async def send_email_verification(self) -> None:
        self._require_user()
        token = await self.get_id_token()
        await self._accounts("sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": token})
        logger.info("Verification email requested")

    async def reload_user(self) -> AuthUser:
        self._require_user()
        token = await self.get_id_token()
        # Refreshing the record does not count as an auth-state change
        self._user = await self._lookup(token)
        return self._user

    async def aclose(self) -> None:
        await self._client.aclose()


class LocalAuthService(BaseAuthService):
    """
    In-memory identity provider for development and tests.

    Enforces the same input rules as Firebase. With ``auto_register`` an
    unknown email signing in gets an account on the fly.
    """

    def __init__(self, auto_register: bool = True):
        super().__init__()
        self.auto_register = auto_register
        self._accounts: Dict[str, dict] = {}
        self._token: Optional[str] = None

    @staticmethod
    def _validate(email: str, password: str) -> None:
        if "@" not in email:
            raise InvalidEmailError()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError()

    def _issue_token(self, uid: str) -> str:
        return hashlib.sha256(f"{uid}:{time.time()}:{uuid.uuid4()}".encode()).hexdigest()

    def _create_account(self, name: Optional[str], email: str, password: str) -> dict:
        account = {
            "uid": f"local-{uuid.uuid4().hex[:8]}",
            "name": name,
            "email": email,
            "password": password,
            "email_verified": False,
        }
        self._accounts[email.lower()] = account
        return account

    def _user_for(self, account: dict) -> AuthUser:
        return AuthUser(
            uid=account["uid"],
            email=account["email"],
            display_name=account["name"],
            email_verified=account["email_verified"],
        )

    async def sign_in(self, email: str, password: str) -> str:
        self._validate(email, password)
        account = self._accounts.get(email.lower())
        if account is None:
            if not self.auto_register:
                raise IdentityProviderError("EMAIL_NOT_FOUND")
            account = self._create_account(None, email, password)
        elif account["password"] != password:
            raise IdentityProviderError("INVALID_PASSWORD")

        self._token = self._issue_token(account["uid"])
        self._set_user(self._user_for(account))
        return account["uid"]

    async def sign_up(self, name: str, email: str, password: str) -> str:
        if not name.strip():
            raise InvalidNameError()
        self._validate(email, password)
        if email.lower() in self._accounts:
            raise IdentityProviderError("EMAIL_EXISTS")

        account = self._create_account(name, email, password)
        self._token = self._issue_token(account["uid"])
        self._set_user(self._user_for(account))
        return account["uid"]

    async def sign_out(self) -> None:
        self._token = None
        self._set_user(None)

    async def get_id_token(self, force_refresh: bool = False) -> str:
        user = self._require_user()
        if force_refresh or not self._token:
            self._token = self._issue_token(user.uid)
        return self._token

    async def send_password_reset(self, email: str) -> None:
        if email.lower() not in self._accounts:
            raise IdentityProviderError("EMAIL_NOT_FOUND")

    async def send_email_verification(self) -> None:
        self._require_user()

    async def reload_user(self) -> AuthUser:
        user = self._require_user()
        account = self._accounts[user.email.lower()]
        self._user = self._user_for(account)
        return self._user

    def mark_email_verified(self, email: str) -> None:
        """Simulate the user clicking the verification link."""
        self._accounts[email.lower()]["email_verified"] = True
