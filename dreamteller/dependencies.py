"""
Client composition root.
Wires transport, session, stores and identity provider from settings.
Supports both Firebase mode and local development mode.
"""

from typing import Optional

import httpx

from dreamteller.config import Settings, get_settings
from dreamteller.services.api.client import APIClient
from dreamteller.services.firebase.auth_service import (
    AuthServiceProtocol,
    FirebaseAuthService,
    LocalAuthService,
)
from dreamteller.services.preferences import ClientPreferences, resolve_root_screen
from dreamteller.services.session import Session
from dreamteller.stores.auth_session import AuthSession
from dreamteller.stores.dream_store import DreamStore
from dreamteller.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


class DreamtellerClient:
    """Everything a presentation layer needs, built once per process."""

    def __init__(
        self,
        settings: Settings,
        api: APIClient,
        auth_service: AuthServiceProtocol,
        preferences: ClientPreferences,
    ):
        self.settings = settings
        self.api = api
        self.auth_service = auth_service
        self.preferences = preferences
        self.session = Session()
        self.dreams = DreamStore(api, self.session)
        self.auth = AuthSession(auth_service, self.session)

    def root_screen(self) -> str:
        return resolve_root_screen(self.auth.is_authenticated, self.preferences)

    async def aclose(self) -> None:
        self.auth.close()
        await self.api.aclose()
        if isinstance(self.auth_service, FirebaseAuthService):
            await self.auth_service.aclose()


def create_auth_service(settings: Settings) -> AuthServiceProtocol:
    """Firebase when a Web API key is configured, otherwise the local provider."""
    if settings.use_local_auth:
        logger.info("Firebase API key not found - using LOCAL identity provider")
        return LocalAuthService()
    logger.info("Using Firebase identity provider")
    return FirebaseAuthService(settings.firebase_api_key, timeout=settings.request_timeout)


def create_client(
    settings: Optional[Settings] = None,
    api_transport: Optional[httpx.AsyncBaseTransport] = None,
    auth_service: Optional[AuthServiceProtocol] = None,
    configure_logs: bool = True,
) -> DreamtellerClient:
    """
    Build a fully wired client.

    Args:
        settings: Settings to use; defaults to the environment singleton.
        api_transport: Optional httpx transport for the backend API.
        auth_service: Identity provider override.
        configure_logs: Install the JSON log handler.

    Returns:
        DreamtellerClient instance.
    """
    settings = settings or get_settings()
    if configure_logs:
        configure_logging(debug=settings.debug)
    logger.info(
        f"Creating {settings.app_name} client ({settings.environment})",
        extra={"extra_data": {"app": settings.app_name, "environment": settings.environment}},
    )

    api = APIClient(settings.api_base_url, timeout=settings.request_timeout, transport=api_transport)
    return DreamtellerClient(
        settings=settings,
        api=api,
        auth_service=auth_service or create_auth_service(settings),
        preferences=ClientPreferences(settings.preferences_path),
    )
