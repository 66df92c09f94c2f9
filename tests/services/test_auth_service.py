"""Tests for the Firebase REST identity provider using a mock transport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from conftest import RecordingTransport, json_response
from dreamteller.services.firebase.auth_service import FirebaseAuthService
from dreamteller.utils.exceptions import (
    IdentityProviderError,
    NoCurrentUserError,
    UserNotFoundError,
    map_auth_error,
)

SIGN_IN = {
    "localId": "uid-1",
    "email": "user@example.com",
    "idToken": "id-token-1",
    "refreshToken": "refresh-1",
    "expiresIn": "3600",
}
LOOKUP = {"users": [{"localId": "uid-1", "email": "user@example.com", "displayName": "Ada", "emailVerified": True}]}


def firebase_handler(overrides=None):
    routes = {
        "/v1/accounts:signInWithPassword": lambda: json_response(SIGN_IN),
        "/v1/accounts:signUp": lambda: json_response(SIGN_IN),
        "/v1/accounts:update": lambda: json_response({"localId": "uid-1"}),
        "/v1/accounts:lookup": lambda: json_response(LOOKUP),
        "/v1/accounts:sendOobCode": lambda: json_response({"email": "user@example.com"}),
        "/v1/token": lambda: json_response(
            {"id_token": "id-token-2", "refresh_token": "refresh-2", "expires_in": "3600", "user_id": "uid-1"}
        ),
    }
    routes.update(overrides or {})

    def handler(request):
        return routes[request.url.path]()

    return handler


def make_service(overrides=None):
    transport = RecordingTransport(firebase_handler(overrides))
    return FirebaseAuthService("web-key", transport=transport), transport


def test_requires_api_key():
    with pytest.raises(ValueError):
        FirebaseAuthService("")


async def test_sign_in_emits_user_and_sends_key():
    service, transport = make_service()
    events = []
    service.add_state_listener(events.append)

    uid = await service.sign_in("user@example.com", "secret1")

    assert uid == "uid-1"
    assert events[0].display_name == "Ada"
    assert events[0].email_verified is True
    sign_in_request = transport.requests[0]
    assert sign_in_request.url.params["key"] == "web-key"
    assert json.loads(sign_in_request.content) == {
        "email": "user@example.com",
        "password": "secret1",
        "returnSecureToken": True,
    }


async def test_get_id_token_uses_cache_until_forced():
    service, transport = make_service()
    await service.sign_in("user@example.com", "secret1")

    assert await service.get_id_token() == "id-token-1"
    assert await service.get_id_token(force_refresh=True) == "id-token-2"

    refresh = transport.requests[-1]
    assert refresh.url.path == "/v1/token"
    form = parse_qs(refresh.content.decode())
    assert form == {"grant_type": ["refresh_token"], "refresh_token": ["refresh-1"]}


async def test_get_id_token_signed_out():
    service, _ = make_service()
    with pytest.raises(NoCurrentUserError):
        await service.get_id_token()


async def test_provider_error_codes_are_surfaced():
    service, _ = make_service(
        {"/v1/accounts:signInWithPassword": lambda: json_response({"error": {"code": 400, "message": "EMAIL_NOT_FOUND"}}, 400)}
    )

    with pytest.raises(IdentityProviderError) as excinfo:
        await service.sign_in("ghost@example.com", "secret1")

    assert excinfo.value.code == "EMAIL_NOT_FOUND"
    assert isinstance(map_auth_error(excinfo.value), UserNotFoundError)
    assert service.current_user() is None


async def test_network_failure_is_provider_error():
    def refuse():
        raise httpx.ConnectError("refused")

    service, _ = make_service({"/v1/accounts:signInWithPassword": refuse})
    with pytest.raises(IdentityProviderError) as excinfo:
        await service.sign_in("user@example.com", "secret1")
    assert excinfo.value.code == "NETWORK_REQUEST_FAILED"


async def test_sign_up_survives_display_name_failure():
    service, _ = make_service(
        {"/v1/accounts:update": lambda: json_response({"error": {"message": "INVALID_ID_TOKEN"}}, 400)}
    )

    uid = await service.sign_up("Ada", "user@example.com", "secret1")

    assert uid == "uid-1"
    assert service.current_user().display_name is None


async def test_sign_out_emits_none_and_forgets_tokens():
    service, _ = make_service()
    events = []
    await service.sign_in("user@example.com", "secret1")
    service.add_state_listener(events.append)

    await service.sign_out()

    assert events == [None]
    with pytest.raises(NoCurrentUserError):
        await service.get_id_token()


async def test_email_verification_and_reload():
    service, transport = make_service()
    await service.sign_in("user@example.com", "secret1")

    await service.send_email_verification()
    oob = json.loads(transport.requests[-1].content)
    assert oob == {"requestType": "VERIFY_EMAIL", "idToken": "id-token-1"}

    user = await service.reload_user()
    assert user.email_verified is True


async def test_password_reset_request():
    service, transport = make_service()
    await service.send_password_reset("user@example.com")
    assert json.loads(transport.requests[0].content) == {"requestType": "PASSWORD_RESET", "email": "user@example.com"}
