"""Tests for AuthSession against the local identity provider."""

import pytest

from dreamteller.services.firebase.auth_service import LocalAuthService
from dreamteller.services.session import Session
from dreamteller.stores.auth_session import AuthSession


@pytest.fixture
def provider():
    return LocalAuthService()


@pytest.fixture
def session():
    return Session()


@pytest.fixture
def auth(provider, session):
    auth_session = AuthSession(provider, session)
    yield auth_session
    auth_session.close()


async def test_sign_in_pushes_token_into_session(auth, session):
    await auth.sign_in("user@example.com", "secret1")

    assert auth.error_message is None
    assert auth.is_authenticated is True
    assert auth.user_id.startswith("local-")
    assert auth.id_token
    assert session.require_token() == auth.id_token
    assert auth.is_loading is False


@pytest.mark.parametrize(
    "email, password, message",
    [
        ("user.example.com", "secret1", "Please enter a valid email."),
        ("user@example.com", "12345", "Password must be at least 6 characters."),
    ],
)
async def test_sign_in_validates_locally(auth, provider, email, password, message):
    await auth.sign_in(email, password)

    assert auth.error_message == message
    assert auth.is_authenticated is False
    assert provider.current_user() is None


async def test_sign_in_wrong_password(provider, session):
    await provider.sign_up("Ada", "ada@example.com", "secret1")
    await provider.sign_out()
    auth = AuthSession(provider, session)

    await auth.sign_in("ada@example.com", "secret2")

    assert auth.error_message == "Incorrect password."
    assert auth.is_authenticated is False
    assert not session.has_token


async def test_sign_in_unknown_user():
    auth = AuthSession(LocalAuthService(auto_register=False), Session())
    await auth.sign_in("ghost@example.com", "secret1")
    assert auth.error_message == "User not found."


async def test_sign_up_validation(auth):
    auth.name = "   "
    auth.email = "new@example.com"
    auth.password = "secret1"
    auth.repeat_password = "secret1"
    await auth.sign_up()
    assert auth.error_message == "Please enter your name."

    auth.name = "Ada"
    auth.repeat_password = "secret2"
    await auth.sign_up()
    assert auth.error_message == "Passwords do not match."
    assert auth.is_authenticated is False


async def test_sign_up_success_sets_identity(auth, session):
    auth.name = "Ada"
    auth.email = "ada@example.com"
    auth.password = "secret1"
    auth.repeat_password = "secret1"

    await auth.sign_up()

    assert auth.error_message is None
    assert auth.is_authenticated is True
    assert auth.display_name == "Ada"
    assert session.has_token


async def test_sign_up_existing_email(provider, auth):
    await provider.sign_up("Ada", "ada@example.com", "secret1")
    auth.name, auth.email, auth.password, auth.repeat_password = "Bo", "ada@example.com", "secret9", "secret9"

    await auth.sign_up()

    assert auth.error_message == "Email already in use."


async def test_sign_out_clears_token_and_inputs(auth, session):
    await auth.sign_in("user@example.com", "secret1")

    await auth.sign_out()

    assert auth.is_authenticated is False
    assert auth.user_id is None
    assert auth.id_token is None
    assert not session.has_token
    assert (auth.name, auth.email, auth.password, auth.repeat_password) == ("", "", "", "")


async def test_external_state_change_drops_token(auth, provider, session):
    await auth.sign_in("user@example.com", "secret1")

    await provider.sign_out()

    assert auth.is_authenticated is False
    assert auth.email_verified is False
    assert auth.id_token is None
    assert not session.has_token


async def test_any_transition_requires_explicit_token_fetch(auth, provider, session):
    await provider.sign_in("user@example.com", "secret1")

    assert auth.is_authenticated is True
    assert auth.id_token is None
    assert not session.has_token

    await auth.fetch_id_token()
    assert session.has_token


async def test_close_stops_following_provider(provider, session):
    auth = AuthSession(provider, session)
    auth.close()

    await provider.sign_in("user@example.com", "secret1")

    assert auth.is_authenticated is False


async def test_fetch_id_token_force_refresh_replaces_token(auth, session):
    await auth.sign_in("user@example.com", "secret1")
    first = auth.id_token

    await auth.fetch_id_token(force_refresh=True)

    assert auth.id_token != first
    assert session.require_token() == auth.id_token


async def test_fetch_id_token_signed_out_is_a_no_op(auth, session):
    await auth.fetch_id_token()
    assert auth.error_message is None
    assert not session.has_token


async def test_password_reset(auth, provider):
    auth.email = "  "
    await auth.send_password_reset()
    assert auth.error_message == "Please enter a valid email."

    await provider.sign_up("Ada", "ada@example.com", "secret1")
    auth.email = "ada@example.com"
    await auth.send_password_reset()
    assert auth.error_message is None
    assert auth.info_message == "Password reset email sent."


async def test_email_verification_requires_user(auth):
    await auth.send_email_verification()
    assert auth.error_message == "No authenticated user."
    assert auth.info_message is None


async def test_reload_user_refreshes_verification(auth, provider, session):
    await auth.sign_in("user@example.com", "secret1")
    await auth.send_email_verification()
    assert auth.info_message == "Verification email sent."
    token_before = session.require_token()

    provider.mark_email_verified("user@example.com")
    await auth.reload_user()

    assert auth.email_verified is True
    assert session.require_token() != token_before


async def test_initial_state_reflects_existing_user(provider):
    await provider.sign_in("user@example.com", "secret1")
    auth = AuthSession(provider)
    assert auth.is_authenticated is True
    assert auth.user_id == provider.current_user_id()
    auth.close()
