"""Auth context and sign-in/sign-up tests."""
from __future__ import annotations

import pytest

from components.auth import (
    AuthContext,
    AuthError,
    AuthService,
    AuthStatus,
    CurrentUser,
    get_password_hash,
    validate_credentials,
    verify_password,
)
from storage.models import Profile


def test_context_tri_state():
    assert AuthContext.loading().is_loading
    assert not AuthContext.loading().is_authenticated
    assert AuthContext.signed_out().status is AuthStatus.UNAUTHENTICATED
    ctx = AuthContext.signed_in(CurrentUser(id="u1", email="a@b.co"))
    assert ctx.is_authenticated and not ctx.is_loading


def test_user_initial():
    assert CurrentUser(id="u", email="zoe@example.com").initial == "Z"
    assert CurrentUser(id="u", email="zoe@example.com", full_name="alex").initial == "A"


def test_password_hash_round_trip():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_validation_collects_field_errors():
    with pytest.raises(AuthError) as exc:
        validate_credentials("not-an-email", "123", "", signing_up=True)
    assert set(exc.value.errors) == {"email", "password", "full_name"}


def test_validation_normalizes_email():
    fields = validate_credentials("  Sam@Example.COM ", "secret123")
    assert fields["email"] == "sam@example.com"


def test_sign_up_then_sign_in(session_factory):
    service = AuthService(session_factory)
    ctx = service.sign_up("new@example.com", "secret123", " New User ")
    assert ctx.is_authenticated
    assert ctx.user.full_name == "New User"

    with session_factory() as db:
        profile = db.get(Profile, ctx.user.id)
        assert profile.full_name == "New User"
        assert profile.weekly_reminder is True

    again = service.sign_in("NEW@example.com", "secret123")
    assert again.user.id == ctx.user.id


def test_duplicate_email_is_rejected(session_factory):
    service = AuthService(session_factory)
    service.sign_up("dup@example.com", "secret123", "First")
    with pytest.raises(AuthError) as exc:
        service.sign_up("dup@example.com", "secret456", "Second")
    assert "email" in exc.value.errors


def test_wrong_password_is_rejected(session_factory):
    service = AuthService(session_factory)
    service.sign_up("who@example.com", "secret123", "Who")
    with pytest.raises(AuthError, match="Invalid login credentials"):
        service.sign_in("who@example.com", "not-it")


def test_sign_out_returns_unauthenticated(session_factory):
    ctx = AuthContext.signed_in(CurrentUser(id="u1", email="a@b.co"))
    assert AuthService(session_factory).sign_out(ctx).status is AuthStatus.UNAUTHENTICATED
