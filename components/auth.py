"""
Authentication: an explicit AuthContext handed to every page, backed by a
SQLAlchemy user table with bcrypt password hashes.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import EMAIL_MAX_LENGTH, NAME_MAX_LENGTH, PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from storage.database import SessionLocal
from storage.models import Profile, User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthStatus(str, Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AuthError(ValueError):
    """Sign-in/sign-up failure. ``errors`` maps form field -> message."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str
    full_name: Optional[str] = None

    @property
    def initial(self) -> str:
        return (self.full_name or self.email or "M")[0].upper()


@dataclass(frozen=True)
class AuthContext:
    status: AuthStatus
    user: Optional[CurrentUser] = None

    @classmethod
    def loading(cls) -> "AuthContext":
        return cls(AuthStatus.LOADING)

    @classmethod
    def signed_out(cls) -> "AuthContext":
        return cls(AuthStatus.UNAUTHENTICATED)

    @classmethod
    def signed_in(cls, user: CurrentUser) -> "AuthContext":
        return cls(AuthStatus.AUTHENTICATED, user)

    @property
    def is_loading(self) -> bool:
        return self.status is AuthStatus.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED and self.user is not None


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_credentials(email: str, password: str, full_name: Optional[str] = None, signing_up: bool = False) -> Dict[str, str]:
    """Returns the normalized fields; raises AuthError with per-field messages."""
    errors: Dict[str, str] = {}
    email = (email or "").strip()
    if not _EMAIL_RE.match(email) or len(email) > EMAIL_MAX_LENGTH:
        errors["email"] = "Please enter a valid email"

    password = password or ""
    if len(password) < PASSWORD_MIN_LENGTH:
        errors["password"] = f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    elif len(password) > PASSWORD_MAX_LENGTH:
        errors["password"] = f"Password must be at most {PASSWORD_MAX_LENGTH} characters"

    name = (full_name or "").strip()
    if signing_up and (not name or len(name) > NAME_MAX_LENGTH):
        errors["full_name"] = "Name is required"

    if errors:
        raise AuthError("Please fix the highlighted fields.", errors)
    return {"email": email.lower(), "password": password, "full_name": name}


class AuthService:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def sign_up(self, email: str, password: str, full_name: str) -> AuthContext:
        fields = validate_credentials(email, password, full_name, signing_up=True)
        with self._session_factory() as db:
            user = User(
                email=fields["email"],
                hashed_password=get_password_hash(fields["password"]),
                full_name=fields["full_name"],
            )
            user.profile = Profile(full_name=fields["full_name"])
            db.add(user)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise AuthError("An account with this email already exists.", {"email": "Email already registered"}) from exc
            current = CurrentUser(id=user.id, email=user.email, full_name=user.full_name)
        logger.info("Registered user %s", current.id)
        return AuthContext.signed_in(current)

    def sign_in(self, email: str, password: str) -> AuthContext:
        fields = validate_credentials(email, password)
        with self._session_factory() as db:
            user = db.scalars(select(User).where(User.email == fields["email"])).first()
            if user is None or not verify_password(fields["password"], user.hashed_password):
                raise AuthError("Invalid login credentials")
            current = CurrentUser(id=user.id, email=user.email, full_name=user.full_name)
        return AuthContext.signed_in(current)

    def sign_out(self, context: AuthContext) -> AuthContext:
        if context.user is not None:
            logger.info("User %s signed out", context.user.id)
        return AuthContext.signed_out()
