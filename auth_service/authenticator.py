"""Password authentication against the users table.

Both login endpoints go through :class:`PasswordAuthenticator`, so there is a
single user source and a single token format.
"""

import logging
from dataclasses import dataclass
from typing import Union

from fastapi import Depends
from sqlalchemy.orm import Session

from common.db import get_db
from .models import User
from .utils import create_session_token, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str


@dataclass(frozen=True)
class AuthSession:
    token: str
    user: User


@dataclass(frozen=True)
class AuthError:
    reason: str = INVALID_CREDENTIALS


AuthResult = Union[AuthSession, AuthError]


class PasswordAuthenticator:
    """Looks a user up by exact email and checks the bcrypt hash."""

    def __init__(self, db: Session):
        self.db = db

    def authenticate(self, credentials: Credentials) -> AuthResult:
        user = self.db.query(User).filter(User.email == credentials.email).first()

        # Unknown user, passwordless account and wrong password look the same to the caller
        if user is None or not user.password_hash:
            logger.warning(f"Login failed for {credentials.email}: no usable account")
            return AuthError()

        if not verify_password(credentials.password, user.password_hash):
            logger.warning(f"Login failed for {credentials.email}: bad password")
            return AuthError()

        token = create_session_token(user.id, user.email, user.full_name)
        logger.info(f"Login successful for user_id: {user.id}")
        return AuthSession(token=token, user=user)


def get_authenticator(db: Session = Depends(get_db)) -> PasswordAuthenticator:
    """Request-scoped authenticator bound to the request's database session."""
    return PasswordAuthenticator(db)
