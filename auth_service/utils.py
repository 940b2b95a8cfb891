"""Helpers for the auth service: password hashing and session tokens (JWT)."""

import os
import logging
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import JWTError, jwt
from dotenv import load_dotenv
from typing import Dict, Optional

load_dotenv()

logger = logging.getLogger(__name__)

# --- Security configuration ---
SECRET_KEY = os.getenv("JWT_SECRET_KEY")
if not SECRET_KEY:
    logger.warning("JWT_SECRET_KEY is not set. Falling back to an insecure development key.")

    SECRET_KEY = "insecure_development_key_change_me"

ALGORITHM = "HS256"

# Session tokens are valid for a fixed week
SESSION_TOKEN_EXPIRE_DAYS = 7


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a plain password against a stored hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hashes a plain password with bcrypt."""
    return pwd_context.hash(password)


# --- Session tokens ---
def create_session_token(user_id: int, email: str, full_name: str) -> str:
    """
    Issues a signed session token for a user.

    Args:
        user_id: primary key of the user, stored as the 'sub' claim.
        email: the user's email.
        full_name: display name shown by the frontend.

    Returns:
        The encoded JWT, valid for SESSION_TOKEN_EXPIRE_DAYS days.
    """
    expire = datetime.now(timezone.utc) + timedelta(days=SESSION_TOKEN_EXPIRE_DAYS)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "name": full_name,
        "exp": expire,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[Dict]:
    """
    Decodes and validates a session token.

    Returns:
        The payload when the signature is valid and the token has not expired,
        otherwise None.
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token decoding failed: {e}")
        return None
