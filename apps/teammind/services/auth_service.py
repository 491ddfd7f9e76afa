"""
Access token verification.

Sign-up and sign-in are handled by the external auth service; this module only
verifies the JWTs it issues (shared HS256 secret). ``create_access_token`` is
kept for local development and tests.
"""

import os
import logging
from datetime import timedelta
from typing import Optional, Dict, Any

import jwt
from dotenv import load_dotenv

from teammind.utils.datetime_utils import utcnow

load_dotenv()

logger = logging.getLogger(__name__)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRATION_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRATION_MINUTES", "60"))


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Args:
        data: Claims to encode (e.g. {"sub": user_id, "email": ...})
        expires_delta: Optional lifetime, defaults to ACCESS_TOKEN_EXPIRATION_MINUTES

    Returns:
        Encoded JWT
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRATION_MINUTES))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a token.

    Returns:
        Claims dict, or None if the token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired access token")
        return None
    except jwt.InvalidTokenError:
        return None


def get_subject(payload: Dict[str, Any]) -> Optional[str]:
    """User id carried by a token ("sub", falling back to "user_id")."""
    subject = payload.get("sub") or payload.get("user_id")
    return str(subject) if subject is not None else None
