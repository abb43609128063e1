"""Functions for working with self-issued tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

ALGORITHM = "HS256"

SUBJECT_CLAIMS = ("sub", "user_id", "id")
"""Claims that may carry the subject id, in order of preference."""


def decode(token: str, secret: str) -> Dict[str, Any]:
    """Verify and decode a self-issued token.

    Raises a subclass of ``jwt.InvalidTokenError`` if the signature, expiry
    or format is bad.
    """
    return dict(jwt.decode(token, secret, algorithms=[ALGORITHM]))


def encode(claims: Dict[str, Any], secret: str) -> str:
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def issue(user_id: str, secret: str, email: Optional[str] = None,
          expires_in: timedelta = timedelta(hours=24)) -> str:
    """Mint a self-issued token for ``user_id``."""
    now = datetime.now(tz=timezone.utc)
    claims: Dict[str, Any] = {"sub": str(user_id), "iat": now, "exp": now + expires_in}
    if email:
        claims["email"] = email
    return encode(claims, secret)


def subject_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    for claim in SUBJECT_CLAIMS:
        value = claims.get(claim)
        if value:
            return str(value)
    return None
