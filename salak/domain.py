from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


Role = Literal["user", "admin"]
ROLES: List[str] = ["user", "admin"]


class AuthenticatedUser(BaseModel):
    """The caller of a request, backed by a row in the ``users`` table."""

    id: str
    """Subject id assigned by the identity provider"""

    email: str
    """Email address, empty if the provider did not supply one"""

    name: str
    """Display name"""

    role: Role = "user"
    """Authoritative role for authorization decisions"""


class RawAuth(BaseModel):
    """An unverified token from a HTTP request"""
    token: str
    via: Literal["header", "cookie"]
    key: str


class Identity(BaseModel):
    """What a token verifier learned about the caller."""

    subject_id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    """Provider supplied hints such as ``full_name``, ``name`` and ``role``"""

    verifier: str
    """Name of the verifier that accepted the token"""


class EncryptedSecret(BaseModel):
    """Output of one vault encryption. All three fields are base64 text and
    are only meaningful together."""
    encrypted_key: str
    iv: str
    auth_tag: str


class ApiKey(BaseModel):
    """Metadata of a stored API key. Never carries key material."""
    id: str
    name: str
    is_active: bool
    created_at: datetime
    last_used_at: Optional[datetime] = None


class ApiKeyCreate(BaseModel):
    name: Optional[str] = None
    secret: Optional[str] = None


def is_admin(user: Optional[AuthenticatedUser]) -> bool:
    return user is not None and user.role == "admin"
