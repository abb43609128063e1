"""Token verification strategies.

Each verifier answers one question: does this token identify somebody? They
are tried in order by :class:`salak.resolver.AuthResolver` and know nothing
about each other or about profiles.
"""
import logging
from typing import Optional

import jwt
import requests

from . import identity, tokens
from .domain import Identity

log = logging.getLogger(__name__)

CLAIM_METADATA = ("full_name", "name", "role")
"""Self-issued token claims passed on as profile hints."""


class TokenVerifier:
    """Base for verifiers. ``verify`` returns ``None`` when it rejects."""

    name = "base"

    def verify(self, token: str) -> Optional[Identity]:
        raise NotImplementedError


class HostedSessionVerifier(TokenVerifier):
    """Validate a session token issued by the hosted identity provider."""

    name = "hosted"

    def __init__(self, base_url: str, api_key: str, timeout: Optional[float] = None):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout

    def verify(self, token: str) -> Optional[Identity]:
        if not self.base_url or not self.api_key:
            log.debug("identity provider not configured, skipping hosted session check")
            return None
        try:
            data = identity.fetch_user(self.base_url, self.api_key, token, self.timeout)
        except requests.RequestException as ex:
            log.warning("hosted session check failed: %s", type(ex).__name__)
            return None
        except ValueError:
            log.warning("identity provider returned a body that is not JSON")
            return None

        if data is None:
            log.debug("hosted session check: token rejected by provider")
            return None
        found = identity.identity_from_user(data, verifier=self.name)
        if found is None:
            log.debug("hosted session check: provider response had no user id")
        return found


class SelfIssuedTokenVerifier(TokenVerifier):
    """Validate a JWT signed with our own secret."""

    name = "self-issued"

    def __init__(self, secret: Optional[str]):
        self.secret = secret

    def verify(self, token: str) -> Optional[Identity]:
        if not self.secret:
            log.warning("JWT_SECRET not configured, self-issued token verification disabled")
            return None
        try:
            claims = tokens.decode(token, self.secret)
        except jwt.InvalidTokenError as ex:
            log.debug("self-issued token rejected: %s", type(ex).__name__)
            return None

        subject_id = tokens.subject_from_claims(claims)
        if not subject_id:
            log.debug("self-issued token has no subject claim")
            return None
        metadata = {key: claims[key] for key in CLAIM_METADATA if claims.get(key)}
        email = claims.get("email")
        return Identity(
            subject_id=subject_id,
            email=email if isinstance(email, str) and email else None,
            metadata=metadata,
            verifier=self.name,
        )
