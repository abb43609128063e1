"""Work out who is calling.

Resolution has three steps:

1. Find a token: ``Authorization: Bearer`` header, then the ``accessToken``
   cookie, then the legacy ``token`` cookie.
2. Ask each verifier in turn whether the token identifies somebody. The
   first one that says yes wins.
3. Make sure that somebody has a profile row, creating it if it is missing.

Nothing is remembered between calls. Any caching of results belongs in front
of :class:`AuthResolver`, not inside it.
"""
import logging
from typing import Mapping, Optional, Sequence

from .domain import ROLES, AuthenticatedUser, Identity, RawAuth
from .exceptions import (
    ProfileReconciliationFailed,
    ProfileStoreError,
    Unauthenticated,
)
from .profiles import ProfileStore
from .verifiers import TokenVerifier

log = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 20
"""Tokens shorter than this are rejected without calling any verifier."""

TOKEN_COOKIES = ("accessToken", "token")
"""Cookies checked for a token, in order. ``token`` is the legacy name."""

DEFAULT_NAME = "User"


def bearer_token(authorization: Optional[str]) -> Optional[RawAuth]:
    """Gets the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    parts = authorization.split()
    if not parts or parts[0].lower() != "bearer":
        log.debug("Authorization header lacked bearer")
        return None
    if len(parts) != 2:
        log.debug("Authorization header was not 2 parts")
        return None
    return RawAuth(token=parts[1], via="header", key="Authorization")


def cookie_token(name: str, value: Optional[str]) -> Optional[RawAuth]:
    if not value:
        return None
    return RawAuth(token=value, via="cookie", key=name)


def extract_token(authorization: Optional[str],
                  cookies: Mapping[str, str]) -> Optional[RawAuth]:
    """Find the token to use for a request, first match wins."""
    found = bearer_token(authorization)
    if found:
        return found
    for name in TOKEN_COOKIES:
        found = cookie_token(name, cookies.get(name))
        if found:
            return found
    return None


def derive_name(identity: Identity) -> str:
    meta = identity.metadata
    for key in ("full_name", "name"):
        value = meta.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    if identity.email and identity.email.split("@")[0]:
        return identity.email.split("@")[0]
    return DEFAULT_NAME


def derive_role(identity: Identity) -> str:
    role = identity.metadata.get("role")
    if role in ROLES:
        return role
    if role:
        log.warning("ignoring unknown role %r for user %s", role, identity.subject_id)
    return "user"


class AuthResolver:
    """Turns a request token into an :class:`AuthenticatedUser`.

    ``verifiers`` are tried in order. To support another kind of token,
    append a verifier.
    """

    def __init__(self, verifiers: Sequence[TokenVerifier], profiles: ProfileStore):
        self.verifiers = list(verifiers)
        self.profiles = profiles

    def identify(self, token: str) -> Optional[Identity]:
        for verifier in self.verifiers:
            try:
                found = verifier.verify(token)
            except Exception as ex:
                log.error("verifier %s failed unexpectedly", verifier.name, exc_info=ex)
                continue
            if found:
                log.debug("token accepted by %s verifier", verifier.name)
                return found
        return None

    def reconcile(self, identity: Identity) -> AuthenticatedUser:
        """Return the profile for ``identity``, creating it if it is absent."""
        try:
            user = self.profiles.get(identity.subject_id)
        except ProfileStoreError as ex:
            log.error("profile lookup failed for user %s", identity.subject_id, exc_info=ex)
            raise ProfileReconciliationFailed("profile lookup failed") from ex
        if user:
            return user

        log.info("no profile for user %s, creating one", identity.subject_id)
        new_user = AuthenticatedUser(
            id=identity.subject_id,
            email=identity.email or "",
            name=derive_name(identity),
            role=derive_role(identity),
        )
        try:
            return self.profiles.create_or_fetch_existing(new_user)
        except ProfileStoreError as ex:
            log.error("could not create profile for user %s", identity.subject_id, exc_info=ex)
            raise ProfileReconciliationFailed("profile could not be created") from ex

    def resolve(self, raw: Optional[RawAuth]) -> AuthenticatedUser:
        """Resolve the caller or raise.

        Raises :class:`Unauthenticated` for a missing or unverifiable token and
        :class:`ProfileReconciliationFailed` if the token is good but the
        profile store misbehaved.
        """
        if raw is None:
            raise Unauthenticated("no token")
        if len(raw.token) < MIN_TOKEN_LENGTH:
            raise Unauthenticated("token too short")

        identity = self.identify(raw.token)
        if identity is None:
            log.debug("no verifier accepted token from %s %s", raw.via, raw.key)
            raise Unauthenticated("token not accepted")
        return self.reconcile(identity)

    def resolve_or_none(self, raw: Optional[RawAuth]) -> Optional[AuthenticatedUser]:
        try:
            return self.resolve(raw)
        except Unauthenticated:
            return None
        except ProfileReconciliationFailed:
            return None
