"""Profile rows for authenticated users.

A profile is keyed by the identity provider's subject id. It is looked up by
that id only, never by email: emails change and can be reused.
"""
import logging
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .domain import AuthenticatedUser
from .exceptions import ProfileConflict, ProfileStoreError
from .tables import users

log = logging.getLogger(__name__)


def _to_user(row: Mapping[str, Any]) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=row["id"],
        email=row["email"] or "",
        name=row["name"],
        role=row["role"],
    )


class ProfileStore:
    """Reads and creates rows in ``users``.

    Each call uses its own session from ``session_factory`` so a failed insert
    never poisons a later read.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, user_id: str) -> Optional[AuthenticatedUser]:
        """Gets a profile by subject id.

        ``None`` means the row does not exist. Any other problem raises
        :class:`ProfileStoreError`.
        """
        try:
            with self.session_factory() as db:
                row = db.execute(
                    select(users).where(users.c.id == user_id)
                ).mappings().first()
        except SQLAlchemyError as ex:
            raise ProfileStoreError("profile lookup failed") from ex
        if row is None:
            return None
        try:
            return _to_user(row)
        except ValueError as ex:
            raise ProfileStoreError(f"profile row for {user_id} is invalid") from ex

    def insert(self, user: AuthenticatedUser) -> AuthenticatedUser:
        """Insert a new profile row and commit it.

        Raises :class:`ProfileConflict` on a uniqueness violation, which is
        what a concurrent insert of the same subject id looks like.
        """
        values = {
            "id": user.id,
            "email": user.email or None,
            "name": user.name,
            "role": user.role,
        }
        try:
            with self.session_factory() as db:
                db.execute(insert(users).values(**values))
                db.commit()
        except IntegrityError as ex:
            raise ProfileConflict("profile row already exists") from ex
        except SQLAlchemyError as ex:
            raise ProfileStoreError("profile insert failed") from ex
        return user

    def create_or_fetch_existing(self, user: AuthenticatedUser) -> AuthenticatedUser:
        """Insert ``user``, or return the row that beat us to it."""
        try:
            created = self.insert(user)
            log.info("created profile for user %s", user.id)
            return created
        except ProfileConflict:
            log.info("profile for user %s was created concurrently, fetching it", user.id)

        existing = self.get(user.id)
        if existing is None:
            # Conflict on some other unique column, e.g. email.
            raise ProfileStoreError("profile insert conflicted but no row has this id")
        return existing
