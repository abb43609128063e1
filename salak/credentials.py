"""Stored API keys.

Key material is only ever written as the vault's encrypted triple and only
ever read back through :meth:`CredentialStore.reveal`. Revoking flips
``is_active``; rows are never deleted.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import vault
from .domain import ApiKey, EncryptedSecret
from .exceptions import (
    CredentialAlreadyRevoked,
    CredentialNotFound,
    CredentialStoreError,
    DuplicateCredentialName,
)
from .tables import api_keys

log = logging.getLogger(__name__)

METADATA_COLUMNS = (
    api_keys.c.id,
    api_keys.c.name,
    api_keys.c.is_active,
    api_keys.c.created_at,
    api_keys.c.last_used_at,
)


def _to_api_key(row: Mapping[str, Any]) -> ApiKey:
    return ApiKey(
        id=row["id"],
        name=row["name"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        last_used_at=row["last_used_at"],
    )


class CredentialStore:
    """API keys of a user, filtered by owner on every query."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def list_for_user(self, user_id: str) -> List[ApiKey]:
        try:
            with self.session_factory() as db:
                rows = db.execute(
                    select(*METADATA_COLUMNS)
                    .where(api_keys.c.user_id == user_id)
                    .order_by(api_keys.c.created_at.desc())
                ).mappings().all()
        except SQLAlchemyError as ex:
            raise CredentialStoreError("Failed to fetch API keys") from ex
        return [_to_api_key(row) for row in rows]

    def create(self, user_id: str, name: str, sealed: EncryptedSecret) -> ApiKey:
        """Persist a new active key. The encrypted triple is written in one row."""
        try:
            with self.session_factory() as db:
                key_id = db.execute(
                    insert(api_keys).values(
                        user_id=user_id,
                        name=name,
                        encrypted_key=sealed.encrypted_key,
                        iv=sealed.iv,
                        auth_tag=sealed.auth_tag,
                        is_active=True,
                    )
                ).inserted_primary_key[0]
                db.commit()
        except IntegrityError as ex:
            raise DuplicateCredentialName("An API key with this name already exists") from ex
        except SQLAlchemyError as ex:
            raise CredentialStoreError("Failed to store API key") from ex
        log.info("stored API key %s for user %s", key_id, user_id)
        return self.get(user_id, key_id)

    def _row(self, db: Session, user_id: str, key_id: str) -> Optional[Mapping[str, Any]]:
        return db.execute(
            select(api_keys)
            .where(api_keys.c.id == key_id)
            .where(api_keys.c.user_id == user_id)
        ).mappings().first()

    def get(self, user_id: str, key_id: str) -> ApiKey:
        try:
            with self.session_factory() as db:
                row = self._row(db, user_id, key_id)
        except SQLAlchemyError as ex:
            raise CredentialStoreError("Failed to fetch API key") from ex
        if row is None:
            raise CredentialNotFound("API key not found")
        return _to_api_key(row)

    def revoke(self, user_id: str, key_id: str) -> ApiKey:
        """Deactivate a key. There is no way back."""
        try:
            with self.session_factory() as db:
                row = self._row(db, user_id, key_id)
                if row is None:
                    raise CredentialNotFound("API key not found")
                if not row["is_active"]:
                    raise CredentialAlreadyRevoked("API key is already revoked")
                result = db.execute(
                    update(api_keys)
                    .where(api_keys.c.id == key_id)
                    .where(api_keys.c.user_id == user_id)
                    .where(api_keys.c.is_active.is_(True))
                    .values(is_active=False)
                )
                db.commit()
                if result.rowcount == 0:
                    # Another revoke got there between our read and update.
                    if self._row(db, user_id, key_id) is None:
                        raise CredentialNotFound("API key not found")
                    raise CredentialAlreadyRevoked("API key is already revoked")
        except SQLAlchemyError as ex:
            raise CredentialStoreError("Failed to revoke API key") from ex
        log.info("revoked API key %s for user %s", key_id, user_id)
        return self.get(user_id, key_id)

    def reveal(self, user_id: str, key_id: str, master_secret: Optional[str]) -> str:
        """Decrypt an active key for use and stamp ``last_used_at``.

        Vault errors propagate unchanged.
        """
        try:
            with self.session_factory() as db:
                row = self._row(db, user_id, key_id)
        except SQLAlchemyError as ex:
            raise CredentialStoreError("Failed to fetch API key") from ex
        if row is None:
            raise CredentialNotFound("API key not found")
        if not row["is_active"]:
            raise CredentialAlreadyRevoked("API key is revoked")

        plaintext = vault.decrypt(dict(row), master_secret)

        try:
            with self.session_factory() as db:
                db.execute(
                    update(api_keys)
                    .where(api_keys.c.id == key_id)
                    .values(last_used_at=datetime.now(tz=timezone.utc))
                )
                db.commit()
        except SQLAlchemyError as ex:
            raise CredentialStoreError("Failed to update API key") from ex
        return plaintext
