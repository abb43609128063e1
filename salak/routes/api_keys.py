"""Routes for storing and revoking user API keys.

Responses carry metadata only. A stored key is never returned, in plain or
encrypted form.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .. import vault
from ..audit import client_ip, log_action
from ..credentials import CredentialStore
from ..domain import ApiKeyCreate, AuthenticatedUser
from ..exceptions import (
    ConfigurationError,
    CredentialAlreadyRevoked,
    CredentialNotFound,
    CredentialStoreError,
    CryptographicError,
    DuplicateCredentialName,
    ValidationError,
)
from ..fastapi.auth import current_user

log = logging.getLogger(__name__)

router = APIRouter()

MIN_NAME_LENGTH = 3
MIN_SECRET_LENGTH = 32


def get_credentials(request: Request) -> CredentialStore:
    return CredentialStore(request.app.extra["session_factory"])


def _audit(request: Request, user: AuthenticatedUser, action: str,
           resource: str, outcome: str) -> None:
    log_action(request.app.extra["session_factory"], user.id, action, resource,
               outcome, client_ip(request.headers))


def _bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


@router.get('/api-keys')
def list_api_keys(user: AuthenticatedUser = Depends(current_user),
                  store: CredentialStore = Depends(get_credentials)) -> dict:
    try:
        keys = store.list_for_user(user.id)
    except CredentialStoreError as ex:
        log.error("listing API keys for user %s failed", user.id, exc_info=ex)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Failed to fetch API keys") from ex
    return {"success": True, "apiKeys": [key.model_dump(mode="json") for key in keys]}


@router.post('/api-keys', status_code=status.HTTP_201_CREATED)
def create_api_key(body: ApiKeyCreate,
                   request: Request,
                   user: AuthenticatedUser = Depends(current_user),
                   store: CredentialStore = Depends(get_credentials)) -> JSONResponse:
    """Encrypt and store a key the user supplies."""
    name = (body.name or "").strip()
    if not name:
        raise _bad_request("API Key Name is required and cannot be empty")
    if len(name) < MIN_NAME_LENGTH:
        raise _bad_request(f"API Key Name must be at least {MIN_NAME_LENGTH} characters long")

    secret = (body.secret or "").strip()
    if not secret:
        raise _bad_request("API key is required and must be a non-empty string")
    if len(secret) < MIN_SECRET_LENGTH:
        raise _bad_request(f"API key must be at least {MIN_SECRET_LENGTH} characters long")

    try:
        sealed = vault.encrypt(secret, request.app.extra["API_KEY_ENCRYPTION_SECRET"])
    except ConfigurationError as ex:
        log.error("API key vault is not configured")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Service configuration error. Please contact support.") from ex
    except ValidationError as ex:
        raise _bad_request(str(ex)) from ex
    except CryptographicError as ex:
        log.error("API key encryption failed for user %s", user.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Failed to encrypt API key") from ex

    try:
        key = store.create(user.id, name, sealed)
    except DuplicateCredentialName as ex:
        _audit(request, user, "API Key Store", name, "failed")
        raise _bad_request(str(ex)) from ex
    except CredentialStoreError as ex:
        log.error("storing API key for user %s failed", user.id, exc_info=ex)
        _audit(request, user, "API Key Store", name, "failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Failed to store API key") from ex

    _audit(request, user, "API Key Store", f"{name} ({key.id})", "success")
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "success": True,
            "message": "API key stored securely. It cannot be viewed again after storage.",
            "apiKey": key.model_dump(mode="json", exclude={"last_used_at"}),
        },
    )


@router.delete('/api-keys/{key_id}')
def revoke_api_key(key_id: str,
                   request: Request,
                   user: AuthenticatedUser = Depends(current_user),
                   store: CredentialStore = Depends(get_credentials)) -> dict:
    """Revoke a key. Revoking twice is an error."""
    if not key_id.strip():
        raise _bad_request("API key ID is required")
    try:
        key = store.revoke(user.id, key_id)
    except CredentialNotFound as ex:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail="API key not found") from ex
    except CredentialAlreadyRevoked as ex:
        raise _bad_request("API key is already revoked") from ex
    except CredentialStoreError as ex:
        log.error("revoking API key %s failed", key_id, exc_info=ex)
        _audit(request, user, "API Key Revoke", key_id, "failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Failed to revoke API key") from ex

    _audit(request, user, "API Key Revoke", f"{key.name} ({key_id})", "success")
    return {"success": True, "message": "API key revoked successfully"}
