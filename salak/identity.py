"""Check a hosted session token with the identity provider.

The provider (Supabase GoTrue) exposes the owner of a session token at
``/auth/v1/user``. The request must carry the project's public anon key in the
``apikey`` header and the token being checked as a bearer token::

    GET https://abc.supabase.co/auth/v1/user
    apikey: <anon key>
    Authorization: Bearer <session token>

A 200 response is the user record, roughly::

    {"id": "6f1c...", "email": "a@b.org",
     "user_metadata": {"full_name": "Ann Bee", "role": "user"}}

Anything else means the token is not a live session. Each check is its own
request with nothing shared between calls, so concurrent checks do not wait
on each other.
"""
from typing import Any, Dict, Optional

import requests

from .domain import Identity

USER_PATH = "/auth/v1/user"


def fetch_user(base_url: str, api_key: str, token: str,
               timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
    """Ask the identity provider who owns ``token``.

    Returns the user record or ``None`` if the provider rejected the token.
    Transport errors are raised as ``requests.RequestException``.
    """
    url = base_url.rstrip("/") + USER_PATH
    headers = {"apikey": api_key, "Authorization": f"Bearer {token}"}
    resp = requests.get(url, headers=headers, timeout=timeout)
    if resp.status_code != 200:
        return None
    data = resp.json()
    return data if isinstance(data, dict) else None


def identity_from_user(data: Dict[str, Any], verifier: str = "hosted") -> Optional[Identity]:
    if not data.get("id"):
        return None
    metadata = data.get("user_metadata") or {}
    return Identity(
        subject_id=str(data["id"]),
        email=data.get("email") or None,
        metadata=metadata if isinstance(metadata, dict) else {},
        verifier=verifier,
    )
