"""FastAPI dependencies for authenticating requests.

Use :func:`current_user` on any protected route and :func:`admin_user` on
admin-only ones::

    @router.get("/thing")
    def thing(user: AuthenticatedUser = Depends(current_user)):
        ...

The resolver is read from ``app.extra["auth_resolver"]``, which
:func:`salak.main.create_app` sets up.
"""
import logging
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, Request, status

from ..domain import AuthenticatedUser, RawAuth, is_admin
from ..exceptions import ProfileReconciliationFailed, Unauthenticated
from ..resolver import AuthResolver, bearer_token, cookie_token

log = logging.getLogger(__name__)


async def jwt_header(Authorization: Optional[str] = Header(None)) -> Optional[RawAuth]:
    """Gets the token from the Authorization Bearer header."""
    return bearer_token(Authorization)


async def access_token_cookie(accessToken: Optional[str] = Cookie(None)) -> Optional[RawAuth]:
    """Gets the token from the ``accessToken`` cookie.

    Browsers send this one where they cannot set headers, such as iframes
    showing a document.
    """
    return cookie_token("accessToken", accessToken)


async def legacy_token_cookie(token: Optional[str] = Cookie(None)) -> Optional[RawAuth]:
    """Gets the token from the older ``token`` cookie."""
    return cookie_token("token", token)


async def rawauth(
    header: Optional[RawAuth] = Depends(jwt_header),
    access: Optional[RawAuth] = Depends(access_token_cookie),
    legacy: Optional[RawAuth] = Depends(legacy_token_cookie),
) -> Optional[RawAuth]:
    """Gets the token from the header or one of the cookies, in that order."""
    found = header or access or legacy
    if found:
        log.debug("rawauth() using %s %s", found.via, found.key)
    return found


def get_resolver(request: Request) -> AuthResolver:
    return request.app.extra["auth_resolver"]


def current_user(raw: Optional[RawAuth] = Depends(rawauth),
                 resolver: AuthResolver = Depends(get_resolver)) -> AuthenticatedUser:
    """The authenticated caller, or a 401."""
    try:
        return resolver.resolve(raw)
    except Unauthenticated as ex:
        log.info("authentication failed: %s", ex)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Unauthorized") from ex
    except ProfileReconciliationFailed as ex:
        log.error("token accepted but profile unavailable: %s", ex)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="Unauthorized") from ex


def admin_user(user: AuthenticatedUser = Depends(current_user)) -> AuthenticatedUser:
    """The authenticated caller if they are an admin, else a 403."""
    if not is_admin(user):
        log.info("user %s is not an admin", user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Forbidden: Admin access required")
    return user
