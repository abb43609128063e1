"""Routes about the caller's own session."""
from fastapi import APIRouter, Depends

from ..domain import AuthenticatedUser
from ..fastapi.auth import current_user

router = APIRouter()


@router.get('/auth/me')
def me(user: AuthenticatedUser = Depends(current_user)) -> dict:
    """Who am I."""
    return {"success": True, "user": user.model_dump()}
