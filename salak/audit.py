"""System log of user actions, shown to admins."""
import logging
from typing import Callable, Literal, Mapping, Optional

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .tables import system_logs

log = logging.getLogger(__name__)

Status = Literal["success", "failed"]


def log_action(session_factory: Callable[[], Session],
               user_id: Optional[str],
               action: str,
               resource: Optional[str],
               status: Status,
               ip_address: Optional[str] = None) -> bool:
    """Record an action in ``system_logs``.

    Failing to write the log must not fail the request, so errors are logged
    and ``False`` is returned.
    """
    try:
        with session_factory() as db:
            db.execute(insert(system_logs).values(
                user_id=user_id,
                action=action,
                resource=resource,
                status=status,
                ip_address=ip_address,
            ))
            db.commit()
        return True
    except SQLAlchemyError as ex:
        log.error("Failed to log action %s for user %s", action, user_id, exc_info=ex)
        return False


def client_ip(headers: Mapping[str, str]) -> Optional[str]:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("x-real-ip") or None
