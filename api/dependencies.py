"""
API dependencies for dependency injection
"""

from typing import Generator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.exceptions import ServiceValidationError
from app.utils import normalize_ip
from domain.models import get_db_session
from services import CommandService


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    The session factory is created at startup and kept on app.state.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session(request.app.state.session_factory)


def get_command_service(request: Request) -> CommandService:
    return request.app.state.command_service


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> int:
    """
    Id of the signed-in user.

    Authentication happens upstream; the authenticating proxy forwards the
    user id in this header.
    """
    if x_user_id is None or not x_user_id.strip().isdigit():
        raise ServiceValidationError("Missing or invalid user id", code="MISSING_USER")
    return int(x_user_id)


def get_client_ip(
    request: Request,
    x_forwarded_for: Optional[str] = Header(default=None, alias="X-Forwarded-For"),
) -> Optional[str]:
    """First hop of X-Forwarded-For, else the socket peer; None if not an IP"""
    if x_forwarded_for:
        return normalize_ip(x_forwarded_for.split(",")[0])
    return normalize_ip(request.client.host if request.client else None)
