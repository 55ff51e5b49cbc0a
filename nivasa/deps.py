from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends
from jose import JWTError
from sqlalchemy.orm import Session

from .db import get_db
from .exceptions import ForbiddenError, UnauthorizedError
from .logging import get_logger
from .models.user import User
from .schemas.auth import TokenPayload
from .security import decode_access_token, oauth2_scheme

logger = get_logger(__name__)

CREDENTIALS_ERROR = "Could not validate credentials"


def get_token_payload(token: Optional[str] = Depends(oauth2_scheme)) -> TokenPayload:
    if not token:
        raise UnauthorizedError(CREDENTIALS_ERROR)
    try:
        payload = decode_access_token(token)
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        raise UnauthorizedError(CREDENTIALS_ERROR)


def get_current_user(
    token_data: TokenPayload = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> User:
    user = db.query(User).filter(User.id == token_data.sub).first()
    if user is None:
        raise UnauthorizedError(CREDENTIALS_ERROR)
    return user


def require_roles(*roles: str) -> Callable[[User], User]:
    def _wrapper(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise ForbiddenError("Insufficient permissions")
        return current_user

    return _wrapper


def ensure_apartment_scope(user: User, apartment_code: Optional[str]) -> str:
    """The acting user's apartment, after checking it matches the requested one."""
    if apartment_code and apartment_code != user.apartment_code:
        logger.warning("User %s tried to reach apartment %s", user.id, apartment_code)
        raise ForbiddenError("You do not belong to this apartment")
    return user.apartment_code


def ensure_flat_scope(user: User, flat_number: Optional[str]) -> None:
    """Residents act only for their own flat; admins for any flat."""
    if not user.is_admin and flat_number and flat_number != user.flat_number:
        raise ForbiddenError("Residents can only act for their own flat")
