"""Request authentication: verifies the staff JWT and loads the acting user.

Tokens are issued by the login service; this app only verifies them. The
token is read from the ``auth-token`` cookie, or from an
``Authorization: Bearer`` header for API clients.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from securohelp.core.config import settings
from securohelp.core.database import get_db
from securohelp.core.errors import Unauthorized
from securohelp.models.user import User
from securohelp.repositories.users import UserRepository

logger = logging.getLogger(__name__)

_optional_bearer = HTTPBearer(auto_error=False)


def decode_token(token: str) -> uuid.UUID:
    """User id carried by ``token`` (``{"userId": ...}``)."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.info("Rejected auth token: %s", exc)
        raise Unauthorized() from exc

    raw = payload.get("userId") or payload.get("sub")
    if not raw:
        raise Unauthorized()
    try:
        return uuid.UUID(str(raw))
    except ValueError as exc:
        raise Unauthorized() from exc


def create_token(user_id: uuid.UUID, **claims) -> str:
    """Sign a token the way the login service does (CLI and tests)."""
    return jwt.encode(
        {"userId": str(user_id), **claims},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_optional_bearer),
    db: Session = Depends(get_db),
) -> User:
    token = request.cookies.get(settings.auth_cookie_name)
    if not token and creds is not None:
        token = creds.credentials
    if not token:
        raise Unauthorized()

    user = UserRepository(db).get_active(decode_token(token))
    if user is None:
        raise Unauthorized()
    return user
