"""FastAPI dependencies for RecipeHub API.

Provides:
- Settings and auth client lookup (built once in create_app, kept on app.state)
- Caller identity resolution (required / optional bearer auth)
- Per-request RecipeStore scoped to the caller
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from .auth import AuthClient, Identity, parse_bearer
from .db import get_db
from .errors import ApiError, AuthError
from .settings import Settings
from .store import RecipeStore

logger = logging.getLogger("recipehub.deps")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_client(request: Request) -> AuthClient:
    return request.app.state.auth_client


async def require_identity(
    authorization: Optional[str] = Header(None),
    auth_client: AuthClient = Depends(get_auth_client),
) -> Identity:
    """Verified caller, or 401 before the route handler runs."""
    token = parse_bearer(authorization)
    if token is None:
        raise AuthError("Auth token missing or malformed")
    return await auth_client.get_user(token)


async def optional_identity(
    authorization: Optional[str] = Header(None),
    auth_client: AuthClient = Depends(get_auth_client),
) -> Optional[Identity]:
    """Like require_identity but a missing or bad credential means anonymous."""
    token = parse_bearer(authorization)
    if token is None:
        return None
    try:
        return await auth_client.get_user(token)
    except ApiError as e:
        logger.warning(f"Ignoring credential on optional-auth route: {e.message}")
        return None


def get_public_store(db: Session = Depends(get_db)) -> RecipeStore:
    return RecipeStore(db)


def get_store(
    db: Session = Depends(get_db),
    identity: Optional[Identity] = Depends(optional_identity),
) -> RecipeStore:
    return RecipeStore(db, identity)


def get_authed_store(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
) -> RecipeStore:
    return RecipeStore(db, identity)
