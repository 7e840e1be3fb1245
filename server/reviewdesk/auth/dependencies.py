import logging
import uuid
from typing import Annotated, Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from reviewdesk.auth.roles import has_any_role
from reviewdesk.auth.tokens import InvalidTokenError, verify_access_token
from reviewdesk.database.crud.user_crud import user_crud
from reviewdesk.database.database import get_db
from reviewdesk.schemas.user import CurrentUser
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Setup header auth
api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Depends(api_key_header),
) -> Optional[CurrentUser]:
    """
    Resolve the caller from an `Authorization: Bearer <token>` header.

    Roles come from the token as issued, so a token minted with the legacy
    `admin` label keeps it. Returns None for a missing, invalid or expired
    token, or when the account no longer exists.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None

    token = authorization.replace("Bearer ", "", 1).strip()
    try:
        payload = verify_access_token(token)
    except InvalidTokenError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return None

    user_id = _parse_subject(payload.sub)
    db_user = user_crud.get(db, user_id) if user_id else None
    if not db_user:
        return None

    return CurrentUser(
        id=db_user.id,
        email=str(db_user.email),
        name=str(db_user.name),
        roles=payload.roles,
    )


def _parse_subject(sub: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(sub)
    except ValueError:
        return None


async def get_required_user(
    current_user: Annotated[Optional[CurrentUser], Depends(get_current_user)]
) -> CurrentUser:
    """
    Require a logged-in user for protected routes.
    Raises 401 Unauthorized if no user is found.
    """
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user


def require_roles(*allowed: str) -> Callable[..., CurrentUser]:
    """
    Dependency factory admitting callers holding any of `allowed`.

    Legacy labels count for their canonical role and the other way round,
    so `require_roles("coordinator")` admits an `admin` token.
    """

    async def _require(
        current_user: Annotated[CurrentUser, Depends(get_required_user)]
    ) -> CurrentUser:
        if not has_any_role(current_user.roles, allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden",
            )
        return current_user

    return _require
