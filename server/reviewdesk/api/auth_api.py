import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from reviewdesk.auth.dependencies import get_required_user
from reviewdesk.auth.tokens import (
    InvalidTokenError,
    sign_access_token,
    sign_refresh_token,
    verify_refresh_token,
)
from reviewdesk.database.crud.user_crud import user_crud
from reviewdesk.database.database import get_db
from reviewdesk.database.models import User as UserModel
from reviewdesk.schemas.responses import to_json
from reviewdesk.schemas.user import (
    CurrentUser,
    LoginRequest,
    RefreshRequest,
    TokenPair,
    User,
    UserCreate,
)
from reviewdesk.workflow.errors import AuthenticationError, ValidationError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

auth_router = APIRouter()


def _issue_tokens(user: UserModel) -> TokenPair:
    roles = list(user.roles or [])
    return TokenPair(
        access_token=sign_access_token(str(user.id), roles),
        refresh_token=sign_refresh_token(str(user.id), roles),
    )


@auth_router.post("/register")
async def register(request: UserCreate, db: Session = Depends(get_db)):
    """
    Create an account. Accepts `roles` (list or single string) or the legacy
    `role` field; labels are normalized before they are stored.
    """
    user = user_crud.register(db, obj_in=request)
    return JSONResponse(
        status_code=201,
        content={"ok": True, "user": to_json(User.model_validate(user))},
    )


@auth_router.post("/login")
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = user_crud.authenticate(db, email=request.email, password=request.password)
    if not user:
        raise ValidationError("Invalid email or password")

    tokens = _issue_tokens(user)
    logger.info(f"User {user.id} logged in")
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            **to_json(tokens),
            "user": to_json(User.model_validate(user)),
        },
    )


@auth_router.post("/refresh")
async def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair."""
    try:
        payload = verify_refresh_token(request.refresh_token)
    except InvalidTokenError:
        raise AuthenticationError("Invalid refresh token")

    user = user_crud.get(db, payload.sub)
    if not user:
        raise AuthenticationError("Invalid refresh token")

    return JSONResponse(status_code=200, content={"ok": True, **to_json(_issue_tokens(user))})


@auth_router.get("/me")
async def get_me(
    current_user: CurrentUser = Depends(get_required_user),
    db: Session = Depends(get_db),
):
    """Get the current user."""
    user = user_crud.get(db, current_user.id)
    return JSONResponse(
        status_code=200,
        content={"ok": True, "user": to_json(User.model_validate(user))},
    )
