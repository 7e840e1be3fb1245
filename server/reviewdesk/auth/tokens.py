from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from reviewdesk.database.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenPayload(BaseModel):
    sub: str  # user id
    roles: List[str] = []
    type: str = ACCESS_TOKEN_TYPE


class InvalidTokenError(Exception):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Unrecognised hash format
        return False


def _sign(data: Dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    to_encode = dict(data)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def sign_access_token(user_id: str, roles: List[str]) -> str:
    return _sign(
        {"sub": user_id, "roles": roles, "type": ACCESS_TOKEN_TYPE},
        settings.JWT_ACCESS_SECRET,
        timedelta(minutes=settings.JWT_ACCESS_EXPIRES_MINUTES),
    )


def sign_refresh_token(user_id: str, roles: List[str]) -> str:
    return _sign(
        {"sub": user_id, "roles": roles, "type": REFRESH_TOKEN_TYPE},
        settings.JWT_REFRESH_SECRET,
        timedelta(days=settings.JWT_REFRESH_EXPIRES_DAYS),
    )


def _decode(token: str, secret: str, expected_type: str) -> TokenPayload:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Token has no subject")

    token_type = payload.get("type", ACCESS_TOKEN_TYPE)
    if token_type != expected_type:
        raise InvalidTokenError(f"Expected a {expected_type} token")

    # Older tokens carry a single `role` instead of a `roles` list
    roles = payload.get("roles")
    if not isinstance(roles, list):
        legacy_role = payload.get("role")
        roles = [legacy_role] if legacy_role else []

    return TokenPayload(sub=str(user_id), roles=[str(r) for r in roles], type=token_type)


def verify_access_token(token: str) -> TokenPayload:
    return _decode(token, settings.JWT_ACCESS_SECRET, ACCESS_TOKEN_TYPE)


def verify_refresh_token(token: str) -> TokenPayload:
    return _decode(token, settings.JWT_REFRESH_SECRET, REFRESH_TOKEN_TYPE)
