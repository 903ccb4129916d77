import uuid

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from formpulse.core.database import get_db
from formpulse.core.decoding import decode_profile
from formpulse.schemas.auth import AuthSession
from formpulse.services.auth import decode_token, get_profile_by_id

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def resolve_user_id(token: str, expected_type: str) -> uuid.UUID:
    """Validate a JWT of ``expected_type`` and return its subject."""
    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.PyJWTError:
        raise _unauthorized("Invalid token")

    if payload.get("type") != expected_type:
        raise _unauthorized("Invalid token type")

    try:
        return uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token payload")


def get_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> AuthSession:
    """Build the caller's AuthSession from a Bearer access token."""
    user_id = resolve_user_id(credentials.credentials, "access")

    profile = get_profile_by_id(db, user_id)
    if profile is None:
        raise _unauthorized("User not found")

    decoded = decode_profile(profile)
    return AuthSession(
        user_id=decoded.uid,
        email=decoded.email,
        org_id=decoded.org_id,
        org_name=decoded.org_name,
        role=decoded.role,
    )
