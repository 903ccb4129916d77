import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy.orm import Session

from formpulse.core.config import settings
from formpulse.models.organization import Organization
from formpulse.models.user_profile import UserProfile

# ---------------------------------------------------------------------------
# Password utilities
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(
        plain_password.encode("utf-8"), hashed_password.encode("utf-8")
    )


# ---------------------------------------------------------------------------
# JWT utilities
# ---------------------------------------------------------------------------


def _create_token(user_id: uuid.UUID, token_type: str, expires_in: timedelta) -> str:
    payload = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + expires_in,
        "type": token_type,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: uuid.UUID) -> str:
    return _create_token(
        user_id, "access", timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(user_id: uuid.UUID) -> str:
    return _create_token(
        user_id, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
    )


# ---------------------------------------------------------------------------
# Account helpers
# ---------------------------------------------------------------------------


def get_profile_by_email(db: Session, email: str) -> UserProfile | None:
    return db.query(UserProfile).filter(UserProfile.email == email.lower()).first()


def get_profile_by_id(db: Session, user_id: uuid.UUID) -> UserProfile | None:
    return db.get(UserProfile, user_id)


def create_account(db: Session, *, email: str, password: str, org_name: str) -> UserProfile:
    """Create an organization and its owner profile in one transaction."""
    organization = Organization(name=org_name)
    db.add(organization)
    db.flush()

    profile = UserProfile(
        email=email.lower(),
        password_hash=hash_password(password),
        org_id=organization.id,
        role="owner",
    )
    db.add(profile)
    db.flush()

    organization.owner_uid = profile.id
    db.commit()
    db.refresh(profile)
    return profile
