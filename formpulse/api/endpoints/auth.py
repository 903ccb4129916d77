from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from formpulse.core.auth import get_session, resolve_user_id
from formpulse.core.config import settings
from formpulse.core.database import get_db
from formpulse.core.decoding import decode_profile
from formpulse.schemas.auth import (
    AuthSession,
    LoginRequest,
    SignupRequest,
    TokenResponse,
    UserProfileResponse,
)
from formpulse.services.auth import (
    create_access_token,
    create_account,
    create_refresh_token,
    get_profile_by_email,
    get_profile_by_id,
    verify_password,
)

router = APIRouter()

REFRESH_COOKIE = "refresh_token"


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=token,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400,
        path=f"{settings.API_PREFIX}/auth",
    )


@router.post("/signup", response_model=UserProfileResponse, status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    if get_profile_by_email(db, body.email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    profile = create_account(
        db,
        email=body.email,
        password=body.password,
        org_name=body.org_name.strip(),
    )
    return decode_profile(profile)


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
    profile = get_profile_by_email(db, body.email)
    if profile is None or not verify_password(body.password, profile.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    _set_refresh_cookie(response, create_refresh_token(profile.id))
    return TokenResponse(access_token=create_access_token(profile.id))


@router.post("/refresh", response_model=TokenResponse)
def refresh(request: Request, response: Response, db: Session = Depends(get_db)):
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if refresh_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token missing",
        )

    user_id = resolve_user_id(refresh_token, "refresh")
    if get_profile_by_id(db, user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    _set_refresh_cookie(response, create_refresh_token(user_id))
    return TokenResponse(access_token=create_access_token(user_id))


@router.post("/logout", status_code=204)
def logout(response: Response):
    """End the session by dropping the refresh cookie.

    Access tokens are stateless and simply expire.
    """
    response.delete_cookie(REFRESH_COOKIE, path=f"{settings.API_PREFIX}/auth")


@router.get("/me", response_model=UserProfileResponse)
def me(session: AuthSession = Depends(get_session), db: Session = Depends(get_db)):
    profile = get_profile_by_id(db, session.user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return decode_profile(profile)
