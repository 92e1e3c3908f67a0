"""Login and current user."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from teachmate.database import get_db
from teachmate.middleware.auth import Account, get_current_user
from teachmate.middleware.rate_limit import LOGIN_LIMIT, limiter
from teachmate.schemas.auth import CurrentUserResponse, LoginRequest, TokenResponse
from teachmate.services import auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(account: Account) -> CurrentUserResponse:
    return CurrentUserResponse(
        id=account.id,
        email=account.email,
        role=account.role,
        name=auth_service.display_name(account),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit(LOGIN_LIMIT)
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate a teacher, student or parent and return a JWT."""
    token, account = auth_service.login(db, req.email, req.password, req.role)
    return TokenResponse(access_token=token, user=_user_response(account))


@router.get("/current-user", response_model=CurrentUserResponse)
def current_user(current_user: Account = Depends(get_current_user)):
    return _user_response(current_user)
