"""JWT authentication middleware and dependencies.

Teachers, students and parents live in separate tables; the token's
``role`` claim says which one ``sub`` refers to.
"""

from datetime import datetime, timedelta, timezone
from typing import Union

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from teachmate.config import settings
from teachmate.database import get_db
from teachmate.models.parent import Parent
from teachmate.models.student import Student
from teachmate.models.teacher import Teacher

security = HTTPBearer()

ROLE_MODELS = {"teacher": Teacher, "student": Student, "parent": Parent}

Account = Union[Teacher, Student, Parent]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt directly (passlib is broken with bcrypt>=4.1)."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(pwd_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Account:
    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    model = ROLE_MODELS.get(payload.get("role"))
    if not user_id or model is None:
        raise HTTPException(status_code=401, detail="Invalid token payload")
    user = db.query(model).filter(model.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")
    return user


def require_teacher(current_user: Account = Depends(get_current_user)) -> Teacher:
    if current_user.role != "teacher":
        raise HTTPException(status_code=403, detail="Teacher role required")
    return current_user
