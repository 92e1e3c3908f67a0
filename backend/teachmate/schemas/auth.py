"""Auth request/response schemas."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str
    role: str  # teacher | student | parent


class CurrentUserResponse(BaseModel):
    id: str
    email: str
    role: str
    name: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUserResponse
