"""Login for the three account kinds."""

from sqlalchemy.orm import Session

from teachmate.errors import ServiceError
from teachmate.middleware.auth import ROLE_MODELS, Account, create_access_token, verify_password


class AuthError(ServiceError):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


def display_name(account: Account) -> str:
    if account.role == "student":
        return account.full_name
    return account.name


def login(db: Session, email: str, password: str, role: str) -> tuple[str, Account]:
    """Return ``(token, account)``; raises AuthError with 400/401/403."""
    model = ROLE_MODELS.get(role)
    if model is None:
        raise AuthError("Role must be one of teacher, student, parent", 400)

    account = db.query(model).filter(model.email == (email or "").strip().lower()).first()
    if not account or not verify_password(password, account.password_hash):
        raise AuthError("Invalid email or password", 401)
    if not account.is_active:
        raise AuthError("Account is inactive", 403)

    token = create_access_token({
        "sub": account.id,
        "email": account.email,
        "role": role,
        "name": display_name(account),
    })
    return token, account
