import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi.security import OAuth2PasswordBearer
from jose import jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from app.salestrack.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/salestrack/auth/token")

TEMPORARY_PASSWORD_LENGTH = 12
_TEMPORARY_PASSWORD_ALPHABET = string.ascii_letters + string.digits


class TokenData(BaseModel):
    sub: str
    organization_id: str | None = None
    branch_id: str | None = None
    role: str
    is_active: bool
    must_change_password: bool
    email: str
    full_name: str | None = None


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def generate_temporary_password(length: int = TEMPORARY_PASSWORD_LENGTH) -> str:
    # at least one letter and one digit so the password passes its own policy
    while True:
        password = "".join(secrets.choice(_TEMPORARY_PASSWORD_ALPHABET) for _ in range(length))
        if any(ch.isalpha() for ch in password) and any(ch.isdigit() for ch in password):
            return password


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def create_user_access_token(user, organization_id, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(
        {
            "sub": str(user.id),
            "organization_id": str(organization_id) if organization_id else None,
            "branch_id": str(user.branch_id) if user.branch_id else None,
            "role": user.role,
            "is_active": user.is_active,
            "must_change_password": user.must_change_password,
            "email": user.email,
            "full_name": user.full_name,
        },
        expires_delta=expires_delta,
    )
