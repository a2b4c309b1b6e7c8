"""Authentication service for users, JWT tokens and the automation secret."""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Annotated

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

from drambox.config import settings
from drambox.models.user import User
from drambox.services.exceptions import Unauthorized

# Security event logger
security_logger = logging.getLogger("drambox.security")

password_hash = PasswordHash((Argon2Hasher(),))

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return password_hash.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token with a unique JWT ID."""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire, "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


async def get_user_by_email(email: str) -> User | None:
    """Get a user by email."""
    return await User.find_one(User.email == email.lower())


async def authenticate_user(
    email: str,
    password: str,
    ip_address: str | None = None,
) -> User | None:
    """Authenticate a user with email and password.

    Returns:
        User if authentication successful, None otherwise.
    """
    user = await get_user_by_email(email)
    if not user:
        security_logger.warning(
            "Failed login - user not found: email=%s, ip=%s",
            email,
            ip_address or "unknown",
        )
        return None

    if not verify_password(password, user.hashed_password):
        security_logger.warning(
            "Failed login - invalid password: user_id=%s, ip=%s",
            str(user.id),
            ip_address or "unknown",
        )
        return None

    if not user.is_active:
        security_logger.warning(
            "Failed login - inactive account: user_id=%s, ip=%s",
            str(user.id),
            ip_address or "unknown",
        )
        return None

    user.last_login = datetime.now(timezone.utc)
    await user.save_changes()
    security_logger.info(
        "Successful login: user_id=%s, ip=%s",
        str(user.id),
        ip_address or "unknown",
    )
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
) -> User | None:
    """Get the current user from the JWT token.

    Supports tokens with 'sub' containing email or user_id (ObjectId string).
    """
    if not token:
        return None

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject: str | None = payload.get("sub")
    if subject is None:
        return None

    user = await get_user_by_email(subject)
    if user is None:
        try:
            user = await User.get(PydanticObjectId(subject))
        except InvalidId:
            user = None

    if user is None or not user.is_active:
        return None

    return user


async def require_auth(
    user: Annotated[User | None, Depends(get_current_user)],
) -> User:
    """Require authentication - raises 401 if not authenticated."""
    if user is None:
        raise Unauthorized("Not authenticated")
    return user


async def require_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Require the automation bearer secret for batch endpoints.

    With no cron secret configured every call is rejected.
    """
    expected = settings.cron_secret
    scheme, _, supplied = (authorization or "").partition(" ")
    if (
        not expected
        or scheme.lower() != "bearer"
        or not secrets.compare_digest(supplied.encode(), expected.encode())
    ):
        security_logger.warning("Rejected automation request: bad or missing cron secret")
        raise Unauthorized("Invalid automation credentials")


# Type aliases for dependency injection
RequireAuth = Annotated[User, Depends(require_auth)]
RequireCron = Depends(require_cron_secret)
