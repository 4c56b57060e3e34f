import logging
from datetime import timedelta
from typing import Optional

import jwt
from passlib.hash import pbkdf2_sha256

from app.settings import settings
from domain.errors import AuthenticationError, ValidationError
from infra.db.models import User, new_id, utcnow

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pbkdf2_sha256.verify(password, password_hash)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    issued = utcnow()
    payload = {
        "sub": user.id,
        "jti": new_id(),
        "iat": issued,
        "exp": issued + (expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES)),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(store, token: str) -> dict:
    """Return the verified claims of a bearer token, or raise AuthenticationError."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM],
                            options={"require": ["sub", "jti", "exp"]})
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Session expired, sign in again") from exc
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise AuthenticationError("Invalid authentication token") from exc
    if store.is_token_revoked(claims["jti"]):
        raise AuthenticationError("Session has been signed out")
    return claims


def signup(store, username: str, email: str, password: str) -> User:
    missing = [name for name, value in (("username", username), ("email", email), ("password", password))
               if not (value or "").strip()]
    if missing:
        raise ValidationError.missing(missing)
    if "@" not in email:
        raise ValidationError(f"Invalid email address: {email}", ["email"])
    user = store.create_user(User(
        username=username.strip(),
        email=email.strip(),
        password_hash=hash_password(password),
        role="user",
        is_blocked=False,
    ))
    store.set_current_user(user)
    return user


def login(store, username: str, password: str) -> User:
    user = store.get_user_by_username((username or "").strip())
    if not user or not verify_password(password or "", user.password_hash):
        logger.warning("Failed login for username: %s", username)
        raise AuthenticationError("Invalid username or password")
    if user.is_blocked:
        logger.warning("Blocked user attempted login: %s", username)
        raise AuthenticationError("Your account has been blocked. Contact support.")
    store.set_current_user(user)
    logger.info("User logged in: %s", user.username)
    return user


def logout(store, token_id: Optional[str] = None, user: Optional[User] = None) -> None:
    if token_id:
        store.revoke_token(token_id)
    current = store.get_current_user()
    if user is None or (current is not None and current.id == user.id):
        store.set_current_user(None)
