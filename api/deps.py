from functools import lru_cache

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.settings import settings
from domain.errors import AuthenticationError, PermissionDeniedError
from domain.services.analysis_orchestrator import AnalysisOrchestrator
from domain.services.auth import decode_access_token, hash_password
from infra.db.models import User
from infra.llm.client import HttpModelBoundary
from infra.repositories.record_store import RecordStore


@lru_cache
def get_store() -> RecordStore:
    store = RecordStore.from_url(f"sqlite:///{settings.SQLITE_PATH}")
    store.seed_admin(hash_password(settings.ADMIN_PASSWORD))
    return store


@lru_cache
def get_boundary() -> HttpModelBoundary:
    return HttpModelBoundary.from_settings()


def get_orchestrator(store: RecordStore = Depends(get_store),
                     boundary=Depends(get_boundary)) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(boundary, store)


bearer = HTTPBearer(auto_error=False)


def get_token_claims(credentials: HTTPAuthorizationCredentials | None = Security(bearer),
                     store: RecordStore = Depends(get_store)) -> dict | None:
    if credentials is None:
        return None
    return decode_access_token(store, credentials.credentials)


def get_session_user(claims: dict | None = Depends(get_token_claims),
                     store: RecordStore = Depends(get_store)) -> User | None:
    """The caller named by the bearer token; None for anonymous requests."""
    if claims is None:
        return None
    user = store.get_user(claims["sub"])
    if user is None:
        raise AuthenticationError("Account no longer exists")
    if user.is_blocked:
        raise AuthenticationError("Your account has been blocked. Contact support.")
    return user


def require_user(user: User | None = Depends(get_session_user)) -> User:
    if user is None:
        raise AuthenticationError("Sign in to use this feature")
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return user
