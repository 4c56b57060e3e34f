import logging
import threading
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import sessionmaker

from domain.errors import DuplicateEmailError, DuplicateUsernameError
from infra.db.models import (
    AppState,
    InterviewModule,
    JobScanRecord,
    ResumeScanRecord,
    User,
    new_id,
    utcnow,
)
from infra.db.session import init_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)

CURRENT_USER_KEY = "current_user"
REVOKED_TOKEN_PREFIX = "revoked_token:"
ADMIN_USERNAME = "admin"
ADMIN_EMAIL = "admin@fraudguard.ai"

_KINDS = {
    "job": JobScanRecord,
    "resume": ResumeScanRecord,
    "interview": InterviewModule,
}


class RecordStore:
    """
    Durable CRUD for users, scans and interview modules.

    Each public method runs in its own session and commits before returning.
    Writes are serialized so a read-modify-write never interleaves with
    another one. Absent ids are never an error here: lookups return None and
    deletes/updates return False/None.
    """

    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory
        self._lock = threading.RLock()

    @classmethod
    def from_url(cls, url: Optional[str] = None) -> "RecordStore":
        engine = make_engine(url)
        init_db(engine)
        return cls(make_session_factory(engine))

    @classmethod
    def in_memory(cls) -> "RecordStore":
        return cls.from_url("sqlite://")

    # users

    @staticmethod
    def _check_unique(s, email: str, username: str, exclude_id: Optional[str] = None) -> None:
        others = select(User.id)
        if exclude_id:
            others = others.where(User.id != exclude_id)
        if s.scalar(others.where(func.lower(User.email) == email)):
            raise DuplicateEmailError(f"Email already registered: {email}")
        if s.scalar(others.where(User.username == username)):
            raise DuplicateUsernameError(f"Username already exists: {username}")

    def create_user(self, user: User) -> User:
        with self._lock, self._sessions() as s:
            email = (user.email or "").strip().lower()
            self._check_unique(s, email, user.username)
            user.email = email
            user.id = user.id or new_id()
            user.created_at = user.created_at or utcnow()
            if user.is_blocked is None:
                user.is_blocked = False
            user.role = user.role or "user"
            s.add(user)
            s.commit()
            logger.info("User created: %s (id=%s, role=%s)", user.username, user.id, user.role)
            return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._sessions() as s:
            return s.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._sessions() as s:
            return s.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._sessions() as s:
            return s.scalar(select(User).where(User.username == username))

    def list_users(self) -> List[User]:
        with self._sessions() as s:
            return list(s.scalars(select(User).order_by(User.created_at.asc(), User.id)))

    def update_user(self, user: User) -> Optional[User]:
        with self._lock, self._sessions() as s:
            current = s.get(User, user.id)
            if not current:
                return None
            email = (user.email or "").strip().lower()
            self._check_unique(s, email, user.username, exclude_id=user.id)
            current.username = user.username
            current.email = email
            current.password_hash = user.password_hash
            current.is_blocked = bool(user.is_blocked)
            current.role = user.role
            s.commit()
            return current

    def set_user_blocked(self, user_id: str, blocked: bool) -> Optional[User]:
        with self._lock, self._sessions() as s:
            user = s.get(User, user_id)
            if not user:
                return None
            user.is_blocked = blocked
            s.commit()
            logger.info("User %s %s", user_id, "blocked" if blocked else "unblocked")
            return user

    def delete_user(self, user_id: str) -> bool:
        """Remove a user together with every record it owns, in one transaction."""
        with self._lock, self._sessions() as s:
            user = s.get(User, user_id)
            if not user:
                return False
            counts = {}
            for kind, model in _KINDS.items():
                result = s.execute(delete(model).where(model.user_id == user_id))
                counts[kind] = result.rowcount
            s.execute(delete(AppState).where(AppState.key == CURRENT_USER_KEY,
                                             AppState.value == user_id))
            s.delete(user)
            s.commit()
        logger.info("Deleted user %s with cascade %s", user_id, counts)
        return True

    def seed_admin(self, password_hash: Optional[str] = None) -> Optional[User]:
        with self._lock:
            with self._sessions() as s:
                if s.scalar(select(func.count()).select_from(User)):
                    return None
            admin = User(username=ADMIN_USERNAME, email=ADMIN_EMAIL, role="admin",
                         is_blocked=False, password_hash=password_hash)
            return self.create_user(admin)

    # session pointer

    def set_current_user(self, user: Optional[User]) -> None:
        with self._lock, self._sessions() as s:
            state = s.get(AppState, CURRENT_USER_KEY)
            if user is None:
                if state:
                    s.delete(state)
            elif state:
                state.value = user.id
            else:
                s.add(AppState(key=CURRENT_USER_KEY, value=user.id))
            s.commit()

    def get_current_user(self) -> Optional[User]:
        with self._sessions() as s:
            state = s.get(AppState, CURRENT_USER_KEY)
            if not state or not state.value:
                return None
            return s.get(User, state.value)

    def revoke_token(self, token_id: str) -> None:
        with self._lock, self._sessions() as s:
            key = REVOKED_TOKEN_PREFIX + token_id
            if not s.get(AppState, key):
                s.add(AppState(key=key, value=utcnow().isoformat()))
                s.commit()

    def is_token_revoked(self, token_id: str) -> bool:
        with self._sessions() as s:
            return s.get(AppState, REVOKED_TOKEN_PREFIX + token_id) is not None

    # scans and modules

    def _save(self, record):
        with self._lock, self._sessions() as s:
            record.id = record.id or new_id()
            record.created_at = record.created_at or utcnow()
            s.add(record)
            s.commit()
            return record

    def _delete(self, model, record_id: str) -> bool:
        with self._lock, self._sessions() as s:
            result = s.execute(delete(model).where(model.id == record_id))
            s.commit()
            return result.rowcount > 0

    def save_job_scan(self, record: JobScanRecord) -> JobScanRecord:
        return self._save(record)

    def save_resume_scan(self, record: ResumeScanRecord) -> ResumeScanRecord:
        return self._save(record)

    def save_interview_module(self, module: InterviewModule) -> InterviewModule:
        return self._save(module)

    def delete_job_scan(self, record_id: str) -> bool:
        return self._delete(JobScanRecord, record_id)

    def delete_resume_scan(self, record_id: str) -> bool:
        return self._delete(ResumeScanRecord, record_id)

    def delete_interview_module(self, module_id: str) -> bool:
        return self._delete(InterviewModule, module_id)

    def get_job_scan(self, record_id: str) -> Optional[JobScanRecord]:
        with self._sessions() as s:
            return s.get(JobScanRecord, record_id)

    def get_resume_scan(self, record_id: str) -> Optional[ResumeScanRecord]:
        with self._sessions() as s:
            return s.get(ResumeScanRecord, record_id)

    def get_interview_module(self, module_id: str) -> Optional[InterviewModule]:
        with self._sessions() as s:
            return s.get(InterviewModule, module_id)

    def get_user_scoped(self, kind: str, user_id: str) -> list:
        model = _KINDS.get(kind)
        if model is None:
            raise ValueError(f"Unknown record kind: {kind}")
        with self._sessions() as s:
            stmt = (select(model).where(model.user_id == user_id)
                    .order_by(model.created_at.desc(), model.id))
            return list(s.scalars(stmt))

    def list_job_scans(self) -> List[JobScanRecord]:
        with self._sessions() as s:
            stmt = select(JobScanRecord).order_by(JobScanRecord.created_at.desc(), JobScanRecord.id)
            return list(s.scalars(stmt))

    def list_resume_scans(self) -> List[ResumeScanRecord]:
        with self._sessions() as s:
            stmt = select(ResumeScanRecord).order_by(ResumeScanRecord.created_at.desc(), ResumeScanRecord.id)
            return list(s.scalars(stmt))

    def clear_user_history(self, user_id: str) -> int:
        with self._lock, self._sessions() as s:
            removed = 0
            for model in (JobScanRecord, ResumeScanRecord):
                removed += s.execute(delete(model).where(model.user_id == user_id)).rowcount
            s.commit()
        logger.info("Cleared %d history records for user %s", removed, user_id)
        return removed
