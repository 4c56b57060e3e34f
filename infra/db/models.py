import uuid
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, String, Float, Text, DateTime, ForeignKey, JSON
from infra.db.session import Base
from domain.classifier import classify


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    # SQLite drops tzinfo, so timestamps are stored as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ClassifiedMixin:
    """Verdict fields are always recomputed from the stored risk score."""

    @property
    def risk_score(self) -> float:
        raise NotImplementedError

    @property
    def verdict(self) -> str:
        return classify(self.risk_score).verdict

    @property
    def category(self) -> str:
        return classify(self.risk_score).category

    @property
    def risk_level(self) -> str:
        return classify(self.risk_score).risk_level


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=new_id)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    is_blocked = Column(Boolean, nullable=False, default=False)
    role = Column(String, nullable=False, default="user")   # 'user' | 'admin'
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class JobScanRecord(ClassifiedMixin, Base):
    __tablename__ = "job_scans"
    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_title = Column(String, nullable=False)
    company_name = Column(String, nullable=False, default="")
    risk_rate = Column(Float, nullable=False)
    confidence_score = Column(Float, nullable=False, default=0.0)
    model_label = Column(String, nullable=True)   # raw label from the model, display never reads it
    source_type = Column(String, nullable=False, default="manual")
    explanations = Column(JSON, nullable=False, default=list)
    safety_tips = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    @property
    def risk_score(self) -> float:
        return self.risk_rate


class ResumeScanRecord(ClassifiedMixin, Base):
    __tablename__ = "resume_scans"
    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    job_title = Column(String, nullable=False)
    fraud_risk_score = Column(Float, nullable=False)
    match_percentage = Column(Float, nullable=False, default=0.0)
    ats_score = Column(Float, nullable=False, default=0.0)
    rating = Column(String, nullable=True)   # 'High' | 'Medium' | 'Low'
    matched_skills = Column(JSON, nullable=False, default=list)
    missing_skills = Column(JSON, nullable=False, default=list)
    suggestions = Column(JSON, nullable=False, default=list)
    optimized_summary = Column(Text, nullable=True)
    roadmap = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    @property
    def risk_score(self) -> float:
        return self.fraud_risk_score


class InterviewModule(Base):
    __tablename__ = "interview_modules"
    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False)
    experience_level = Column(String, nullable=False)
    technical_questions = Column(JSON, nullable=False, default=list)
    hr_questions = Column(JSON, nullable=False, default=list)
    preparation_roadmap = Column(JSON, nullable=False, default=list)
    resources = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class AppState(Base):
    __tablename__ = "app_state"
    key = Column(String, primary_key=True)
    value = Column(String, nullable=True)
