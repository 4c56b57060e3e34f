from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from infra.db.models import JobScanRecord, ResumeScanRecord, User
from infra.repositories.record_store import RecordStore


class FakeBoundary:
    """Scripted model boundary: returns or raises the queued items in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def generate(self, system_instruction, content, response_schema=None, **kwargs):
        self.calls.append({
            "system_instruction": system_instruction,
            "content": content,
            "response_schema": response_schema,
            **kwargs,
        })
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def job_payload(risk_rate=85, result="Fake Job", **overrides):
    payload = {
        "result": result,
        "confidence_score": 91,
        "risk_rate": risk_rate,
        "risk_level": "High",
        "explanations": ["Asks for a training fee", "Recruiter uses a gmail address"],
        "safety_tips": ["Never pay to get hired"],
    }
    payload.update(overrides)
    return payload


def resume_payload(fraud_risk_score=20, **overrides):
    payload = {
        "match_percentage": 72,
        "ats_score": 68,
        "fraud_risk_score": fraud_risk_score,
        "rating": "Medium",
        "matched_skills": ["Python", "SQL"],
        "missing_skills": ["Kubernetes"],
        "suggestions": ["Quantify impact in the latest role"],
        "optimized_summary": "Backend engineer with four years of Python experience.",
        "roadmap": ["Complete a Kubernetes course", "Deploy a side project"],
    }
    payload.update(overrides)
    return payload


def interview_payload(**overrides):
    payload = {
        "technical_questions": ["Explain the GIL."],
        "hr_questions": ["Tell me about yourself."],
        "preparation_roadmap": ["Review data structures", "Mock interview"],
        "resources": ["https://docs.python.org/3/tutorial/"],
    }
    payload.update(overrides)
    return payload


def make_user(store, username, role="user", created_at=None, password_hash=None):
    return store.create_user(User(
        username=username,
        email=f"{username}@example.com",
        role=role,
        is_blocked=False,
        created_at=created_at,
        password_hash=password_hash,
    ))


def add_job_scan(store, user, risk_rate, created_at=None, title="Data Entry Clerk", company="Acme"):
    return store.save_job_scan(JobScanRecord(
        user_id=user.id,
        job_title=title,
        company_name=company,
        risk_rate=risk_rate,
        confidence_score=80,
        model_label="Fake Job" if risk_rate >= 50 else "Genuine Job",
        explanations=["reason"],
        safety_tips=["tip"],
        created_at=created_at,
    ))


def add_resume_scan(store, user, risk, created_at=None, title="Backend Engineer"):
    return store.save_resume_scan(ResumeScanRecord(
        user_id=user.id,
        job_title=title,
        fraud_risk_score=risk,
        match_percentage=60,
        ats_score=55,
        rating="Medium",
        created_at=created_at,
    ))


@pytest.fixture
def store():
    return RecordStore.in_memory()


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def api(store, sleeper):
    """TestClient wired to an in-memory store and a swappable fake boundary."""
    from app.main import app
    from api.deps import get_orchestrator, get_store
    from domain.services.analysis_orchestrator import AnalysisOrchestrator
    from domain.services.auth import hash_password

    store.seed_admin(hash_password("admin123"))
    holder = {"boundary": FakeBoundary(job_payload())}

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_orchestrator] = lambda: AnalysisOrchestrator(
        holder["boundary"], store, max_attempts=3, base_delay=0.5, sleep=sleeper)
    client = TestClient(app)
    client.holder = holder
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def day():
    return datetime(2024, 1, 1, 12, 0, 0)
