from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from domain.classifier import classify, risk_bucket

TREND_DAYS = 7


@dataclass
class TrendPoint:
    date: date
    users: int
    scans: int


@dataclass
class PlatformStats:
    total_users: int
    total_analyses: int
    fake_jobs_detected: int
    high_risk_percentage: int
    new_users_today: int
    risk_distribution: Dict[str, int] = field(default_factory=dict)
    growth_trend: List[TrendPoint] = field(default_factory=list)


def compute_stats(store, now: Optional[datetime] = None) -> PlatformStats:
    """Platform-wide admin numbers, recomputed from raw records on every call."""
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    today = now.date()

    users = store.list_users()
    jobs, resumes = store.list_job_scans(), store.list_resume_scans()
    scores = [r.risk_rate for r in jobs] + [r.fraud_risk_score for r in resumes]
    scan_days = [r.created_at.date() for r in jobs + resumes]

    distribution = {"low": 0, "medium": 0, "high": 0}
    for score in scores:
        distribution[risk_bucket(score)] += 1

    total = len(scores)
    fake = sum(1 for score in scores if classify(score).category == "fake")

    user_days = [u.created_at.date() for u in users]
    trend = []
    for offset in range(TREND_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        trend.append(TrendPoint(date=day,
                                users=user_days.count(day),
                                scans=scan_days.count(day)))

    return PlatformStats(
        total_users=len(users),
        total_analyses=total,
        fake_jobs_detected=fake,
        high_risk_percentage=round(fake / total * 100) if total else 0,
        new_users_today=user_days.count(today),
        risk_distribution=distribution,
        growth_trend=trend,
    )
