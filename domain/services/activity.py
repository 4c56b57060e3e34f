import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

from domain.classifier import CATEGORIES, classify
from domain.errors import ValidationError

logger = logging.getLogger(__name__)

ALL_USERS = "all"
JOB_SOURCE = "job-scan"
RESUME_SOURCE = "resume-scan"
SOURCES = (JOB_SOURCE, RESUME_SOURCE)


@dataclass(frozen=True)
class UnifiedActivityEntry:
    id: str
    source: str
    user_id: str
    title: str
    subtitle: str
    risk_rate: float
    date: datetime
    verdict: str
    category: str


def _format_pct(value) -> str:
    return f"{float(value or 0):g}"


def _from_job_scan(rec) -> UnifiedActivityEntry:
    c = classify(rec.risk_rate)
    return UnifiedActivityEntry(
        id=rec.id,
        source=JOB_SOURCE,
        user_id=rec.user_id,
        title=rec.job_title,
        subtitle=rec.company_name or "",
        risk_rate=rec.risk_rate,
        date=rec.created_at,
        verdict=c.verdict,
        category=c.category,
    )


def _from_resume_scan(rec) -> UnifiedActivityEntry:
    c = classify(rec.fraud_risk_score)
    return UnifiedActivityEntry(
        id=rec.id,
        source=RESUME_SOURCE,
        user_id=rec.user_id,
        title=rec.job_title,
        subtitle=f"Resume match {_format_pct(rec.match_percentage)}% · ATS {_format_pct(rec.ats_score)}",
        risk_rate=rec.fraud_risk_score,
        date=rec.created_at,
        verdict=c.verdict,
        category=c.category,
    )


def _matches(entry: UnifiedActivityEntry, query: str, category: str) -> bool:
    if category != "all" and entry.category != category:
        return False
    if not query:
        return True
    return query in entry.title.lower() or query in entry.subtitle.lower()


def aggregate_activity(store, scope: str, query: str = "", category: str = "all") -> List[UnifiedActivityEntry]:
    """
    Merge job and resume scans into one newest-first activity log.

    ``scope`` is a user id, or ALL_USERS for the admin view. Verdicts are
    recomputed from each record's own risk field, never read from storage.
    """
    category = (category or "all").strip().lower()
    if category != "all" and category not in CATEGORIES:
        raise ValidationError(f"Unknown category filter: {category}", ["category"])
    query = (query or "").strip().lower()

    if scope == ALL_USERS:
        jobs, resumes = store.list_job_scans(), store.list_resume_scans()
    else:
        jobs = store.get_user_scoped("job", scope)
        resumes = store.get_user_scoped("resume", scope)

    entries = [_from_job_scan(r) for r in jobs] + [_from_resume_scan(r) for r in resumes]
    entries.sort(key=lambda e: e.date, reverse=True)
    return [e for e in entries if _matches(e, query, category)]


def delete_activity_entry(store, source: str, entry_id: str) -> bool:
    if source == JOB_SOURCE:
        removed = store.delete_job_scan(entry_id)
    elif source == RESUME_SOURCE:
        removed = store.delete_resume_scan(entry_id)
    else:
        raise ValidationError(f"Unknown activity source: {source}", ["source"])
    logger.info("Delete %s/%s -> %s", source, entry_id, "removed" if removed else "absent")
    return removed


def render_job_scan_report(rec) -> str:
    c = classify(rec.risk_rate)
    lines = [
        "FRAUDGUARD ANALYSIS REPORT",
        "---------------------------",
        f"ID: {rec.id}",
        f"Job: {rec.job_title}",
        f"Company: {rec.company_name}",
        f"Result: {c.verdict}",
        f"Confidence: {_format_pct(rec.confidence_score)}%",
        f"Risk: {c.risk_level} ({_format_pct(rec.risk_rate)}%)",
        f"Date: {rec.created_at.isoformat(sep=' ', timespec='seconds')}",
        "",
        "EXPLANATIONS:",
    ]
    lines += [f"- {item}" for item in rec.explanations or []]
    lines += ["", "SAFETY TIPS:"]
    lines += [f"- {item}" for item in rec.safety_tips or []]
    return "\n".join(lines) + "\n"
