import asyncio
import logging
import re
from typing import List, Optional

from app.settings import settings
from domain.classifier import classify
from domain.errors import MalformedResponseError, ValidationError
from domain.schemas import (
    ChatMessage,
    InterviewModuleOut,
    JobAnalysisResult,
    JobInput,
    ResumeAnalysisResult,
)
from infra.db.models import InterviewModule, JobScanRecord, ResumeScanRecord
from infra.llm.client import (
    InterviewPrepPayload,
    JobAnalysisPayload,
    ResumeAnalysisPayload,
    call_with_rate_limit_retries,
    validate_llm_response,
)
from infra.llm.prompts import (
    ASSISTANT_SYSTEM_PROMPT,
    INTERVIEW_PREP_SCHEMA,
    INTERVIEW_PREP_SYSTEM_PROMPT,
    INTERVIEW_PREP_USER_TEMPLATE,
    JOB_FRAUD_SCHEMA,
    JOB_FRAUD_SYSTEM_PROMPT,
    JOB_FRAUD_USER_TEMPLATE,
    RESUME_MATCH_SCHEMA,
    RESUME_MATCH_SYSTEM_PROMPT,
    RESUME_MATCH_USER_TEMPLATE,
)

logger = logging.getLogger(__name__)

MIN_EMAIL_CHARS = 20
_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,", re.I)


def _missing(**fields) -> List[str]:
    return [name for name, value in fields.items() if not (value or "").strip()]


def _bounded(text: str, limit: int) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else text[:limit]


def split_screenshot(screenshot: str):
    """Return (mime, base64 data) for a raw base64 string or a data URL."""
    match = _DATA_URL.match(screenshot)
    if match:
        return match.group("mime").lower(), screenshot[match.end():]
    if "," in screenshot:
        return "image/png", screenshot.split(",", 1)[1]
    return "image/png", screenshot


class AnalysisOrchestrator:
    """
    Runs one analysis request through validation, the model boundary and
    persistence.

    Request states: Idle -> Validating -> Pending(1..max_attempts) -> Success
    or Failed. Only a rate-limited Pending attempt is retried.
    """

    def __init__(self, boundary, store, *, max_attempts: Optional[int] = None,
                 base_delay: Optional[float] = None, sleep=asyncio.sleep,
                 max_input_chars: Optional[int] = None):
        self.boundary = boundary
        self.store = store
        self.max_attempts = max_attempts or settings.LLM_MAX_ATTEMPTS
        self.base_delay = settings.LLM_BASE_DELAY if base_delay is None else base_delay
        self.sleep = sleep
        self.max_input_chars = max_input_chars or settings.MAX_INPUT_CHARS

    async def _call(self, label: str, system_instruction: str, content, schema, **kwargs):
        async def attempt():
            return await self.boundary.generate(system_instruction, content, schema, **kwargs)

        try:
            raw = await call_with_rate_limit_retries(
                attempt,
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                sleep=self.sleep,
                label=label,
            )
        except Exception as exc:
            logger.error("%s: failed (%s)", label, exc.__class__.__name__)
            raise
        logger.debug("%s: success", label)
        return raw

    async def run_job_analysis(self, data: JobInput, user=None) -> JobAnalysisResult:
        logger.debug("job analysis: validating")
        missing = _missing(title=data.title, description=data.description)
        if missing:
            raise ValidationError.missing(missing)
        if data.source_type == "email" and len(data.description.strip()) < MIN_EMAIL_CHARS:
            raise ValidationError(
                f"Email content must be at least {MIN_EMAIL_CHARS} characters for an accurate analysis",
                ["description"],
            )

        limit = self.max_input_chars
        prompt = JOB_FRAUD_USER_TEMPLATE.format(
            title=_bounded(data.title, 300),
            company=_bounded(data.company, 300),
            salary=_bounded(data.salary, 200),
            location=_bounded(data.location, 200),
            email=_bounded(data.email, 200),
            website=_bounded(data.website, 300),
            source_type=data.source_type,
            description=_bounded(data.description, limit),
        )
        content = [{"text": prompt}]
        if data.screenshot:
            mime, image = split_screenshot(data.screenshot)
            content.append({"inline_image": image, "mime": mime})

        logger.info("Job analysis requested: title=%r source=%s image=%s",
                    data.title, data.source_type, bool(data.screenshot))
        raw = await self._call("job analysis", JOB_FRAUD_SYSTEM_PROMPT, content, JOB_FRAUD_SCHEMA)
        payload = validate_llm_response(raw, JobAnalysisPayload)
        c = classify(payload.risk_rate)
        logger.info("Job analysis result: risk_rate=%s verdict=%s model_label=%s",
                    payload.risk_rate, c.verdict, payload.result)

        result = JobAnalysisResult(
            verdict=c.verdict,
            category=c.category,
            risk_level=c.risk_level,
            risk_rate=payload.risk_rate,
            confidence_score=payload.confidence_score,
            model_label=payload.result,
            explanations=payload.explanations,
            safety_tips=payload.safety_tips,
        )
        if user is not None:
            record = self.store.save_job_scan(JobScanRecord(
                user_id=user.id,
                job_title=data.title.strip(),
                company_name=data.company.strip(),
                risk_rate=payload.risk_rate,
                confidence_score=payload.confidence_score,
                model_label=payload.result,
                source_type=data.source_type,
                explanations=payload.explanations,
                safety_tips=payload.safety_tips,
            ))
            result.record_id = record.id
        return result

    async def run_resume_analysis(self, resume_text: str, job_description: str,
                                  job_title: str, user=None) -> ResumeAnalysisResult:
        missing = _missing(resume_text=resume_text, job_description=job_description, job_title=job_title)
        if missing:
            raise ValidationError.missing(missing)

        prompt = RESUME_MATCH_USER_TEMPLATE.format(
            job_title=_bounded(job_title, 300),
            resume_text=_bounded(resume_text, self.max_input_chars),
            job_description=_bounded(job_description, self.max_input_chars),
        )
        logger.info("Resume analysis requested: job_title=%r", job_title)
        raw = await self._call("resume analysis", RESUME_MATCH_SYSTEM_PROMPT,
                               [{"text": prompt}], RESUME_MATCH_SCHEMA)
        payload = validate_llm_response(raw, ResumeAnalysisPayload)
        c = classify(payload.fraud_risk_score)

        result = ResumeAnalysisResult(
            job_title=job_title.strip(),
            verdict=c.verdict,
            category=c.category,
            risk_level=c.risk_level,
            **payload.dict(),
        )
        if user is not None:
            record = self.store.save_resume_scan(ResumeScanRecord(
                user_id=user.id,
                job_title=job_title.strip(),
                **payload.dict(),
            ))
            result.record_id = record.id
        return result

    async def run_interview_prep(self, role: str, experience_level: str, user=None) -> InterviewModuleOut:
        missing = _missing(role=role, experience_level=experience_level)
        if missing:
            raise ValidationError.missing(missing)

        prompt = INTERVIEW_PREP_USER_TEMPLATE.format(
            role=_bounded(role, 200), experience_level=_bounded(experience_level, 100))
        raw = await self._call("interview prep", INTERVIEW_PREP_SYSTEM_PROMPT,
                               [{"text": prompt}], INTERVIEW_PREP_SCHEMA)
        payload = validate_llm_response(raw, InterviewPrepPayload)

        module = InterviewModuleOut(role=role.strip(), experience_level=experience_level.strip(),
                                    **payload.dict())
        if user is not None:
            saved = self.store.save_interview_module(InterviewModule(
                user_id=user.id, **module.dict(exclude={"id", "created_at"})))
            module = InterviewModuleOut.from_orm(saved)
        return module

    async def chat_with_assistant(self, messages: List[ChatMessage]) -> str:
        if not messages:
            raise ValidationError.missing(["messages"])
        last = messages[-1]
        if last.role != "user" or not last.content.strip():
            raise ValidationError("The last message must be a non-empty user message", ["messages"])

        history = [{"role": m.role, "content": _bounded(m.content, self.max_input_chars)}
                   for m in messages[:-1]]
        reply = await self._call(
            "assistant chat",
            ASSISTANT_SYSTEM_PROMPT,
            [{"text": _bounded(last.content, self.max_input_chars)}],
            None,
            history=history,
            model=settings.GEMINI_CHAT_MODEL,
        )
        if not isinstance(reply, str) or not reply.strip():
            raise MalformedResponseError("Assistant returned an empty reply")
        return reply.strip()