import asyncio
import base64

import pytest

from conftest import FakeBoundary, interview_payload, job_payload, make_user, resume_payload
from domain.errors import MalformedResponseError, ModelBoundaryError, RateLimitError, ValidationError
from domain.schemas import ChatMessage, JobInput
from domain.services.analysis_orchestrator import AnalysisOrchestrator, split_screenshot


def _orchestrator(boundary, store, sleeper):
    return AnalysisOrchestrator(boundary, store, max_attempts=3, base_delay=1.0, sleep=sleeper)


def _job(**overrides):
    data = {"title": "Remote Data Entry", "company": "QuickCash Ltd",
            "description": "Pay a $50 registration fee to start earning today."}
    data.update(overrides)
    return JobInput(**data)


def test_missing_title_and_description_fail_before_any_model_call(store, sleeper):
    boundary = FakeBoundary(job_payload())
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(JobInput()))
    assert excinfo.value.fields == ["title", "description"]
    assert boundary.calls == []


def test_short_email_content_is_rejected(store, sleeper):
    boundary = FakeBoundary(job_payload())
    job = _job(source_type="email", description="Too short")
    with pytest.raises(ValidationError):
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(job))
    assert boundary.calls == []


def test_rate_limit_is_retried_with_growing_delay_then_surfaced(store, sleeper):
    boundary = FakeBoundary(Exception("429 Too Many Requests"))
    with pytest.raises(RateLimitError) as excinfo:
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))
    assert len(boundary.calls) == 3
    assert excinfo.value.attempts == 3
    assert sleeper.delays == [1.0, 2.0]
    assert all(a < b for a, b in zip(sleeper.delays, sleeper.delays[1:]))


def test_rate_limit_then_success(store, sleeper):
    boundary = FakeBoundary(ModelBoundaryError("RESOURCE_EXHAUSTED: quota", status_code=429), job_payload())
    result = asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))
    assert result.verdict == "Fake Job"
    assert len(boundary.calls) == 2
    assert sleeper.delays == [1.0]


def test_other_errors_are_not_retried(store, sleeper):
    boundary = FakeBoundary(Exception("500 backend exploded"))
    with pytest.raises(ModelBoundaryError):
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))
    assert len(boundary.calls) == 1
    assert sleeper.delays == []


def test_malformed_payload_is_not_retried(store, sleeper):
    payload = job_payload()
    del payload["safety_tips"]
    boundary = FakeBoundary(payload)
    with pytest.raises(MalformedResponseError):
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))
    assert len(boundary.calls) == 1


@pytest.mark.parametrize("bad", [
    {"risk_rate": "85"},
    {"risk_rate": 130},
    {"explanations": "one long string"},
    {"confidence_score": None},
])
def test_wrong_types_are_malformed(store, sleeper, bad):
    boundary = FakeBoundary(job_payload(**bad))
    with pytest.raises(MalformedResponseError):
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))


def test_non_object_response_is_malformed(store, sleeper):
    boundary = FakeBoundary(["not", "an", "object"])
    with pytest.raises(MalformedResponseError):
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))


def test_verdict_comes_from_risk_not_model_label(store, sleeper):
    user = make_user(store, "ivy")
    boundary = FakeBoundary(job_payload(risk_rate=85, result="Genuine Job"))
    result = asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job(), user=user))

    assert result.verdict == "Fake Job"
    assert result.category == "fake"
    assert result.model_label == "Genuine Job"
    saved = store.get_job_scan(result.record_id)
    assert saved.user_id == user.id
    assert saved.verdict == "Fake Job"
    assert saved.explanations == job_payload()["explanations"]


def test_anonymous_analysis_is_not_persisted(store, sleeper):
    boundary = FakeBoundary(job_payload(risk_rate=30))
    result = asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))
    assert result.verdict == "Genuine Job"
    assert result.record_id is None
    assert store.list_job_scans() == []


def test_request_carries_schema_and_inline_screenshot(store, sleeper):
    image = base64.b64encode(b"\x89PNG fake").decode()
    boundary = FakeBoundary(job_payload())
    job = _job(source_type="screenshot", screenshot=f"data:image/jpeg;base64,{image}")
    asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(job))

    call = boundary.calls[0]
    assert "risk_rate" in call["response_schema"]["required"]
    assert "QuickCash Ltd" in call["content"][0]["text"]
    assert call["content"][1] == {"inline_image": image, "mime": "image/jpeg"}


def test_description_is_truncated(store, sleeper):
    boundary = FakeBoundary(job_payload())
    orchestrator = AnalysisOrchestrator(boundary, store, max_attempts=3, base_delay=1.0,
                                        sleep=sleeper, max_input_chars=50)
    asyncio.run(orchestrator.run_job_analysis(_job(description="x" * 500)))
    assert "x" * 51 not in boundary.calls[0]["content"][0]["text"]


def test_split_screenshot_variants():
    assert split_screenshot("data:image/webp;base64,AAAA") == ("image/webp", "AAAA")
    assert split_screenshot("prefix,BBBB") == ("image/png", "BBBB")
    assert split_screenshot("CCCC") == ("image/png", "CCCC")


def test_resume_analysis_classifies_and_persists(store, sleeper):
    user = make_user(store, "jay")
    boundary = FakeBoundary(resume_payload(fraud_risk_score=55))
    result = asyncio.run(_orchestrator(boundary, store, sleeper).run_resume_analysis(
        "Python developer, 4 years", "We need a Python developer", "Backend Engineer", user=user))

    assert result.category == "suspicious"
    assert result.ats_score == 68
    saved = store.get_user_scoped("resume", user.id)
    assert [r.id for r in saved] == [result.record_id]
    assert saved[0].matched_skills == ["Python", "SQL"]


def test_resume_analysis_requires_all_inputs(store, sleeper):
    boundary = FakeBoundary(resume_payload())
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(_orchestrator(boundary, store, sleeper).run_resume_analysis("cv", "", " "))
    assert excinfo.value.fields == ["job_description", "job_title"]
    assert boundary.calls == []


def test_interview_prep_persists_module(store, sleeper):
    user = make_user(store, "kim")
    boundary = FakeBoundary(interview_payload())
    module = asyncio.run(_orchestrator(boundary, store, sleeper).run_interview_prep(
        "Software Engineer", "Fresher", user=user))

    assert module.id
    assert module.technical_questions == ["Explain the GIL."]
    assert [m.id for m in store.get_user_scoped("interview", user.id)] == [module.id]


def test_interview_prep_rejects_empty_question_lists(store, sleeper):
    boundary = FakeBoundary(interview_payload(hr_questions=[]))
    with pytest.raises(MalformedResponseError):
        asyncio.run(_orchestrator(boundary, store, sleeper).run_interview_prep("QA", "Senior"))


def test_chat_passes_history_and_returns_reply(store, sleeper):
    boundary = FakeBoundary("  Never pay a registration fee.  ")
    messages = [
        ChatMessage(role="assistant", content="Hi! How can I help?"),
        ChatMessage(role="user", content="Is a $50 fee normal?"),
    ]
    reply = asyncio.run(_orchestrator(boundary, store, sleeper).chat_with_assistant(messages))

    assert reply == "Never pay a registration fee."
    call = boundary.calls[0]
    assert call["response_schema"] is None
    assert call["history"] == [{"role": "assistant", "content": "Hi! How can I help?"}]
    assert call["content"] == [{"text": "Is a $50 fee normal?"}]


def test_chat_requires_a_user_message(store, sleeper):
    boundary = FakeBoundary("reply")
    with pytest.raises(ValidationError):
        asyncio.run(_orchestrator(boundary, store, sleeper).chat_with_assistant([]))
    with pytest.raises(ValidationError):
        asyncio.run(_orchestrator(boundary, store, sleeper).chat_with_assistant(
            [ChatMessage(role="assistant", content="hello")]))
    assert boundary.calls == []


def test_job_result_log_defers_formatting(store, sleeper, caplog):
    boundary = FakeBoundary(job_payload(risk_rate=85, result="Genuine Job"))
    with caplog.at_level("INFO", logger="domain.services.analysis_orchestrator"):
        asyncio.run(_orchestrator(boundary, store, sleeper).run_job_analysis(_job()))
    record = next(r for r in caplog.records if r.getMessage().startswith("Job analysis result"))
    assert "%s" in record.msg
    assert record.args == (85, "Fake Job", "Genuine Job")
