import asyncio

import pytest

from conftest import job_payload
from domain.errors import MalformedResponseError, ModelBoundaryError
from infra.llm.client import (
    HttpModelBoundary,
    JobAnalysisPayload,
    is_rate_limit_error,
    validate_llm_response,
)


@pytest.mark.parametrize("message", [
    "429 Too Many Requests",
    "Rate limit reached for gpt-4o-mini",
    "RESOURCE_EXHAUSTED",
    "You exceeded your current quota",
])
def test_rate_limit_markers(message):
    assert is_rate_limit_error(Exception(message))


def test_status_code_marks_rate_limit():
    assert is_rate_limit_error(ModelBoundaryError("Too many", status_code=429))
    assert not is_rate_limit_error(ModelBoundaryError("Bad gateway", status_code=502))
    assert not is_rate_limit_error(Exception("API key not valid"))


def test_validate_accepts_dict_and_json_text():
    parsed = validate_llm_response(job_payload(risk_rate=12), JobAnalysisPayload)
    assert parsed.risk_rate == 12
    raw = '{"result": "Genuine Job", "confidence_score": 70, "risk_rate": 5, "risk_level": "Low", "explanations": [], "safety_tips": []}'
    assert validate_llm_response(raw, JobAnalysisPayload).result == "Genuine Job"


def test_validate_rejects_bad_json_text():
    with pytest.raises(MalformedResponseError):
        validate_llm_response("Sure! Here is the JSON you asked for", JobAnalysisPayload)


def test_boundary_without_provider_fails_fast():
    boundary = HttpModelBoundary(gemini_api_key=None, openai_api_key=None)
    with pytest.raises(ModelBoundaryError):
        asyncio.run(boundary.generate("system", [{"text": "hello"}]))
