import asyncio
import base64
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Protocol, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, Field, StrictStr, ValidationError

from app.settings import settings
from domain.errors import FraudGuardError, MalformedResponseError, ModelBoundaryError, RateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def _score():
    return Field(..., ge=0.0, le=100.0, strict=True)


# content parts: {"text": str} or {"inline_image": bytes or base64 str, "mime": str}
ContentPart = Dict[str, Any]
ChatTurn = Dict[str, str]

_RATE_LIMIT_MARKERS = ("429", "rate limit", "rate_limit", "quota", "resource_exhausted")


class JobAnalysisPayload(BaseModel):
    result: StrictStr = Field(..., min_length=1)
    confidence_score: float = _score()
    risk_rate: float = _score()
    risk_level: StrictStr
    explanations: List[StrictStr]
    safety_tips: List[StrictStr]


class ResumeAnalysisPayload(BaseModel):
    match_percentage: float = _score()
    ats_score: float = _score()
    fraud_risk_score: float = _score()
    rating: Literal["High", "Medium", "Low"]
    matched_skills: List[StrictStr]
    missing_skills: List[StrictStr]
    suggestions: List[StrictStr]
    optimized_summary: StrictStr
    roadmap: List[StrictStr]


class InterviewPrepPayload(BaseModel):
    technical_questions: List[StrictStr] = Field(..., min_length=1)
    hr_questions: List[StrictStr] = Field(..., min_length=1)
    preparation_roadmap: List[StrictStr]
    resources: List[StrictStr]


class ModelBoundary(Protocol):
    async def generate(
        self,
        system_instruction: str,
        content: List[ContentPart],
        response_schema: Optional[Dict] = None,
        *,
        history: Optional[List[ChatTurn]] = None,
        model: Optional[str] = None,
    ) -> Union[Dict, str]: ...


def is_rate_limit_error(exc: Exception) -> bool:
    if getattr(exc, "upstream_status", None) == 429:
        return True
    msg = str(exc).lower()
    return any(marker in msg for marker in _RATE_LIMIT_MARKERS)


async def call_with_rate_limit_retries(
    call: Callable[[], Awaitable[Any]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "model call",
) -> Any:
    """
    Run ``call`` and retry it only while the failure is a rate limit.

    The delay doubles after each rate-limited attempt. Anything else is
    surfaced on the first failure; untyped exceptions are wrapped in
    ModelBoundaryError.
    """
    backoff = base_delay
    for attempt in range(1, max_attempts + 1):
        logger.debug("%s: pending attempt %d/%d", label, attempt, max_attempts)
        try:
            return await call()
        except MalformedResponseError:
            raise
        except Exception as exc:
            if not is_rate_limit_error(exc):
                logger.warning("%s failed (attempt %d), not retrying: %s", label, attempt, exc)
                if isinstance(exc, FraudGuardError):
                    raise
                raise ModelBoundaryError(str(exc) or exc.__class__.__name__) from exc
            if attempt == max_attempts:
                raise RateLimitError(
                    f"Model quota exceeded after {attempt} attempts. "
                    "Wait a moment or configure a different API key.",
                    attempts=attempt,
                ) from exc
            logger.warning("%s rate limited (attempt %d). Waiting %.1fs", label, attempt, backoff)
        await sleep(backoff)
        backoff *= 2
    raise RuntimeError("Unexpected retry exhaustion")


def validate_llm_response(raw: Union[str, Dict], model: Type[T]) -> T:
    try:
        if isinstance(raw, str):
            return model.parse_raw(raw)
        if not isinstance(raw, dict):
            raise MalformedResponseError(
                f"LLM response was {type(raw).__name__}, expected a JSON object")
        return model.parse_obj(raw)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError("LLM response was not valid JSON") from exc
    except ValidationError as exc:
        raise MalformedResponseError(f"LLM response failed validation: {exc}") from exc


def _inline_image(part: ContentPart):
    data = part["inline_image"]
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("ascii")
    return part.get("mime") or "image/png", data


def _parse_json_text(text: str) -> Dict:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError("LLM response was not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise MalformedResponseError("LLM response was not a JSON object")
    return parsed


async def _post(url: str, headers: Dict[str, str], payload: Dict, *, timeout: int) -> Dict:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, headers=headers, json=payload)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise ModelBoundaryError(f"{status} from model provider: {exc.response.text[:300]}",
                                 status_code=status) from exc
    except httpx.RequestError as exc:
        raise ModelBoundaryError(f"Model provider unreachable: {exc}") from exc


class HttpModelBoundary:
    """Gemini generateContent when a Gemini key is set, else OpenAI chat completions."""

    def __init__(self, gemini_api_key: Optional[str] = None, openai_api_key: Optional[str] = None,
                 gemini_model: Optional[str] = None, openai_model: Optional[str] = None,
                 timeout: Optional[int] = None):
        self.gemini_api_key = gemini_api_key
        self.openai_api_key = openai_api_key
        self.gemini_model = gemini_model or settings.GEMINI_MODEL
        self.openai_model = openai_model or settings.OPENAI_MODEL
        self.timeout = timeout or settings.LLM_TIMEOUT

    @classmethod
    def from_settings(cls) -> "HttpModelBoundary":
        return cls(gemini_api_key=settings.GEMINI_API_KEY, openai_api_key=settings.OPENAI_API_KEY)

    async def generate(self, system_instruction, content, response_schema=None, *, history=None, model=None):
        if self.gemini_api_key:
            text = await self._gemini(system_instruction, content, response_schema, history, model)
        elif self.openai_api_key:
            text = await self._openai(system_instruction, content, response_schema, history)
        else:
            raise ModelBoundaryError("No LLM provider configured")
        if not text:
            raise MalformedResponseError("No response received from the AI model.")
        if response_schema is None:
            return text
        return _parse_json_text(text.strip())

    async def _gemini(self, system_instruction, content, response_schema, history, model) -> str:
        model = model or self.gemini_model
        url = f"https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
        headers = {"x-goog-api-key": self.gemini_api_key}
        parts = []
        for part in content:
            if "inline_image" in part:
                mime, data = _inline_image(part)
                parts.append({"inlineData": {"mimeType": mime, "data": data}})
            else:
                parts.append({"text": part["text"]})
        contents = [
            {"role": "user" if turn["role"] == "user" else "model", "parts": [{"text": turn["content"]}]}
            for turn in history or []
        ]
        contents.append({"role": "user", "parts": parts})
        payload = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": contents,
        }
        if response_schema is not None:
            payload["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
                "temperature": 0.2,
            }
        data = await _post(url, headers, payload, timeout=self.timeout)
        try:
            candidate_parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("Gemini response had no candidates") from exc
        return "".join(p.get("text", "") for p in candidate_parts)

    async def _openai(self, system_instruction, content, response_schema, history) -> str:
        url = "https://api.openai.com/v1/chat/completions"
        headers = {"Authorization": f"Bearer {self.openai_api_key}"}
        system = system_instruction
        if response_schema is not None:
            system += ("\n\nReturn ONLY a JSON object matching this schema:\n"
                       + json.dumps(response_schema))
        user_content = []
        for part in content:
            if "inline_image" in part:
                mime, data = _inline_image(part)
                user_content.append({"type": "image_url",
                                     "image_url": {"url": f"data:{mime};base64,{data}"}})
            else:
                user_content.append({"type": "text", "text": part["text"]})
        messages = [{"role": "system", "content": system}]
        messages += [{"role": turn["role"], "content": turn["content"]} for turn in history or []]
        messages.append({"role": "user", "content": user_content})
        payload = {"model": self.openai_model, "messages": messages, "temperature": 0.2}
        if response_schema is not None:
            payload["response_format"] = {"type": "json_object"}
        data = await _post(url, headers, payload, timeout=self.timeout)
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("OpenAI response had no choices") from exc
