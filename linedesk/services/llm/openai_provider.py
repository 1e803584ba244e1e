from typing import List, Optional

import httpx

from linedesk.config import settings as app_settings
from linedesk.logging_config import get_logger
from linedesk.services.llm.base import (
    LLMError,
    LLMProvider,
    LLMRequest,
    LLMResponse,
    extract_error_message,
    extract_error_param,
)

logger = get_logger("llm.openai")

REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4")


def is_reasoning_model(model: str) -> bool:
    """GPT-5 and o-series models reject temperature and use max_completion_tokens."""
    return (model or "").strip().lower().startswith(REASONING_MODEL_PREFIXES)


def supports_responses_continuation(model: str) -> bool:
    return (model or "").strip().lower().startswith("gpt-5")


def build_generation_params(model: str, temperature: Optional[float], max_tokens: Optional[int]) -> dict:
    """Sampling/length parameters in the shape the model family accepts."""
    params: dict = {}
    if is_reasoning_model(model):
        if max_tokens:
            params["max_completion_tokens"] = max_tokens
        return params

    if temperature is not None:
        params["temperature"] = temperature
    if max_tokens:
        params["max_tokens"] = max_tokens
    return params


def build_chat_messages(request: LLMRequest) -> List[dict]:
    messages = [{"role": "system", "content": request.instructions}]
    for turn in request.history:
        role = "assistant" if turn.get("role") == "assistant" else "user"
        messages.append({"role": role, "content": turn.get("content", "")})
    messages.append({"role": "user", "content": request.message})
    return messages


def post_json(url: str, api_key: str, payload: dict, timeout: float, provider: str) -> dict:
    """POST and return the decoded body; every failure becomes LLMError."""
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(
                url,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
    except httpx.TransportError as e:
        logger.error(f"{provider} transport error: {e}")
        raise LLMError(f"{provider} connection error: {e}", transport=True) from e

    logger.debug(f"{provider} response status: {response.status_code}")

    try:
        data = response.json()
    except ValueError:
        data = None

    if response.status_code != 200:
        logger.error(f"{provider} error: {response.text}")
        message = extract_error_message(data, response.text)
        raise LLMError(
            f"{provider} API error: {response.status_code} - {message}",
            status_code=response.status_code,
            param=extract_error_param(data),
        )

    if not isinstance(data, dict):
        raise LLMError(f"{provider} returned an unreadable body")

    if data.get("error"):
        message = extract_error_message(data, "unknown error")
        raise LLMError(f"{provider} API error: {message}")

    return data


class OpenAIChatProvider(LLMProvider):
    """OpenAI chat completions: full history on every call, no backend state."""

    name = "openai_chat"

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: Optional[float] = 0.7,
        max_tokens: Optional[int] = 2000,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.base_url = (base_url or app_settings.openai_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else app_settings.llm_timeout_seconds

    def build_payload(self, request: LLMRequest) -> dict:
        payload = {
            "model": self.model,
            "messages": build_chat_messages(request),
        }
        payload.update(build_generation_params(self.model, self.temperature, self.max_tokens))
        return payload

    def generate(self, request: LLMRequest) -> LLMResponse:
        payload = self.build_payload(request)
        logger.debug(f"OpenAI chat request: model={self.model}, messages_count={len(payload['messages'])}")

        data = post_json(
            f"{self.base_url}/chat/completions",
            self.api_key,
            payload,
            self.timeout_seconds,
            "OpenAI",
        )

        content = ""
        if data.get("choices"):
            message = data["choices"][0].get("message") or {}
            content = message.get("content") or ""
        logger.debug(f"OpenAI content: {content[:100] if content else 'EMPTY'}")

        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            response_id=data.get("id"),
            usage=data.get("usage"),
        )
