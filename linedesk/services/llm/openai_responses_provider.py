from typing import Optional

from linedesk.config import settings as app_settings
from linedesk.logging_config import get_logger
from linedesk.services.llm.base import LLMError, LLMProvider, LLMRequest, LLMResponse
from linedesk.services.llm.openai_provider import post_json

logger = get_logger("llm.openai_responses")


def extract_output_text(data: dict) -> str:
    """Concatenate output_text parts of a Responses API body."""
    if isinstance(data.get("output_text"), str):
        return data["output_text"]

    parts = []
    for item in data.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for content in item.get("content") or []:
            if isinstance(content, dict) and content.get("type") == "output_text":
                parts.append(content.get("text") or "")
    return "".join(parts)


def build_input(request: LLMRequest):
    """Only the new message when chaining; otherwise recent history as input items."""
    if request.previous_response_id or not request.history:
        return request.message

    items = []
    for turn in request.history:
        role = "assistant" if turn.get("role") == "assistant" else "user"
        items.append({"role": role, "content": turn.get("content", "")})
    items.append({"role": "user", "content": request.message})
    return items


class OpenAIResponsesProvider(LLMProvider):
    """OpenAI Responses API. Conversation state lives on the backend, chained by previous_response_id."""

    name = "openai_responses"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: Optional[int] = 2000,
        reasoning_effort: Optional[str] = "none",
        verbosity: Optional[str] = "medium",
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.reasoning_effort = reasoning_effort
        self.verbosity = verbosity
        self.base_url = (base_url or app_settings.openai_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else app_settings.llm_timeout_seconds

    def build_payload(self, request: LLMRequest) -> dict:
        payload = {
            "model": self.model,
            "instructions": request.instructions,
            "input": build_input(request),
        }
        if self.reasoning_effort:
            payload["reasoning"] = {"effort": self.reasoning_effort}
        if self.verbosity:
            payload["text"] = {"verbosity": self.verbosity}
        if self.max_tokens:
            payload["max_output_tokens"] = self.max_tokens
        if request.previous_response_id:
            payload["previous_response_id"] = request.previous_response_id
        return payload

    def generate(self, request: LLMRequest) -> LLMResponse:
        payload = self.build_payload(request)
        logger.debug(
            f"OpenAI responses request: model={self.model}, "
            f"continuation={'yes' if request.previous_response_id else 'no'}"
        )

        data = post_json(
            f"{self.base_url}/responses",
            self.api_key,
            payload,
            self.timeout_seconds,
            "OpenAI",
        )

        if data.get("status") == "failed":
            raise LLMError("OpenAI API error: response failed")

        content = extract_output_text(data)
        return LLMResponse(
            content=content,
            model=data.get("model", self.model),
            response_id=data.get("id"),
            usage=data.get("usage"),
        )
