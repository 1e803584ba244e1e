import base64
from typing import Optional

import httpx

from linedesk.config import settings as app_settings
from linedesk.logging_config import get_logger
from linedesk.services.llm.base import LLMError, LLMProvider, LLMRequest, LLMResponse, extract_error_message

logger = get_logger("llm.gemini")


def supports_thinking_level(model: str) -> bool:
    return (model or "").strip().lower().startswith("gemini-3")


class GeminiProvider(LLMProvider):
    """Gemini generateContent: history is resent on every call."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: Optional[float] = 1.0,
        max_tokens: Optional[int] = 2000,
        thinking_level: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.thinking_level = thinking_level
        self.base_url = (base_url or app_settings.gemini_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else app_settings.llm_timeout_seconds

    def build_payload(self, request: LLMRequest) -> dict:
        contents = []
        for turn in request.history:
            role = "model" if turn.get("role") == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": turn.get("content", "")}]})

        parts = [
            {"inlineData": {"data": base64.b64encode(doc.data).decode("ascii"), "mimeType": doc.mime_type}}
            for doc in request.documents
        ]
        parts.append({"text": request.message})
        contents.append({"role": "user", "parts": parts})

        generation_config: dict = {}
        if self.temperature is not None:
            generation_config["temperature"] = self.temperature
        if self.max_tokens:
            generation_config["maxOutputTokens"] = self.max_tokens
        if self.thinking_level and supports_thinking_level(self.model):
            generation_config["thinkingConfig"] = {"thinkingLevel": self.thinking_level}

        payload = {
            "contents": contents,
            "systemInstruction": {"parts": [{"text": request.instructions}]},
        }
        if generation_config:
            payload["generationConfig"] = generation_config
        return payload

    def generate(self, request: LLMRequest) -> LLMResponse:
        payload = self.build_payload(request)
        url = f"{self.base_url}/models/{self.model}:generateContent"
        logger.debug(f"Gemini request: model={self.model}, contents_count={len(payload['contents'])}")

        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(
                    url,
                    headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.TransportError as e:
            logger.error(f"Gemini transport error: {e}")
            raise LLMError(f"Gemini connection error: {e}", transport=True) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code != 200:
            logger.error(f"Gemini error: {response.text}")
            message = extract_error_message(data, response.text)
            raise LLMError(f"Gemini API error: {response.status_code} - {message}", status_code=response.status_code)

        if not isinstance(data, dict):
            raise LLMError("Gemini returned an unreadable body")

        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            reason = f"blocked ({block_reason})" if block_reason else "no candidates"
            raise LLMError(f"Gemini API error: {reason}")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        content = "".join(part.get("text", "") for part in parts if isinstance(part, dict) and not part.get("thought"))

        return LLMResponse(
            content=content,
            model=data.get("modelVersion", self.model),
            response_id=data.get("responseId"),
            usage=data.get("usageMetadata"),
        )
