from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from linedesk.logging_config import get_logger
from linedesk.services.llm import (
    GeminiProvider,
    LLMError,
    LLMProvider,
    LLMRequest,
    OpenAIChatProvider,
    OpenAIResponsesProvider,
)
from linedesk.services.llm.openai_provider import supports_responses_continuation
from linedesk.services.reference_service import ReferenceDocument, build_instructions, fetch_reference
from linedesk.services.result import Result
from linedesk.services.settings_service import RouterSettings

logger = get_logger("ai_service")

BACKEND_GPT = "gpt"
BACKEND_GEMINI = "gemini"

MSG_AI_ERROR = "抱歉，AI 回覆時發生錯誤：{reason}"


@dataclass
class AIReply:
    text: str
    backend: str
    model: str
    response_id: Optional[str] = None
    used_fallback: bool = False


def format_ai_error_reply(error: Optional[str]) -> str:
    return MSG_AI_ERROR.format(reason=error or "未知錯誤")


def select_providers(settings: RouterSettings) -> Tuple[LLMProvider, Optional[LLMProvider]]:
    """Return (primary, transport-fallback) providers for the configured backend.

    Raises ValueError when the backend is unknown or has no credentials.
    """
    if settings.active_ai == BACKEND_GPT:
        gpt = settings.gpt
        if not gpt.api_key:
            raise ValueError("GPT API key is not configured")
        chat = OpenAIChatProvider(
            api_key=gpt.api_key,
            model=gpt.model,
            temperature=gpt.temperature,
            max_tokens=gpt.max_tokens,
        )
        if supports_responses_continuation(gpt.model):
            responses = OpenAIResponsesProvider(
                api_key=gpt.api_key,
                model=gpt.model,
                max_tokens=gpt.max_tokens,
                reasoning_effort=gpt.reasoning_effort,
                verbosity=gpt.verbosity,
            )
            return responses, chat
        return chat, None

    if settings.active_ai == BACKEND_GEMINI:
        gemini = settings.gemini
        if not gemini.api_key:
            raise ValueError("Gemini API key is not configured")
        return (
            GeminiProvider(
                api_key=gemini.api_key,
                model=gemini.model,
                temperature=gemini.temperature,
                max_tokens=gemini.max_tokens,
                thinking_level=gemini.thinking_level,
            ),
            None,
        )

    raise ValueError(f"Unsupported AI backend: {settings.active_ai}")


def is_stale_continuation(error: LLMError) -> bool:
    """The backend rejected previous_response_id (expired or unknown response)."""
    if error.transport or error.status_code is None or not 400 <= error.status_code < 500:
        return False
    if error.param == "previous_response_id":
        return True
    message = error.message.lower()
    return "previous_response_id" in message or "previous response" in message


def _generate(primary: LLMProvider, fallback: Optional[LLMProvider], request: LLMRequest, backend: str):
    """Call primary; on a transport failure switch to fallback. Returns (provider, response, used_fallback)."""
    try:
        return primary, primary.generate(request), False
    except LLMError as e:
        if not (e.transport and fallback is not None):
            raise
        logger.warning(
            f"{primary.name} unreachable, falling back to {fallback.name}: {e.message}",
            extra={"context": {"backend": backend, "error": e.message}},
        )
        return fallback, fallback.generate(request), True


def respond(
    settings: RouterSettings,
    history: List[dict],
    message: str,
    previous_response_id: Optional[str] = None,
    instructions: Optional[str] = None,
    reference: Optional[ReferenceDocument] = None,
) -> Result[AIReply]:
    """Generate the AI reply for one message.

    Returns Result with AIReply, or a failure whose error is a readable reason.
    """
    try:
        primary, fallback = select_providers(settings)
    except ValueError as e:
        logger.error(f"AI backend unavailable: {e}")
        return Result.failure(str(e), "ai_config")

    if instructions is None:
        if reference is None:
            reference = fetch_reference(settings.reference_file_url)
        instructions = build_instructions(settings, document=reference.text if reference else "")

    documents = []
    inline = reference.as_inline() if reference else None
    if inline is not None:
        if isinstance(primary, GeminiProvider):
            documents.append(inline)
        else:
            logger.info(
                f"Reference {inline.mime_type} is not attached for {primary.name}",
                extra={"context": {"backend": settings.active_ai}},
            )

    request = LLMRequest(
        instructions=instructions,
        message=message,
        history=list(history),
        previous_response_id=previous_response_id,
        documents=documents,
    )

    provider = primary
    used_fallback = False
    try:
        try:
            provider, response, used_fallback = _generate(primary, fallback, request, settings.active_ai)
        except LLMError as e:
            if not (request.previous_response_id and is_stale_continuation(e)):
                raise
            logger.warning(
                f"Continuation {request.previous_response_id} rejected, retrying without it: {e.message}",
                extra={"context": {"backend": settings.active_ai, "status": e.status_code}},
            )
            request = replace(request, previous_response_id=None)
            provider, response, used_fallback = _generate(primary, fallback, request, settings.active_ai)
    except LLMError as e:
        logger.error(
            f"AI call failed: {e.message}",
            extra={"context": {"backend": settings.active_ai, "provider": provider.name, "status": e.status_code}},
        )
        return Result.failure(e.message, "ai_error")

    text = (response.content or "").strip()
    if not text:
        logger.error(f"{provider.name} returned an empty answer")
        return Result.failure("AI returned an empty response", "empty_response")

    return Result.success(
        AIReply(
            text=text,
            backend=settings.active_ai,
            model=response.model,
            response_id=response.response_id if isinstance(provider, OpenAIResponsesProvider) else None,
            used_fallback=used_fallback,
        )
    )
