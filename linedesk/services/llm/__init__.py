from linedesk.services.llm.base import InlineDocument, LLMError, LLMProvider, LLMRequest, LLMResponse
from linedesk.services.llm.gemini_provider import GeminiProvider
from linedesk.services.llm.openai_provider import OpenAIChatProvider
from linedesk.services.llm.openai_responses_provider import OpenAIResponsesProvider

__all__ = [
    "GeminiProvider",
    "InlineDocument",
    "LLMError",
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "OpenAIChatProvider",
    "OpenAIResponsesProvider",
]
