from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class InlineDocument:
    """Binary attachment for backends that accept inline files (e.g. a PDF)."""

    data: bytes
    mime_type: str


@dataclass
class LLMRequest:
    instructions: str
    message: str
    history: List[dict] = field(default_factory=list)
    previous_response_id: Optional[str] = None
    documents: List[InlineDocument] = field(default_factory=list)


@dataclass
class LLMResponse:
    content: str
    model: str
    response_id: Optional[str] = None
    usage: Optional[dict] = None


class LLMError(Exception):
    """Provider failure.

    transport=True marks network-level failures (no usable answer from the backend);
    False marks errors the backend itself reported. param is the request field the
    backend blamed, when it says so.
    """

    def __init__(
        self,
        message: str,
        transport: bool = False,
        status_code: Optional[int] = None,
        param: Optional[str] = None,
    ):
        self.message = message
        self.transport = transport
        self.status_code = status_code
        self.param = param
        super().__init__(message)


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name: str = "llm"

    @abstractmethod
    def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate response from LLM. Raises LLMError."""
        pass


def extract_error_message(data: object, fallback: str) -> str:
    """Pull a readable message out of a provider error body."""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return fallback


def extract_error_param(data: object) -> Optional[str]:
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        param = data["error"].get("param")
        return str(param) if param else None
    return None
