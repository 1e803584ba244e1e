from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import httpx

from linedesk.config import settings as app_settings
from linedesk.logging_config import get_logger
from linedesk.services.llm import InlineDocument
from linedesk.services.settings_service import RouterSettings

logger = get_logger("reference_service")

PDF_MIME_TYPE = "application/pdf"
TEXT_MIME_TYPE = "text/plain"
# non-text bodies that a backend can read when attached inline
INLINE_MIME_TYPES = (PDF_MIME_TYPE,)
TEXTUAL_MIME_TYPES = ("application/json", "application/xml", "application/xhtml+xml")


@dataclass(frozen=True)
class ReferenceDocument:
    mime_type: str
    text: str = ""
    data: bytes = b""

    def as_inline(self) -> Optional[InlineDocument]:
        """Attachment form for backends that read files; None for text documents."""
        if self.mime_type not in INLINE_MIME_TYPES or not self.data:
            return None
        return InlineDocument(data=self.data, mime_type=self.mime_type)


def detect_mime_type(url: str, content_type: Optional[str]) -> str:
    """A .pdf URL is a PDF whatever the server says; otherwise trust Content-Type."""
    if urlparse(url).path.lower().endswith(".pdf"):
        return PDF_MIME_TYPE
    mime_type = (content_type or "").split(";")[0].strip().lower()
    return mime_type or TEXT_MIME_TYPE


def is_textual(mime_type: str) -> bool:
    return mime_type.startswith("text/") or mime_type in TEXTUAL_MIME_TYPES


def fetch_reference(
    url: Optional[str],
    timeout_seconds: Optional[float] = None,
    max_chars: Optional[int] = None,
    max_bytes: Optional[int] = None,
) -> Optional[ReferenceDocument]:
    """Download the reference document. Any failure yields None.

    Text bodies are decoded and truncated; binary bodies are kept as bytes and
    never decoded into text.
    """
    if not url:
        return None

    timeout = timeout_seconds if timeout_seconds is not None else app_settings.reference_fetch_timeout_seconds
    char_limit = max_chars if max_chars is not None else app_settings.reference_max_chars
    byte_limit = max_bytes if max_bytes is not None else app_settings.reference_max_bytes

    try:
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        logger.warning(f"Reference document fetch error: {e}", extra={"context": {"url": url}})
        return None

    if response.status_code != 200:
        logger.warning(
            f"Reference document fetch returned {response.status_code}",
            extra={"context": {"url": url, "status": response.status_code}},
        )
        return None

    mime_type = detect_mime_type(url, response.headers.get("content-type"))

    if not is_textual(mime_type):
        data = response.content
        if byte_limit and len(data) > byte_limit:
            logger.warning(
                f"Reference document too large to attach ({len(data)} bytes)",
                extra={"context": {"url": url, "mime_type": mime_type}},
            )
            return None
        if mime_type not in INLINE_MIME_TYPES:
            logger.warning(
                f"Reference document type {mime_type} is not supported",
                extra={"context": {"url": url, "mime_type": mime_type}},
            )
        return ReferenceDocument(mime_type=mime_type, data=data)

    try:
        text = response.text
    except (UnicodeDecodeError, LookupError) as e:
        logger.warning(f"Reference document decode error: {e}", extra={"context": {"url": url}})
        return None

    if char_limit and len(text) > char_limit:
        logger.info(f"Reference document truncated from {len(text)} to {char_limit} chars")
        text = text[:char_limit]
    return ReferenceDocument(mime_type=mime_type, text=text)


def fetch_reference_document(url: Optional[str]) -> str:
    """Reference document as instruction text; empty for binary or failed fetches."""
    document = fetch_reference(url)
    return document.text if document else ""


def build_instructions(settings: RouterSettings, document: Optional[str] = None) -> str:
    """System prompt + reference text + document text, as one instruction block."""
    if document is None:
        document = fetch_reference_document(settings.reference_file_url)

    return f"{settings.system_prompt}\n\n參考文字：\n{settings.reference_text}\n\n檔案內容參考：\n{document}"
