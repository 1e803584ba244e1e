import base64
import hashlib
import hmac
from typing import Optional

import httpx

from linedesk.config import settings as app_settings
from linedesk.logging_config import get_logger
from linedesk.schemas.line import LineProfile
from linedesk.services.result import Result

logger = get_logger("line_service")

LINE_TEXT_LIMIT = 5000


def compute_signature(channel_secret: str, body: bytes) -> str:
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(channel_secret: Optional[str], body: bytes, signature: Optional[str]) -> bool:
    """Check X-Line-Signature against the raw request body."""
    if not channel_secret or not signature:
        return False
    expected = compute_signature(channel_secret, body).encode("ascii")
    # header values arrive latin-1 decoded; compare raw bytes
    return hmac.compare_digest(expected, signature.encode("latin-1", "replace"))


def _text_message(text: str) -> dict:
    if len(text) > LINE_TEXT_LIMIT:
        text = text[: LINE_TEXT_LIMIT - 1] + "…"
    return {"type": "text", "text": text}


class LineService:
    """Service for sending messages through the LINE Messaging API."""

    def __init__(self, channel_access_token: str, base_url: Optional[str] = None):
        self.channel_access_token = channel_access_token
        self.base_url = (base_url or app_settings.line_api_base_url).rstrip("/")

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.channel_access_token}",
            "Content-Type": "application/json",
        }

    def _make_request(self, method: str, path: str, data: Optional[dict] = None) -> Result[dict]:
        """Make request to LINE API."""
        url = f"{self.base_url}/{path}"
        try:
            with httpx.Client(timeout=app_settings.line_timeout_seconds) as client:
                if method == "GET":
                    response = client.get(url, headers=self._headers())
                else:
                    response = client.post(url, headers=self._headers(), json=data or {})
        except httpx.HTTPError as e:
            logger.error(f"LINE API error: {e}", extra={"context": {"path": path}})
            return Result.failure(str(e), "line_transport")

        if response.status_code != 200:
            logger.error(
                f"LINE API {path} failed: {response.status_code} - {response.text}",
                extra={"context": {"path": path, "status": response.status_code}},
            )
            return Result.failure(f"LINE API error: {response.status_code}", "line_error")

        try:
            body = response.json()
        except ValueError:
            body = {}
        return Result.success(body if isinstance(body, dict) else {})

    def reply_message(self, reply_token: str, text: str) -> Result[dict]:
        """Reply to an inbound event with its one-time reply token."""
        data = {"replyToken": reply_token, "messages": [_text_message(text)]}
        return self._make_request("POST", "message/reply", data)

    def push_message(self, to: str, text: str) -> Result[dict]:
        """Push a message to a user id."""
        data = {"to": to, "messages": [_text_message(text)]}
        return self._make_request("POST", "message/push", data)

    def get_profile(self, user_id: str) -> Result[LineProfile]:
        result = self._make_request("GET", f"profile/{user_id}")
        if not result.ok:
            return Result.failure(result.error, result.error_code)
        try:
            return Result.success(LineProfile(**result.value))
        except ValueError as e:
            return Result.failure(f"Invalid profile payload: {e}", "line_error")
