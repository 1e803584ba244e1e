import base64
import hashlib
import hmac
from unittest.mock import Mock

import pytest

from linedesk.services.result import Result
from linedesk.services.settings_service import GeminiConfig, GPTConfig, RouterSettings

CHANNEL_SECRET = "test-channel-secret"


@pytest.fixture
def db_session():
    """Mock database session."""
    return Mock()


@pytest.fixture
def router_settings():
    return RouterSettings(
        ai_enabled=True,
        active_ai="gpt",
        gpt=GPTConfig(api_key="sk-test", model="gpt-4.1-mini", temperature=0.7, max_tokens=500),
        gemini=GeminiConfig(api_key="gm-test", model="gemini-2.5-flash"),
        system_prompt="你是一個專業的客服助手。",
        reference_text="營業時間 10:00-18:00",
        line_channel_access_token="line-token",
        line_channel_secret=CHANNEL_SECRET,
        handover_keywords=("真人", "客服", "人"),
        handover_timeout_minutes=30,
        agent_user_ids=("Uagent1", "Uagent2"),
    )


@pytest.fixture
def line_client():
    line = Mock()
    line.reply_message.return_value = Result.success({})
    line.push_message.return_value = Result.success({})
    line.get_profile.return_value = Result.failure("not found", "line_error")
    return line


def sign(body: bytes, secret: str = CHANNEL_SECRET) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def make_text_event(
    text: str = "你好",
    event_id: str = "01HEVENT0001",
    user_id: str = "Uuser1",
    reply_token: str = "reply-token-1",
) -> dict:
    return {
        "type": "message",
        "mode": "active",
        "timestamp": 1702000000000,
        "webhookEventId": event_id,
        "deliveryContext": {"isRedelivery": False},
        "replyToken": reply_token,
        "source": {"type": "user", "userId": user_id},
        "message": {"id": "468789577898262530", "type": "text", "text": text},
    }


@pytest.fixture
def sign_body():
    return sign


@pytest.fixture
def text_event():
    return make_text_event
