from unittest.mock import Mock, patch

import httpx

from linedesk.services.line_service import (
    LINE_TEXT_LIMIT,
    LineService,
    compute_signature,
    verify_signature,
)


def mock_response(status_code=200, body=None):
    response = Mock(status_code=status_code, text=str(body))
    response.json.return_value = body if body is not None else {}
    return response


class TestSignature:
    def test_matches_line_algorithm(self, sign_body):
        body = b'{"events":[]}'
        assert compute_signature("secret", body) == sign_body(body, "secret")

    def test_valid_signature(self, sign_body):
        body = b'{"events":[]}'
        assert verify_signature("secret", body, sign_body(body, "secret"))

    def test_tampered_body(self, sign_body):
        assert not verify_signature("secret", b'{"events":[1]}', sign_body(b'{"events":[]}', "secret"))

    def test_missing_header_or_secret(self, sign_body):
        body = b"{}"
        assert not verify_signature("secret", body, None)
        assert not verify_signature(None, body, sign_body(body, "secret"))

    def test_non_ascii_signature_is_rejected(self):
        assert not verify_signature("secret", b"{}", "sigé")
        assert not verify_signature("secret", b"{}", "簽名")


class TestLineService:
    def test_reply_message(self):
        line = LineService("token", base_url="https://line.test/v2/bot")

        with patch("linedesk.services.line_service.httpx.Client") as mock_client_class:
            client = mock_client_class.return_value.__enter__.return_value
            client.post.return_value = mock_response()

            result = line.reply_message("reply-1", "您好")

        assert result.ok
        call = client.post.call_args
        assert call[0][0] == "https://line.test/v2/bot/message/reply"
        assert call[1]["json"] == {"replyToken": "reply-1", "messages": [{"type": "text", "text": "您好"}]}
        assert call[1]["headers"]["Authorization"] == "Bearer token"

    def test_push_message_truncates_long_text(self):
        line = LineService("token", base_url="https://line.test/v2/bot")

        with patch("linedesk.services.line_service.httpx.Client") as mock_client_class:
            client = mock_client_class.return_value.__enter__.return_value
            client.post.return_value = mock_response()

            line.push_message("Uagent1", "a" * (LINE_TEXT_LIMIT + 10))

        sent = client.post.call_args[1]["json"]
        assert sent["to"] == "Uagent1"
        assert len(sent["messages"][0]["text"]) == LINE_TEXT_LIMIT

    def test_error_status_is_failure(self):
        line = LineService("token")

        with patch("linedesk.services.line_service.httpx.Client") as mock_client_class:
            client = mock_client_class.return_value.__enter__.return_value
            client.post.return_value = mock_response(400, {"message": "Invalid reply token"})

            result = line.reply_message("expired", "hi")

        assert not result.ok
        assert result.error_code == "line_error"

    def test_transport_error_is_failure(self):
        line = LineService("token")

        with patch("linedesk.services.line_service.httpx.Client") as mock_client_class:
            client = mock_client_class.return_value.__enter__.return_value
            client.post.side_effect = httpx.ConnectError("refused")

            result = line.push_message("U1", "hi")

        assert not result.ok
        assert result.error_code == "line_transport"

    def test_get_profile(self):
        line = LineService("token", base_url="https://line.test/v2/bot")

        with patch("linedesk.services.line_service.httpx.Client") as mock_client_class:
            client = mock_client_class.return_value.__enter__.return_value
            client.get.return_value = mock_response(body={"userId": "U1", "displayName": "小明"})

            result = line.get_profile("U1")

        assert result.ok
        assert result.value.display_name == "小明"
        assert client.get.call_args[0][0] == "https://line.test/v2/bot/profile/U1"
