from unittest.mock import MagicMock, Mock, patch

from app.services.alert_service import alert_critical, alert_error, build_alert_text, send_alert


def _mock_telegram(mock_client_class, status_code=200):
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_client.post.return_value = mock_response
    return mock_client


class TestSendAlert:
    @patch("app.services.alert_service.ALERT_BOT_TOKEN", None)
    @patch("app.services.alert_service.ALERT_CHAT_ID", None)
    def test_returns_false_when_not_configured(self):
        assert send_alert("ERROR", "Sheet append failed") is False

    @patch("app.services.alert_service.ALERT_BOT_TOKEN", "test-token")
    @patch("app.services.alert_service.ALERT_CHAT_ID", "test-chat")
    @patch("app.services.alert_service.httpx.Client")
    def test_sends_alert_to_telegram(self, mock_client_class):
        mock_client = _mock_telegram(mock_client_class)

        assert send_alert("ERROR", "Sheet append failed") is True

        mock_client.post.assert_called_once()
        call_args = mock_client.post.call_args
        assert call_args[0][0] == "https://api.telegram.org/bottest-token/sendMessage"
        json_data = call_args[1]["json"]
        assert json_data["chat_id"] == "test-chat"
        assert "ERROR" in json_data["text"]
        assert "Sheet append failed" in json_data["text"]

    @patch("app.services.alert_service.ALERT_BOT_TOKEN", "test-token")
    @patch("app.services.alert_service.ALERT_CHAT_ID", "test-chat")
    @patch("app.services.alert_service.httpx.Client")
    def test_returns_false_on_telegram_error(self, mock_client_class):
        _mock_telegram(mock_client_class, status_code=400)
        assert send_alert("ERROR", "Test message") is False

    @patch("app.services.alert_service.ALERT_BOT_TOKEN", "test-token")
    @patch("app.services.alert_service.ALERT_CHAT_ID", "test-chat")
    @patch("app.services.alert_service.httpx.Client")
    def test_returns_false_on_exception(self, mock_client_class):
        mock_client_class.return_value.__enter__.side_effect = Exception("Network error")
        assert send_alert("ERROR", "Test message") is False


class TestBuildAlertText:
    def test_includes_context(self):
        text = build_alert_text("CRITICAL", "WhatsApp send failed", {"to": "923001234567", "status": 401})

        assert "CRITICAL" in text
        assert "WhatsApp send failed" in text
        assert "to: 923001234567" in text
        assert "status: 401" in text

    def test_without_context_has_no_code_block(self):
        assert "```" not in build_alert_text("ERROR", "boom")


class TestShortcuts:
    @patch("app.services.alert_service.send_alert")
    def test_alert_error(self, mock_send):
        mock_send.return_value = True
        alert_error("Error message", {"key": "value"})
        mock_send.assert_called_once_with("ERROR", "Error message", {"key": "value"})

    @patch("app.services.alert_service.send_alert")
    def test_alert_critical(self, mock_send):
        mock_send.return_value = True
        alert_critical("Critical message")
        mock_send.assert_called_once_with("CRITICAL", "Critical message", None)
