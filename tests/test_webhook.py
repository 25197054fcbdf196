from unittest.mock import patch

import pytest

from app.models.conversation import StepId
from app.schemas.webhook import WhatsAppMessage, WhatsAppWebhookPayload
from factories import SENDER, whatsapp_payload


class TestWebhookSchemas:
    def test_from_alias(self):
        msg = WhatsAppMessage(**{"from": SENDER, "id": "wamid.1", "type": "text", "text": {"body": "hi"}})
        assert msg.from_number == SENDER
        assert msg.text.body == "hi"

    def test_populate_by_name(self):
        assert WhatsAppMessage(from_number=SENDER).from_number == SENDER

    def test_payload_ignores_unknown_fields(self):
        payload = whatsapp_payload("hi")
        payload["entry"][0]["changes"][0]["value"]["unexpected"] = {"x": 1}
        parsed = WhatsAppWebhookPayload.model_validate(payload)
        assert parsed.entry[0].changes[0].value.messages[0].from_number == SENDER


@patch("app.routers.webhook.VERIFY_TOKEN", "secret")
class TestVerification:
    @pytest.mark.parametrize("path", ["/webhook", "/"])
    def test_matching_token_echoes_challenge(self, client, path):
        response = client.get(
            path, params={"hub.mode": "subscribe", "hub.verify_token": "secret", "hub.challenge": "12345"}
        )
        assert response.status_code == 200
        assert response.text == "12345"

    def test_wrong_token_is_rejected(self, client):
        response = client.get(
            "/webhook", params={"hub.mode": "subscribe", "hub.verify_token": "nope", "hub.challenge": "12345"}
        )
        assert response.status_code == 403
        assert response.text == ""

    def test_wrong_mode_is_rejected(self, client):
        response = client.get(
            "/webhook", params={"hub.mode": "unsubscribe", "hub.verify_token": "secret", "hub.challenge": "1"}
        )
        assert response.status_code == 403

    def test_missing_params_are_rejected(self, client):
        assert client.get("/webhook").status_code == 403


class TestVerificationUnconfigured:
    @patch("app.routers.webhook.VERIFY_TOKEN", "")
    def test_empty_token_never_verifies(self, client):
        response = client.get("/webhook", params={"hub.mode": "subscribe", "hub.verify_token": "", "hub.challenge": "1"})
        assert response.status_code == 403


@patch("app.routers.webhook.deliver_turn")
class TestReceive:
    def test_message_is_processed_and_delivered(self, mock_deliver, client, store):
        response = client.post("/webhook", json=whatsapp_payload("hi"))

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["processed"] == 1
        mock_deliver.assert_called_once()
        turn = mock_deliver.call_args[0][0]
        assert turn.replies[0].recipient == SENDER
        assert SENDER in store

    def test_root_alias(self, mock_deliver, client):
        response = client.post("/", json=whatsapp_payload("hi"))
        assert response.json()["processed"] == 1
        mock_deliver.assert_called_once()

    def test_status_callback_is_acknowledged(self, mock_deliver, client, store):
        payload = whatsapp_payload()
        value = payload["entry"][0]["changes"][0]["value"]
        del value["messages"]
        value["statuses"] = [{"id": "wamid.1", "status": "read", "recipient_id": SENDER}]

        response = client.post("/webhook", json=payload)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "No user message", "processed": 0}
        mock_deliver.assert_not_called()
        assert len(store) == 0

    def test_malformed_body_is_acknowledged(self, mock_deliver, client):
        response = client.post("/webhook", content=b"not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 200
        assert response.json()["success"] is False
        mock_deliver.assert_not_called()

    def test_duplicate_delivery_is_skipped(self, mock_deliver, client, store):
        client.post("/webhook", json=whatsapp_payload("1", message_id="wamid.A"))
        response = client.post("/webhook", json=whatsapp_payload("1", message_id="wamid.A"))

        assert response.json()["processed"] == 0
        assert mock_deliver.call_count == 1
        assert store.get(SENDER).step == StepId.AWAITING_NAME

    def test_processing_error_is_contained(self, mock_deliver, client):
        with patch("app.routers.webhook.process_message", side_effect=RuntimeError("boom")):
            response = client.post("/webhook", json=whatsapp_payload("hi"))

        assert response.status_code == 200
        assert response.json()["processed"] == 0
        mock_deliver.assert_not_called()


class TestConversationOverWebhook:
    @patch("app.services.intake_service.sheets_service")
    @patch("app.services.intake_service.whatsapp_service")
    def test_stock_order(self, mock_whatsapp, mock_sheets, client, store):
        mock_whatsapp.send_text_message.return_value = True
        mock_sheets.append_record.return_value = True

        for i, body in enumerate(["hi", "4", "Ahmed", "1", "5 tubs of Vanilla"]):
            response = client.post("/webhook", json=whatsapp_payload(body, message_id=f"wamid.{i}"))
            assert response.json()["processed"] == 1

        assert mock_whatsapp.send_text_message.call_count == 5
        mock_sheets.append_record.assert_called_once()
        record = mock_sheets.append_record.call_args[0][0]
        assert record.category == "Stock Order"
        assert dict(record.fields) == {"product_category": "Ice Cream"}
        assert record.detail == "5 tubs of Vanilla"
        assert record.display_name == "Ali Khan"
        assert SENDER not in store

    @patch("app.services.intake_service.sheets_service")
    @patch("app.services.intake_service.whatsapp_service")
    def test_media_message_gets_text_only_reply(self, mock_whatsapp, mock_sheets, client):
        mock_whatsapp.send_text_message.return_value = True

        client.post("/webhook", json=whatsapp_payload(msg_type="image"))

        reply = mock_whatsapp.send_text_message.call_args[0][1]
        assert reply.startswith("Sorry, we can only read text messages.")
        mock_sheets.append_record.assert_not_called()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert isinstance(response.json()["active_conversations"], int)
