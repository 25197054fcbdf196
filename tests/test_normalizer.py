import copy

from app.models.message import MessageKind
from app.services.normalizer import extract_messages, normalize_payload
from factories import SENDER, whatsapp_payload


class TestTextMessages:
    def test_text_message(self):
        message = normalize_payload(whatsapp_payload("Hello"))

        assert message.sender_id == SENDER
        assert message.display_name == "Ali Khan"
        assert message.kind == MessageKind.TEXT
        assert message.body == "Hello"
        assert message.message_id == "wamid.1"
        assert message.timestamp == 1714557600

    def test_missing_contact_name(self):
        payload = whatsapp_payload("1")
        payload["entry"][0]["changes"][0]["value"]["contacts"] = [{"wa_id": SENDER}]
        assert normalize_payload(payload).display_name is None

    def test_no_contacts_block(self):
        payload = whatsapp_payload("1")
        del payload["entry"][0]["changes"][0]["value"]["contacts"]
        message = normalize_payload(payload)
        assert message.body == "1"
        assert message.display_name is None

    def test_contact_matched_by_wa_id(self):
        payload = whatsapp_payload("1")
        payload["entry"][0]["changes"][0]["value"]["contacts"] = [
            {"wa_id": "920000000000", "profile": {"name": "Someone Else"}},
            {"wa_id": SENDER, "profile": {"name": "Ali Khan"}},
        ]
        assert normalize_payload(payload).display_name == "Ali Khan"

    def test_text_without_body(self):
        payload = whatsapp_payload("x")
        del payload["entry"][0]["changes"][0]["value"]["messages"][0]["text"]
        message = normalize_payload(payload)
        assert message.kind == MessageKind.TEXT
        assert message.body == ""


class TestOtherKinds:
    def test_image_is_other(self):
        message = normalize_payload(whatsapp_payload(msg_type="image"))
        assert message.kind == MessageKind.OTHER
        assert message.body == ""
        assert message.sender_id == SENDER

    def test_button_reply_is_text(self):
        payload = whatsapp_payload(msg_type="interactive")
        payload["entry"][0]["changes"][0]["value"]["messages"][0]["interactive"] = {
            "type": "button_reply",
            "button_reply": {"id": "opt-1", "title": "1"},
        }
        message = normalize_payload(payload)
        assert message.kind == MessageKind.TEXT
        assert message.body == "1"

    def test_template_button_is_text(self):
        payload = whatsapp_payload(msg_type="button")
        payload["entry"][0]["changes"][0]["value"]["messages"][0]["button"] = {"text": "reset", "payload": "RESET"}
        assert normalize_payload(payload).body == "reset"


class TestNoMessage:
    def test_status_callback(self):
        payload = whatsapp_payload()
        value = payload["entry"][0]["changes"][0]["value"]
        del value["messages"]
        value["statuses"] = [{"id": "wamid.1", "status": "delivered", "recipient_id": SENDER}]

        assert normalize_payload(payload) is None
        assert extract_messages(payload) == []

    def test_partial_shapes(self):
        for payload in (
            {},
            {"object": "whatsapp_business_account"},
            {"entry": []},
            {"entry": [{}]},
            {"entry": [{"changes": [{}]}]},
            {"entry": [{"changes": [{"value": {}}]}]},
            {"entry": [{"changes": [{"value": {"messages": []}}]}]},
            {"entry": None},
        ):
            assert normalize_payload(payload) is None

    def test_wrong_types(self):
        assert normalize_payload(None) is None
        assert normalize_payload([1, 2]) is None
        assert normalize_payload({"entry": "not-a-list"}) is None
        assert normalize_payload({"entry": [{"changes": [{"value": {"messages": [5]}}]}]}) is None

    def test_message_without_sender(self):
        payload = whatsapp_payload("hi")
        del payload["entry"][0]["changes"][0]["value"]["messages"][0]["from"]
        assert normalize_payload(payload) is None


class TestBatches:
    def test_all_messages_extracted_in_order(self):
        payload = whatsapp_payload("first")
        second = copy.deepcopy(payload["entry"][0]["changes"][0]["value"]["messages"][0])
        second["id"] = "wamid.2"
        second["text"] = {"body": "second"}
        payload["entry"][0]["changes"][0]["value"]["messages"].append(second)

        messages = extract_messages(payload)

        assert [m.body for m in messages] == ["first", "second"]
        assert normalize_payload(payload).body == "first"
