# tests/test_messaging.py
import pytest
from fastapi.testclient import TestClient

from messaging_service.main import app as messaging_app
from messaging_service.utils import normalize_phone

client = TestClient(messaging_app)


@pytest.mark.parametrize("raw,expected", [
    ("9876543210", "+919876543210"),
    ("+91 98765-43210", "+919876543210"),
    ("919876543210", "+919876543210"),
    ("09876543210", "+919876543210"),
    ("(987) 654-3210", "+919876543210"),
])
def test_normalize_phone_accepts_indian_mobiles(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["12345", "5876543210", "98765432101", "+1 415 555 0100", ""])
def test_normalize_phone_rejects_other_numbers(raw):
    assert normalize_phone(raw) is None


def test_send_whatsapp_logs_and_returns_simulated_id():
    r = client.post("/whatsapp/send", json={"to": "9876543210", "message": "Your booking is confirmed"})

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["messageId"].startswith("simulated_")
    assert body["messageId"][len("simulated_"):].isdigit()
    assert body["message"] == "WhatsApp message logged (provider integration pending)"
    assert "message_id" not in body


def test_send_whatsapp_rejects_invalid_phone():
    r = client.post("/whatsapp/send", json={"to": "12345", "message": "Hello"})

    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "to: Invalid phone number, expected a 10 digit Indian mobile number"


def test_send_whatsapp_rejects_blank_message():
    r = client.post("/whatsapp/send", json={"to": "+91 98765-43210", "message": "   "})

    assert r.status_code == 400
    assert r.json()["error"] == "message: Message cannot be empty"


def test_send_whatsapp_missing_fields():
    r = client.post("/whatsapp/send", json={"message": "Hello"})

    assert r.status_code == 400
    assert r.json()["error"].startswith("to")
