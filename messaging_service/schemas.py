"""Pydantic schemas for the messaging service."""

from pydantic import BaseModel, Field, field_validator

from .utils import normalize_phone


class WhatsAppMessage(BaseModel):
    """Outgoing WhatsApp message; `to` is normalised to +91XXXXXXXXXX."""
    to: str
    message: str = Field(..., max_length=4096)

    @field_validator("to")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        phone = normalize_phone(value)
        if phone is None:
            raise ValueError("Invalid phone number, expected a 10 digit Indian mobile number")
        return phone

    @field_validator("message")
    @classmethod
    def validate_message(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value


class WhatsAppSendResponse(BaseModel):
    success: bool = True
    message_id: str = Field(..., serialization_alias="messageId")
    message: str
