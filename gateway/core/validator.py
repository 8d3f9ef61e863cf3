"""
Per-channel request validation.

Order of checks for every channel:
1. Required fields, in a fixed order; the first missing one is reported
2. Destination format (email address, E.164-like phone, numeric chat id)
3. Length limits on subject/body/message

A payload that passes comes back as a frozen dataclass; anything else
raises a ValidationError subclass and nothing is dispatched.
"""

import re
from collections.abc import Mapping
from typing import Any

import structlog

from gateway.core.errors import InvalidChannel, InvalidFormat, InvalidLength, MissingField
from gateway.core.models import (
    Channel,
    EmailPayload,
    MessagePayload,
    SmsPayload,
    TelegramPayload,
    WhatsAppPayload,
)

logger = structlog.get_logger()

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# [0-9] rather than \d, which also matches non-ASCII digits
PHONE_RE = re.compile(r"^\+?[1-9][0-9]{1,14}$")
CHAT_ID_RE = re.compile(r"^-?[0-9]+$")  # group chats use negative ids

EMAIL_SUBJECT_MAX = 200
EMAIL_BODY_MAX = 10000
WHATSAPP_MESSAGE_MAX = 4096
TELEGRAM_MESSAGE_MAX = 4096
SMS_MESSAGE_MAX = 160

# (field, label) in the order they are checked
REQUIRED_FIELDS: dict[Channel, tuple[tuple[str, str], ...]] = {
    Channel.EMAIL: (
        ("to", "Recipient email"),
        ("subject", "Email subject"),
        ("body", "Email body"),
        ("userId", "User ID"),
    ),
    Channel.WHATSAPP: (
        ("to", "Recipient phone number"),
        ("message", "Message content"),
        ("userId", "User ID"),
    ),
    Channel.TELEGRAM: (
        ("chatId", "Chat ID"),
        ("message", "Message content"),
        ("userId", "User ID"),
    ),
    Channel.SMS: (
        ("to", "Recipient phone number"),
        ("message", "Message content"),
        ("userId", "User ID"),
    ),
}

PHONE_FORMAT_ERROR = "Invalid phone number format. Use international format (e.g., +1234567890)"


def parse_channel(value: Any) -> Channel:
    """Resolve a channel name, raising InvalidChannel for anything unknown."""
    if isinstance(value, Channel):
        return value
    try:
        return Channel(value)
    except ValueError:
        raise InvalidChannel(value, Channel.values()) from None


def validate(channel: Channel | str, raw: Mapping[str, Any]) -> MessagePayload:
    """Validate a per-channel request body."""
    channel = parse_channel(channel)
    if not isinstance(raw, Mapping):
        raise InvalidFormat("Request body must be a JSON object")

    _check_required(channel, raw)

    common = {
        "user_id": _as_identifier(raw["userId"], "userId", "User ID"),
        "channel_type": _optional_str(raw, "type"),
        "message_type_hint": _optional_str(raw, "messageType"),
    }

    if channel is Channel.EMAIL:
        return _validate_email(raw, common)
    if channel is Channel.WHATSAPP:
        return _validate_phone_message(WhatsAppPayload, raw, common, WHATSAPP_MESSAGE_MAX)
    if channel is Channel.SMS:
        # No truncation here: over-long SMS is a validation failure
        return _validate_phone_message(SmsPayload, raw, common, SMS_MESSAGE_MAX)
    return _validate_telegram(raw, common)


def validate_unified(raw: Mapping[str, Any]) -> MessagePayload:
    """Validate a unified send body: channel membership first, then channel rules."""
    if not isinstance(raw, Mapping):
        raise InvalidFormat("Request body must be a JSON object")
    if _is_blank(raw.get("channel")):
        raise MissingField("channel", "Communication channel")
    channel = parse_channel(raw["channel"])
    return validate(channel, raw)


# ------------------------------------------------------------------
# Channel rules
# ------------------------------------------------------------------


def _validate_email(raw: Mapping[str, Any], common: dict) -> EmailPayload:
    to = _as_text(raw["to"], "to", "Recipient email").strip()
    if not EMAIL_RE.match(to):
        raise InvalidFormat("Invalid recipient email format", field="to")

    subject = _as_text(raw["subject"], "subject", "Email subject")
    body = _as_text(raw["body"], "body", "Email body")
    _check_length(subject, "subject", "Email subject", 1, EMAIL_SUBJECT_MAX)
    _check_length(body, "body", "Email body", 1, EMAIL_BODY_MAX)

    return EmailPayload(to=to, subject=subject, body=body, **common)


def _validate_phone_message(payload_cls, raw: Mapping[str, Any], common: dict, max_length: int):
    to = normalize_phone(_as_text(raw["to"], "to", "Recipient phone number"))
    if not PHONE_RE.match(to):
        raise InvalidFormat(PHONE_FORMAT_ERROR, field="to")

    message = _as_text(raw["message"], "message", "Message content")
    _check_length(message, "message", "Message", 1, max_length)

    return payload_cls(to=to, message=message, **common)


def _validate_telegram(raw: Mapping[str, Any], common: dict) -> TelegramPayload:
    chat_id = _as_identifier(raw["chatId"], "chatId", "Chat ID")
    if not CHAT_ID_RE.match(chat_id):
        raise InvalidFormat("Chat ID must be numeric", field="chatId")

    message = _as_text(raw["message"], "message", "Message content")
    _check_length(message, "message", "Message", 1, TELEGRAM_MESSAGE_MAX)

    return TelegramPayload(chat_id=chat_id, message=message, **common)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def normalize_phone(phone: str) -> str:
    return re.sub(r"\s+", "", phone)


def _is_blank(value: Any) -> bool:
    """None, false, zero and whitespace-only strings all count as absent."""
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (bool, int, float)):
        return not value
    return value is None


def _check_required(channel: Channel, raw: Mapping[str, Any]):
    for field, label in REQUIRED_FIELDS[channel]:
        if _is_blank(raw.get(field)):
            logger.info("validation.missing_field", channel=channel.value, field=field)
            raise MissingField(field, label)


def _check_length(value: str, field: str, label: str, minimum: int, maximum: int):
    if len(value) < minimum:
        raise InvalidLength(field, label, minimum, maximum, too_long=False)
    if len(value) > maximum:
        raise InvalidLength(field, label, minimum, maximum, too_long=True)


def _as_text(value: Any, field: str, label: str) -> str:
    if not isinstance(value, str):
        raise InvalidFormat(f"{label} must be a string", field=field)
    return value


def _as_identifier(value: Any, field: str, label: str) -> str:
    """Identifiers may arrive as JSON numbers; 123.0 is read as 123."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidFormat(f"{label} must be a string or integer", field=field)
    return str(value).strip()


def _optional_str(raw: Mapping[str, Any], field: str) -> str | None:
    value = raw.get(field)
    if _is_blank(value):
        return None
    if not isinstance(value, str):
        raise InvalidFormat(f"{field} must be a string", field=field)
    return value.strip()
