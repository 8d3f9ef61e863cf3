"""
Core value types shared by validation, dispatch and reward scoring.

A validated payload is one of four frozen dataclasses keyed by Channel.
Each variant carries exactly the fields its provider needs, plus the
common user_id / channel_type / message_type_hint triple.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Channel(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    SMS = "sms"

    @classmethod
    def values(cls) -> list[str]:
        return [c.value for c in cls]


# Provider-facing type used when the caller omits `type`
DEFAULT_CHANNEL_TYPES = {
    Channel.EMAIL: "transactional",
    Channel.WHATSAPP: "delivery",
    Channel.TELEGRAM: "notification",
    Channel.SMS: "fallback",
}

_HTML_ESCAPES = str.maketrans({
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
})


def escape_html(value: str) -> str:
    """Escape the characters that matter when text lands in HTML or logs."""
    return value.translate(_HTML_ESCAPES)


@dataclass(frozen=True)
class MessageContent:
    text: str
    subject: str | None = None


@dataclass(frozen=True)
class _PayloadBase:
    user_id: str
    channel_type: str | None
    message_type_hint: str | None

    channel = None  # set on each variant

    @property
    def resolved_channel_type(self) -> str:
        return self.channel_type or DEFAULT_CHANNEL_TYPES[self.channel]

    @property
    def destination(self) -> str:
        raise NotImplementedError

    @property
    def content(self) -> MessageContent:
        raise NotImplementedError

    def sanitized(self) -> dict[str, str | None]:
        """HTML-escaped view of every string field, for logs and reward records."""
        view: dict[str, str | None] = {}
        for name, value in asdict(self).items():
            view[name] = escape_html(value) if isinstance(value, str) else value
        return view


@dataclass(frozen=True)
class EmailPayload(_PayloadBase):
    to: str
    subject: str
    body: str

    channel = Channel.EMAIL

    @property
    def destination(self) -> str:
        return self.to

    @property
    def content(self) -> MessageContent:
        return MessageContent(text=self.body, subject=self.subject)


@dataclass(frozen=True)
class WhatsAppPayload(_PayloadBase):
    to: str
    message: str

    channel = Channel.WHATSAPP

    @property
    def destination(self) -> str:
        return self.to

    @property
    def content(self) -> MessageContent:
        return MessageContent(text=self.message)


@dataclass(frozen=True)
class SmsPayload(_PayloadBase):
    to: str
    message: str

    channel = Channel.SMS

    @property
    def destination(self) -> str:
        return self.to

    @property
    def content(self) -> MessageContent:
        return MessageContent(text=self.message)


@dataclass(frozen=True)
class TelegramPayload(_PayloadBase):
    chat_id: str
    message: str

    channel = Channel.TELEGRAM

    @property
    def destination(self) -> str:
        return self.chat_id

    @property
    def content(self) -> MessageContent:
        return MessageContent(text=self.message)


MessagePayload = EmailPayload | WhatsAppPayload | SmsPayload | TelegramPayload


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    provider_message_id: str | None = None
    failure_reason: str | None = None

    @classmethod
    def sent(cls, provider_message_id: str) -> "DispatchResult":
        return cls(success=True, provider_message_id=provider_message_id)

    @classmethod
    def failed(cls, reason: str) -> "DispatchResult":
        return cls(success=False, failure_reason=reason)


class RewardKind(str, Enum):
    GAIN = "gain"
    LOSS = "loss"


@dataclass(frozen=True)
class RewardEvent:
    user_id: str
    channel: Channel
    channel_type: str
    classification: str
    reward_kind: RewardKind
    points: int
    activity_description: str
    success: bool
    timestamp_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if self.reward_kind is RewardKind.GAIN and self.points < 0:
            raise ValueError(f"Gain event cannot carry negative points: {self.points}")
        if self.reward_kind is RewardKind.LOSS and self.points > 0:
            raise ValueError(f"Loss event cannot carry positive points: {self.points}")

    def to_ledger_record(self) -> dict:
        """Serialize to the karma tracker's event body."""
        gain = self.reward_kind is RewardKind.GAIN
        return {
            "userId": self.user_id,
            "karmaType": "SEVA" if gain else "KARMA_LOSS",
            "karmaGain": self.points if gain else 0,
            "karmaLoss": 0 if gain else self.points,
            "activity": self.activity_description,
            "metadata": {
                "channel": self.channel.value,
                "type": self.channel_type,
                "messageType": self.classification,
                "timestamp": self.timestamp_utc.isoformat(),
                "success": self.success,
            },
        }
