from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    LEDGER_TIMEOUT_SECONDS: float = 10.0

    # Email (Zoho SMTP)
    ZOHO_SMTP_HOST: str = "smtp.zoho.com"
    ZOHO_SMTP_PORT: int = 587
    ZOHO_EMAIL: str = ""
    ZOHO_PASSWORD: str = ""

    # WhatsApp Cloud API
    WHATSAPP_API_BASE_URL: str = "https://graph.facebook.com/v18.0"
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    WHATSAPP_ACCESS_TOKEN: str = ""

    # Telegram Bot API
    TELEGRAM_API_BASE_URL: str = "https://api.telegram.org"
    TELEGRAM_BOT_TOKEN: str = ""

    # SMS (Twilio)
    TWILIO_API_BASE_URL: str = "https://api.twilio.com"
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # Karma ledger
    KARMA_TRACKER_BASE_URL: str = "https://karma-tracker-api.example.com"
    KARMA_TRACKER_API_KEY: str = ""

    def missing_for(self, channel: str) -> list[str]:
        """Names of unset credential variables needed by a channel."""
        names = _REQUIRED_BY_CHANNEL.get(channel, ())
        return [name for name in names if not str(getattr(self, name)).strip()]

    def service_summary(self) -> dict[str, bool]:
        summary = {channel: not self.missing_for(channel) for channel in _REQUIRED_BY_CHANNEL}
        summary["karma_tracker"] = bool(self.KARMA_TRACKER_API_KEY)
        return summary


_REQUIRED_BY_CHANNEL = {
    "email": ("ZOHO_EMAIL", "ZOHO_PASSWORD"),
    "whatsapp": ("WHATSAPP_PHONE_NUMBER_ID", "WHATSAPP_ACCESS_TOKEN"),
    "telegram": ("TELEGRAM_BOT_TOKEN",),
    "sms": ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"),
}


settings = Settings()
