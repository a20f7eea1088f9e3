from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    auto_create_tables: bool = True

    # IANA zone used for "today"/"tomorrow" and slot start instants, e.g. Asia/Kolkata
    business_timezone: str

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Twilio WhatsApp. Leave account sid empty to disable outbound messages.
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_whatsapp_from: str = ""

    # Reminders
    reminder_lead_minutes: int = 10
    # Reminders whose instant is further in the past than this are dropped
    reminder_stale_grace_minutes: int = 30

    # Appointments older than this many days (by appointment date) are purged
    appointment_retention_days: int = 30

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
