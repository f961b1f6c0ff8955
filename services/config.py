# services/config.py
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUE_VALUES


def _env_list(name: str, default: str) -> List[str]:
    return [o.strip() for o in os.getenv(name, default).split(",") if o.strip()]


class Settings(BaseModel):
    """
    Настройки сервиса. Создаются один раз при старте процесса
    и передаются явно в обработчик и нотификаторы.
    """
    model_config = ConfigDict(frozen=True)

    # Email
    lead_email: str = ""
    email_subject: str = "Новая заявка с сайта"
    mail_from: str = ""
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = False
    smtp_timeout: float = 10.0

    # Telegram
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    telegram_api_base: str = "https://api.telegram.org"
    telegram_timeout: float = 10.0

    # Файлы
    leads_file: str = "data/leads.json"
    audit_log_file: str = "data/logs.txt"
    log_dir: str = "logs"

    timezone: str = "Europe/Moscow"
    cors_origins: List[str] = ["*"]

    # Антиспам
    spam_guard_enabled: bool = False
    spam_min_interval: int = 5
    redis_host: str = "127.0.0.1"
    redis_port: int = 6379
    redis_db: int = 0

    @property
    def email_configured(self) -> bool:
        return bool(self.lead_email)

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            lead_email=os.getenv("LEAD_EMAIL", ""),
            email_subject=os.getenv("EMAIL_SUBJECT", "Новая заявка с сайта"),
            mail_from=os.getenv("MAIL_FROM", ""),
            smtp_host=os.getenv("SMTP_HOST", "localhost"),
            smtp_port=int(os.getenv("SMTP_PORT", "25")),
            smtp_username=os.getenv("SMTP_USERNAME", ""),
            smtp_password=os.getenv("SMTP_PASSWORD", ""),
            smtp_starttls=_env_bool("SMTP_STARTTLS"),
            smtp_timeout=float(os.getenv("SMTP_TIMEOUT", "10")),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
            telegram_api_base=os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org"),
            telegram_timeout=float(os.getenv("TELEGRAM_TIMEOUT", "10")),
            leads_file=os.getenv("LEADS_FILE", "data/leads.json"),
            audit_log_file=os.getenv("AUDIT_LOG_FILE", "data/logs.txt"),
            log_dir=os.getenv("LOG_DIR", "logs"),
            timezone=os.getenv("TIMEZONE", "Europe/Moscow"),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            spam_guard_enabled=_env_bool("SPAM_GUARD_ENABLED"),
            spam_min_interval=int(os.getenv("SPAM_MIN_INTERVAL", "5")),
            redis_host=os.getenv("REDIS_HOST", "127.0.0.1"),
            redis_port=int(os.getenv("REDIS_PORT", "6379")),
            redis_db=int(os.getenv("REDIS_DB", "0")),
        )
