import os
import tempfile

# до импорта main: логи приложения во временную папку, каналы уведомлений выключены
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="lead-logs-")
for name in ("LEAD_EMAIL", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "SPAM_GUARD_ENABLED"):
    os.environ.pop(name, None)

import pytest

from models.lead import Submission
from services.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(
        leads_file=str(tmp_path / "leads.json"),
        audit_log_file=str(tmp_path / "logs.txt"),
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def configured_settings(settings):
    return settings.model_copy(
        update={
            "lead_email": "leads@example.com",
            "telegram_bot_token": "123:ABC",
            "telegram_chat_id": "-100500",
        }
    )


@pytest.fixture
def make_submission():
    def _make(**fields):
        data = {"phone": "+7 (495) 123-45-67"}
        data.update(fields)
        return Submission.create("lead_test", "2026-10-19 12:00:00", data)

    return _make
