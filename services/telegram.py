# services/telegram.py
import logging
import re
from typing import Dict, Optional

import httpx

from models.lead import Submission
from services.config import Settings

logger = logging.getLogger(__name__)

PROBLEMS: Dict[str, str] = {
    "no-heat": "Нет тепла/отопления",
    "leak": "Течь/утечка газа",
    "noise": "Шум/вибрация",
    "error": "Ошибка на табло",
    "no-start": "Котёл не запускается",
    "other": "Другое",
}

SERVICES: Dict[str, str] = {
    "maintenance": "Техобслуживание",
    "repair": "Ремонт",
    "license": "Лицензирование",
    "full": "Полный цикл",
}

ORG_TYPES: Dict[str, str] = {
    "tszh": "ТСЖ/УК",
    "enterprise": "Предприятие",
    "commercial": "БЦ/ТЦ",
    "developer": "Застройщик",
}

# спецсимволы legacy Markdown в Telegram
MARKDOWN_RE = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    return MARKDOWN_RE.sub(r"\\\1", text)


def label(table: Dict[str, str], code: str) -> str:
    """Человекочитаемое название по коду; неизвестный код возвращается как есть."""
    return table.get(code, code)


def build_telegram_message(sub: Submission) -> str:
    emoji = "🚨" if sub.is_urgent else "📩"
    # внутри `code` экранирование не работает, обратные кавычки просто убираем
    phone = sub.phone.replace("`", "")

    msg = f"{emoji} *НОВАЯ ЗАЯВКА*\n\n"
    msg += f"📞 *Телефон:* `{phone}`\n"
    if sub.name:
        msg += f"👤 *Имя:* {escape_markdown(sub.name)}\n"
    if sub.email:
        msg += f"✉️ *Email:* {escape_markdown(sub.email)}\n"
    msg += "\n"

    if sub.problem:
        msg += f"⚠️ *Проблема:* {escape_markdown(label(PROBLEMS, sub.problem))}\n"
    if sub.service:
        msg += f"🔧 *Услуга:* {escape_markdown(label(SERVICES, sub.service))}\n"
    if sub.org_type:
        msg += f"🏢 *Тип:* {escape_markdown(label(ORG_TYPES, sub.org_type))}\n"
    if sub.address:
        msg += f"📍 *Адрес:* {escape_markdown(sub.address)}\n"
    if sub.promo:
        msg += f"🎁 *Промокод:* {escape_markdown(sub.promo)}\n"

    msg += f"\n🕐 {sub.created_at}\n"
    msg += f"📱 Источник: {escape_markdown(sub.source)}"
    return msg


class TelegramNotifier:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    @property
    def url(self) -> str:
        return f"{self.settings.telegram_api_base}/bot{self.settings.telegram_bot_token}/sendMessage"

    async def send(self, sub: Submission) -> bool:
        """
        Отправляет заявку в чат через Bot API.
        True только при HTTP 200; таймаут, сетевая ошибка или другой статус -> False.
        """
        if not self.settings.telegram_configured:
            logger.info("telegram_skipped: bot token or chat id not set", extra={"lead_id": sub.id})
            return False

        payload = {
            "chat_id": self.settings.telegram_chat_id,
            "text": build_telegram_message(sub),
            "parse_mode": "Markdown",
            "disable_web_page_preview": True,
        }
        try:
            async with httpx.AsyncClient(timeout=self.settings.telegram_timeout, transport=self.transport) as client:
                resp = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.error("telegram_send_fail: %r", e, extra={"lead_id": sub.id})
            return False

        if resp.status_code != 200:
            logger.error(
                "telegram_bad_status %s: %s", resp.status_code, resp.text[:500], extra={"lead_id": sub.id}
            )
            return False

        logger.info("telegram_sent", extra={"lead_id": sub.id})
        return True
