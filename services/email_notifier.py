# services/email_notifier.py
import logging
from email.message import EmailMessage
from typing import Awaitable, Callable, Optional

import aiosmtplib

from models.lead import Submission
from services.config import Settings
from services.errors import NotificationError

logger = logging.getLogger(__name__)

Mailer = Callable[[EmailMessage], Awaitable[None]]


class SmtpMailer:
    """Отправка письма через SMTP (aiosmtplib). Любой сбой -> NotificationError."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def __call__(self, message: EmailMessage) -> None:
        s = self.settings
        try:
            await aiosmtplib.send(
                message,
                hostname=s.smtp_host,
                port=s.smtp_port,
                username=s.smtp_username or None,
                password=s.smtp_password or None,
                start_tls=s.smtp_starttls,
                timeout=s.smtp_timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP send failed: {e}") from e


def _or(value: str, placeholder: str) -> str:
    return value or placeholder


def build_email_body(sub: Submission) -> str:
    """Текстовый отчёт о заявке для письма."""
    priority_label = "🚨 СРОЧНАЯ ЗАЯВКА" if sub.is_urgent else "📩 Новая заявка"
    lines = [
        priority_label,
        "================================",
        "",
        f"📅 Дата: {sub.created_at}",
        f"🆔 ID: {sub.id}",
        "",
        "👤 КОНТАКТ:",
        f"• Имя: {_or(sub.name, 'Не указано')}",
        f"• Телефон: {sub.phone}",
        f"• Email: {_or(sub.email, 'Не указан')}",
        "",
        "📋 ДЕТАЛИ:",
        f"• Источник: {sub.source}",
        f"• Тип организации: {_or(sub.org_type, 'Не указан')}",
        f"• Тип объекта: {_or(sub.object_type, 'Не указан')}",
        f"• Услуга: {_or(sub.service, 'Не указана')}",
        f"• Проблема: {_or(sub.problem, 'Не указана')}",
        f"• Адрес: {_or(sub.address, 'Не указан')}",
        f"• Удобное время: {_or(sub.call_time, 'Любое')}",
        f"• Промокод: {_or(sub.promo, 'Нет')}",
    ]
    if sub.message:
        lines += ["", "💬 КОММЕНТАРИЙ:", sub.message]
    lines += [
        "",
        "🔍 UTM:",
        f"• Source: {_or(sub.utm_source, '-')}",
        f"• Medium: {_or(sub.utm_medium, '-')}",
        f"• Campaign: {_or(sub.utm_campaign, '-')}",
        f"• Term: {_or(sub.utm_term, '-')}",
        f"• Content: {_or(sub.utm_content, '-')}",
        "",
        "🌐 ТЕХНИЧЕСКАЯ ИНФОРМАЦИЯ:",
        f"• IP: {sub.client_ip}",
        f"• User-Agent: {sub.user_agent}",
        f"• Referer: {sub.referer}",
        "",
        "================================",
        "Отправлено с лендинга",
    ]
    return "\n".join(lines) + "\n"


class EmailNotifier:
    def __init__(self, settings: Settings, mailer: Optional[Mailer] = None):
        self.settings = settings
        self.mailer = mailer or SmtpMailer(settings)

    def build_message(self, sub: Submission, host: str = "localhost") -> EmailMessage:
        s = self.settings
        msg = EmailMessage()
        msg["From"] = s.mail_from or f"noreply@{host}"
        msg["To"] = s.lead_email
        subject = f"{s.email_subject} - {sub.phone}"
        msg["Subject"] = f"[СРОЧНО] {subject}" if sub.is_urgent else subject
        msg["Reply-To"] = sub.email or s.lead_email
        msg["X-Priority"] = "1" if sub.is_urgent else "3"
        msg.set_content(build_email_body(sub), charset="utf-8")
        return msg

    async def send(self, sub: Submission, host: str = "localhost") -> bool:
        """
        Отправляет отчёт на LEAD_EMAIL. Возвращает False, если адрес не задан
        или отправка не удалась; исключения наружу не выходят.
        """
        if not self.settings.email_configured:
            logger.info("email_skipped: LEAD_EMAIL not set", extra={"lead_id": sub.id})
            return False

        try:
            message = self.build_message(sub, host=host)
            await self.mailer(message)
        except (NotificationError, ValueError) as e:
            logger.error("email_send_fail: %s", e, extra={"lead_id": sub.id})
            return False

        logger.info("email_sent", extra={"lead_id": sub.id, "to": self.settings.lead_email})
        return True
