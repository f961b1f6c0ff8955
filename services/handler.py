# services/handler.py
import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo

from fastapi.concurrency import run_in_threadpool

from models.lead import (
    FORM_FIELDS,
    HONEYPOT_FIELD,
    LeadAccepted,
    LeadRejected,
    Notifications,
    RequestContext,
    Submission,
)
from services.audit import AuditLog
from services.config import Settings
from services.email_notifier import EmailNotifier
from services.errors import ClientError, StorageError
from services.sanitizer import sanitize
from services.spam_guard import SpamGuard
from services.store import LeadStore
from services.telegram import TelegramNotifier

logger = logging.getLogger(__name__)

METHOD_NOT_ALLOWED = "Method not allowed"
PHONE_REQUIRED = "Укажите телефон"
SPAM_REJECTED = "Не удалось принять заявку, попробуйте позже"


def new_lead_id() -> str:
    """lead_ + время в микросекундах (hex) + случайный хвост."""
    return f"lead_{time.time_ns() // 1000:x}{uuid.uuid4().hex[:8]}"


@dataclass
class HandlerResponse:
    status_code: int
    body: Dict


class LeadHandler:
    """
    Обработка заявки с лендинга:
    метод -> очистка полей -> проверка телефона -> антиспам -> сохранение
    -> журнал -> email + Telegram -> ответ.
    """

    def __init__(
        self,
        settings: Settings,
        store: LeadStore,
        audit: AuditLog,
        email: EmailNotifier,
        telegram: TelegramNotifier,
        spam_guard: Optional[SpamGuard] = None,
    ):
        self.settings = settings
        self.store = store
        self.audit = audit
        self.email = email
        self.telegram = telegram
        self.spam_guard = spam_guard
        self.tz = ZoneInfo(settings.timezone)

    @classmethod
    def from_settings(cls, settings: Settings, spam_guard: Optional[SpamGuard] = None) -> "LeadHandler":
        return cls(
            settings=settings,
            store=LeadStore(settings.leads_file),
            audit=AuditLog(settings.audit_log_file, timezone=settings.timezone),
            email=EmailNotifier(settings),
            telegram=TelegramNotifier(settings),
            spam_guard=spam_guard,
        )

    async def handle(self, ctx: RequestContext) -> HandlerResponse:
        try:
            submission = self.build_submission(ctx)
        except ClientError as e:
            logger.info("lead_rejected", extra={"ip": ctx.client_ip, "reason": e.message})
            return HandlerResponse(e.status_code, LeadRejected(error=e.message).model_dump())

        await self.persist(submission)
        self.audit.log(f"Новая заявка: {submission.id} - {submission.phone}")

        email_ok, telegram_ok = await self.notify(submission, host=ctx.host)

        body = LeadAccepted(
            lead_id=submission.id,
            notifications=Notifications(email=email_ok, telegram=telegram_ok),
        )
        logger.info(
            "lead_accepted",
            extra={"lead_id": submission.id, "email": email_ok, "telegram": telegram_ok},
        )
        return HandlerResponse(200, body.model_dump())

    def build_submission(self, ctx: RequestContext) -> Submission:
        if ctx.method.upper() != "POST":
            raise ClientError(METHOD_NOT_ALLOWED, status_code=405)

        raw = {k: ctx.form.get(k, default) for k, default in FORM_FIELDS.items()}
        fields = sanitize(raw)

        if not fields["phone"]:
            raise ClientError(PHONE_REQUIRED)

        # только после проверки телефона: отклонённая форма не занимает интервал
        if self.spam_guard is not None:
            honeypot = ctx.form.get(HONEYPOT_FIELD, "")
            if self.spam_guard.is_spam(ctx.client_ip, honeypot=honeypot):
                raise ClientError(SPAM_REJECTED, status_code=429)

        return Submission.create(
            new_lead_id(),
            datetime.now(self.tz).strftime("%Y-%m-%d %H:%M:%S"),
            fields,
            client_ip=sanitize(ctx.client_ip) or "unknown",
            user_agent=sanitize(ctx.user_agent) or "unknown",
            referer=sanitize(ctx.referer) or "direct",
        )

    async def persist(self, submission: Submission) -> bool:
        """
        Ошибка хранилища не прерывает обработку: заявка целиком пишется
        в лог приложения и всё равно уходит в каналы уведомлений.
        """
        try:
            await run_in_threadpool(self.store.append, submission)
            return True
        except StorageError as e:
            # запись целиком в тексте сообщения, чтобы её можно было восстановить из app.log
            logger.error(
                "lead_store_fail: %s record=%s",
                e,
                json.dumps(submission.model_dump(), ensure_ascii=False),
                extra={"lead_id": submission.id},
            )
            return False

    async def notify(self, submission: Submission, host: str = "localhost") -> tuple:
        results = await asyncio.gather(
            self.email.send(submission, host=host),
            self.telegram.send(submission),
            return_exceptions=True,
        )
        outcome = []
        for channel, result in zip(("email", "telegram"), results):
            if isinstance(result, BaseException):
                logger.error("notify_exception", extra={"lead_id": submission.id, "channel": channel, "error": repr(result)})
                result = False
            outcome.append(bool(result))
        return tuple(outcome)
