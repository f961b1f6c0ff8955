# services/spam_guard.py
import logging
import time
from typing import Optional

import redis

from services.config import Settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "lead_submit:"


class SpamGuard:
    """
    Простая защита от спама:
    - заполненное honeypot-поле -> спам;
    - повторная отправка с того же клиента раньше чем через min_interval секунд -> спам.

    Метка последней отправки хранится в Redis (SET NX EX), поэтому живёт
    не дольше min_interval. Без Redis проверяется только honeypot.
    """

    def __init__(self, client: Optional["redis.Redis"], min_interval: int = 5):
        self.client = client
        self.min_interval = min_interval

    def is_spam(self, client_key: str, honeypot: str = "") -> bool:
        if honeypot:
            logger.warning("spam_honeypot", extra={"client": client_key})
            return True

        if self.client is None:
            return False

        try:
            fresh = self.client.set(
                f"{KEY_PREFIX}{client_key}", int(time.time()), nx=True, ex=self.min_interval
            )
        except redis.RedisError as e:
            logger.error("spam_guard_redis_fail", extra={"client": client_key, "error": str(e)})
            return False

        if not fresh:
            logger.warning("spam_too_fast", extra={"client": client_key, "min_interval": self.min_interval})
            return True
        return False


def init_spam_guard(settings: Settings) -> Optional[SpamGuard]:
    """
    Подключается к Redis и возвращает SpamGuard.
    None, если антиспам выключен. Если Redis недоступен, guard работает только по honeypot.
    """
    if not settings.spam_guard_enabled:
        return None

    try:
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
        )
        client.ping()
        logger.info(
            "Redis connected",
            extra={"host": settings.redis_host, "port": settings.redis_port, "db": settings.redis_db},
        )
    except redis.RedisError as e:
        logger.error("Redis connection failed; spam guard limited to honeypot", extra={"error": str(e)})
        client = None

    return SpamGuard(client, min_interval=settings.spam_min_interval)
