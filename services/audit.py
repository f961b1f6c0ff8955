# services/audit.py
import logging
import os
import threading
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)


class AuditLog:
    """Простой текстовый журнал: одна строка `[время] сообщение` на событие."""

    def __init__(self, path: str, timezone: str = "Europe/Moscow"):
        self.path = path
        self.tz = ZoneInfo(timezone)
        self._lock = threading.Lock()

    def log(self, message: str, now: Optional[datetime] = None) -> bool:
        """
        Дописывает строку в журнал. Ошибки записи не пробрасываются:
        журнал не должен ронять обработку заявки. Возвращает True при успехе.
        """
        timestamp = (now or datetime.now(self.tz)).strftime("%Y-%m-%d %H:%M:%S")
        entry = f"[{timestamp}] {message}\n"
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            with self._lock, open(self.path, "a", encoding="utf-8") as f:
                f.write(entry)
            return True
        except OSError as e:
            logger.warning("audit_log_write_fail", extra={"path": self.path, "error": str(e)})
            return False
