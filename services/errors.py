# services/errors.py


class LeadError(Exception):
    """Базовая ошибка обработки заявки."""


class ClientError(LeadError):
    """Ошибка запроса: отдаём клиенту JSON с success=false и прекращаем обработку."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StorageError(LeadError):
    """Не удалось прочитать или записать файл заявок."""


class NotificationError(LeadError):
    """Сбой отправки уведомления (почта, Telegram)."""
