# services/store.py
import fcntl
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Iterator, List

from models.lead import Submission
from services.errors import StorageError

logger = logging.getLogger(__name__)


class LeadStore:
    """
    Хранилище заявок: JSON-массив в одном файле, только добавление.

    append() читает весь файл, добавляет запись и перезаписывает файл целиком.
    Цикл read-modify-write сериализован локом потока и flock на <file>.lock,
    иначе параллельные запросы теряют заявки друг друга.
    """

    def __init__(self, path: str):
        self.path = path
        self.lock_path = f"{path}.lock"
        self._lock = threading.Lock()

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        with self._lock:
            with open(self.lock_path, "a") as lock_file:
                fcntl.flock(lock_file, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self) -> List[dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise StorageError(f"cannot read {self.path}: {e}") from e

        if not content.strip():
            return []
        try:
            leads = json.loads(content)
        except ValueError as e:
            # Битый файл не перезаписываем, иначе старые заявки пропадут
            raise StorageError(f"cannot parse {self.path}: {e}") from e
        if not isinstance(leads, list):
            raise StorageError(f"{self.path} does not contain a JSON array")
        return leads

    def _write(self, leads: List[dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".leads-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(leads, f, ensure_ascii=False, indent=4)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"cannot write {self.path}: {e}") from e

    def load(self) -> List[dict]:
        """Все сохранённые заявки в порядке поступления."""
        return self._read()

    def append(self, submission: Submission) -> int:
        """Добавляет заявку, возвращает новое количество записей."""
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            with self._exclusive():
                leads = self._read()
                leads.append(submission.model_dump())
                self._write(leads)
        except OSError as e:
            raise StorageError(f"storage unavailable at {self.path}: {e}") from e

        logger.debug("lead_stored", extra={"lead_id": submission.id, "total": len(leads)})
        return len(leads)
