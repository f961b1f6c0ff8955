# models/lead.py
import re
from typing import Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field

NON_DIGIT_RE = re.compile(r"\D")

# Поля формы лендинга и значения по умолчанию (когда поле не пришло вовсе)
FORM_FIELDS: Dict[str, str] = {
    "name": "",
    "phone": "",
    "email": "",
    "org_type": "",
    "object_type": "",
    "service": "",
    "problem": "",
    "address": "",
    "call_time": "",
    "message": "",
    "source": "unknown",
    "priority": "normal",
    "promo": "",
    "utm_source": "",
    "utm_medium": "",
    "utm_campaign": "",
    "utm_term": "",
    "utm_content": "",
}

HONEYPOT_FIELD = "website"


def digits_only(phone: str) -> str:
    return NON_DIGIT_RE.sub("", phone)


class RequestContext(BaseModel):
    """Всё, что обработчику нужно знать о входящем запросе."""
    model_config = ConfigDict(frozen=True)

    method: str
    form: Mapping[str, str] = Field(default_factory=dict)
    client_ip: str = "unknown"
    user_agent: str = "unknown"
    referer: str = "direct"
    host: str = "localhost"


# ─── Заявка ───
class Submission(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: str
    client_ip: str = "unknown"
    user_agent: str = "unknown"
    referer: str = "direct"

    # Контакты
    name: str = ""
    phone: str
    email: str = ""

    # Детали
    org_type: str = ""
    object_type: str = ""
    service: str = ""
    problem: str = ""
    address: str = ""
    call_time: str = ""
    message: str = ""

    # Метаданные
    source: str = "unknown"
    priority: str = "normal"
    promo: str = ""

    # UTM
    utm_source: str = ""
    utm_medium: str = ""
    utm_campaign: str = ""
    utm_term: str = ""
    utm_content: str = ""

    phone_digits: str = ""

    @property
    def is_urgent(self) -> bool:
        return self.priority == "high"

    @classmethod
    def create(cls, lead_id: str, created_at: str, fields: Mapping[str, str], **meta) -> "Submission":
        """
        Собирает заявку из уже очищенных полей.
        phone_digits вычисляется здесь и только здесь.
        """
        phone = fields.get("phone", "")
        return cls(
            id=lead_id,
            created_at=created_at,
            phone_digits=digits_only(phone),
            **meta,
            **{k: fields.get(k, default) for k, default in FORM_FIELDS.items()},
        )


class Notifications(BaseModel):
    email: bool = False
    telegram: bool = False


class LeadAccepted(BaseModel):
    success: bool = True
    message: str = "Заявка успешно отправлена"
    lead_id: str
    notifications: Notifications


class LeadRejected(BaseModel):
    success: bool = False
    error: str
