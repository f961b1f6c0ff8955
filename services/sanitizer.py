# services/sanitizer.py
import html
import re
from typing import Any

# тег начинается с буквы, / ! или ?; одиночный "<" в тексте не трогаем
TAG_RE = re.compile(r"<[A-Za-z/!?][^>]*>?")
# C0/C1 управляющие символы и DEL
CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
WHITESPACE_CONTROLS = str.maketrans({"\t": " ", "\n": " ", "\r": " ", "\v": " ", "\f": " "})


def _clean_controls(text: str) -> str:
    return CONTROL_RE.sub("", text.translate(WHITESPACE_CONTROLS))


def sanitize_text(value: Any) -> str:
    """
    trim -> strip tags -> html escape (включая кавычки).

    Уже экранированные сущности повторно не экранируются,
    поэтому sanitize_text(sanitize_text(x)) == sanitize_text(x).
    """
    if value is None:
        return ""
    text = _clean_controls(str(value)).strip()
    text = TAG_RE.sub("", text)
    text = _clean_controls(html.unescape(text)).strip()
    return html.escape(text, quote=True)


def sanitize(value: Any) -> Any:
    """Рекурсивно чистит строку, словарь или список строк."""
    if isinstance(value, dict):
        return {k: sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize(v) for v in value)
    return sanitize_text(value)
