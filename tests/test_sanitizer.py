import pytest

from services.sanitizer import sanitize, sanitize_text


def test_trims_and_strips_tags():
    assert sanitize("  <b>Иван</b>  ") == "Иван"
    assert sanitize("<script>alert(1)</script>") == "alert(1)"


def test_escapes_quotes_and_ampersand():
    assert sanitize("O'Neil \"Co\" & Sons") == "O&#x27;Neil &quot;Co&quot; &amp; Sons"


def test_none_becomes_empty_string():
    assert sanitize(None) == ""
    assert sanitize("   ") == ""


def test_non_string_scalars_are_stringified():
    assert sanitize(42) == "42"


def test_control_characters_removed():
    assert sanitize("a\x00b\nc\td") == "ab c d"


def test_nested_structures_keep_shape():
    raw = {"a": [" x ", "<i>y</i>"], "b": {"c": None}, "t": ("1 ", " 2")}
    assert sanitize(raw) == {"a": ["x", "y"], "b": {"c": ""}, "t": ("1", "2")}


@pytest.mark.parametrize(
    "value",
    [
        "plain",
        "A & B",
        "&amp;amp;",
        "&lt;b&gt;bold&lt;/b&gt;",
        "  &#32;x ",
        "<a href='x'>link</a> & 'q'",
        "+7 (495) 123-45-67",
        "ул. Ленина, д. 1 «Б»",
    ],
)
def test_sanitize_is_idempotent(value):
    once = sanitize_text(value)
    assert sanitize_text(once) == once


def test_sanitize_is_idempotent_for_mappings():
    raw = {"name": "<b>Tom & Jerry</b>", "tags": ["'a'", "<br>"]}
    once = sanitize(raw)
    assert sanitize(once) == once


def test_lone_angle_brackets_in_text_are_kept():
    assert sanitize("давление < 2 бар, температура > 80") == "давление &lt; 2 бар, температура &gt; 80"
    assert sanitize("a<b") == "a"
    assert sanitize("x <!-- note --> y") == "x  y"
