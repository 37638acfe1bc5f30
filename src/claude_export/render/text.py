"""Text normalisation for rendered documents.

Covers fenced code blocks and right-to-left (Hebrew/Arabic) text. Direction
detection is a heuristic, not the Unicode bidi algorithm, and the repair of
mis-decoded Hebrew is best effort: it must never raise.
"""

import json
import re
import unicodedata

CODE_BLOCK_RE = re.compile(r"```(\w*)(.*?)```", re.DOTALL | re.ASCII)

RTL_CHARS_RE = re.compile("[\u0591-\u07ff\ufb1d-\ufdfd\ufe70-\ufefc]")
RTL_ESCAPES = ("\\u05", "\\u06")
UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")

RTL_OPEN = '<div dir="rtl">'
RTL_CLOSE = "</div>"

# UTF-8 Hebrew read as cp1252: D7 xx -> "×" + cp1252(xx). Applied in order.
# The apostrophe and double-quote pairs are listed twice with different
# targets; the second of each pair never matches. Kept as observed in
# real exports until there is a sample showing the intended letters.
MOJIBAKE_TABLE: tuple[tuple[str, str], ...] = (
    ("×—", "ח"),
    ("×©", "ש"),
    ("×'", "ג"),
    ("×'", "ב"),
    ("×¦", "צ"),
    ('×"', "ה"),
    ('×"', "ד"),
    ("×™", "י"),
    ("×Ÿ", "ן"),
    ("×ž", "מ"),
    ("×œ", "ל"),
    ("×š", "ך"),
    ("×£", "ף"),
    ("×¤", "פ"),
    ("×¨", "ר"),
    ("×ª", "ת"),
    ("×¡", "ס"),
    ("×˜", "ט"),
    ("×§", "ק"),
    ("×¥", "ץ"),
    ("×›", "כ"),
    ("×¢", "ע"),
    ("×¦", "צ"),
    ("×•", "ו"),
)

# Leftover artefacts once known letters are mapped
MOJIBAKE_ARTEFACTS: tuple[tuple[str, str], ...] = (
    ("×", ""),
    ("â€", ""),
    ("\u00a0", " "),
)

RESIDUAL_MARKERS = ("\u00d7", "\u00a0", "\u2014", "\u2022")


def normalize_code_blocks(text: str) -> str:
    """Rewrite fenced code blocks as ```lang\\n<code>\\n```.

    Exactly one leading and one trailing newline inside the fence are
    trimmed before the canonical ones are added back, so applying this
    twice gives the same result as applying it once.
    """
    if not text:
        return ""

    def _replace(match: re.Match) -> str:
        language = match.group(1).strip()
        code = match.group(2)
        if code.startswith("\n"):
            code = code[1:]
        if code.endswith("\n"):
            code = code[:-1]
        return f"```{language}\n{code}\n```"

    return CODE_BLOCK_RE.sub(_replace, text)


def detect_direction(text: str | None) -> str:
    """Classify text as "rtl" or "ltr".

    RTL when the text holds Hebrew/Arabic characters, literal \\u05xx or
    \\u06xx escapes, or the "×" plus em dash pattern left by mis-decoded
    Hebrew.
    """
    if not text:
        return "ltr"

    if RTL_CHARS_RE.search(text):
        return "rtl"

    if any(marker in text for marker in RTL_ESCAPES):
        return "rtl"

    if "\u00d7" in text and "\u2014" in text:
        return "rtl"

    return "ltr"


def is_rtl(text: str | None) -> bool:
    return detect_direction(text) == "rtl"


def wrap_rtl(body: str) -> str:
    """Wrap a rendered body in a right-to-left block."""
    return f"{RTL_OPEN}\n\n{body}\n\n{RTL_CLOSE}"


def decode_unicode_escapes(text: str) -> str:
    """Decode literal \\uXXXX escapes left in exported text."""
    if not text or "\\u" not in text:
        return text

    try:
        return json.loads('"' + text.replace('"', '\\"') + '"')
    except json.JSONDecodeError:
        return UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)


def _is_safe_char(char: str) -> bool:
    if "\u0590" <= char <= "\u05ff" or "\u0600" <= char <= "\u06ff":
        return True
    if char.isspace() or char.isalnum() or char == "_":
        return True
    return unicodedata.category(char).startswith("P")


def strip_unsafe_chars(text: str) -> str:
    """Drop everything except Hebrew/Arabic, word, whitespace and punctuation."""
    return "".join(char for char in text if _is_safe_char(char))


def clean_rtl_text(text: str | None) -> str:
    """Best-effort repair of Hebrew text that was decoded with the wrong codec.

    Steps: map known mis-decoded letter pairs, drop leftover artefacts, then,
    if markers of the corruption remain, try re-decoding the original as
    cp1252 bytes holding UTF-8. When that is impossible the remaining
    unsafe characters are stripped. Lossy by nature.
    """
    if not text:
        return ""

    cleaned = text
    for garbled, letter in MOJIBAKE_TABLE:
        cleaned = cleaned.replace(garbled, letter)
    for garbled, replacement in MOJIBAKE_ARTEFACTS:
        cleaned = cleaned.replace(garbled, replacement)

    if not any(marker in cleaned for marker in RESIDUAL_MARKERS):
        return cleaned

    try:
        return text.encode("cp1252").decode("utf-8")
    except UnicodeError:
        return strip_unsafe_chars(cleaned)
