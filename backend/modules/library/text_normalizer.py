"""text_normalizer.py — Cleanup for description text pulled out of model files.

Descriptions embedded in 3MF projects are frequently HTML, sometimes encoded two or
three times over by the sites they were downloaded from. Everything here is pure
string manipulation and never raises on str input.

Public API:
    detect_language(text) -> str
    clean_html_text(text) -> str
    truncate_description(text, max_length=300) -> str
    extract_description(raw) -> str
"""

import re

# (pattern, code) in priority order. The first pattern with a hit wins.
_SCRIPT_RANGES = [
    (re.compile(r"[぀-ゟ゠-ヿ]"), "ja"),  # Hiragana, Katakana
    (re.compile(r"[가-힯]"), "ko"),  # Hangul syllables
    (re.compile(r"[Ѐ-ӿ]"), "ru"),
    (re.compile(r"[؀-ۿ]"), "ar"),
    (re.compile(r"[֐-׿]"), "he"),
    (re.compile(r"[฀-๿]"), "th"),
    (re.compile(r"[ĂăĐđĨĩŨũƠơ]"), "vi"),
]
_CJK_ANY = re.compile(r"[一-鿿぀-ゟ゠-ヿ가-힯]")
_HAN = re.compile(r"[一-鿿]")

# Applied in order on every pass; &amp; goes first so "&amp;lt;" collapses to "<" in one pass
_HTML_ENTITIES = [
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#34;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
    ("&amp;nbsp;", " "),
]
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

_SENTENCE_SPLIT_RE = re.compile(r"[。.!]")
_PROMO_RE = re.compile(r"为我助力|boostme|点赞|like|订阅|subscribe", re.IGNORECASE)
_MIN_SENTENCE_LENGTH = 10
_MAX_SENTENCES = 2
_FALLBACK_LENGTH = 100


def detect_language(text: str) -> str:
    """Guess a 2-letter language code from the Unicode scripts present. Defaults to "en"."""
    if not text:
        return "en"
    if _CJK_ANY.search(text):
        # Any Han character means Chinese, even when mixed with kana or hangul
        if _HAN.search(text):
            return "zh"
    for pattern, code in _SCRIPT_RANGES:
        if pattern.search(text):
            return code
    return "en"


def _decode_entities(text: str) -> str:
    previous = None
    while text != previous:
        previous = text
        for entity, replacement in _HTML_ENTITIES:
            text = text.replace(entity, replacement)
    return text


def clean_html_text(text: str) -> str:
    """Decode entities to a fixed point, strip tags and collapse whitespace.

    Stripping a tag can glue the halves of an entity back together, so decoding
    and stripping repeat until neither changes the text.
    """
    if not text or not isinstance(text, str):
        return text
    previous = None
    result = text
    while result != previous:
        previous = result
        result = _TAG_RE.sub("", _decode_entities(result))
    return _WHITESPACE_RE.sub(" ", result).strip()


def truncate_description(text: str, max_length: int = 300) -> str:
    """Shorten text to at most max_length chars, preferring a sentence or clause boundary."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    if max_length < 3:
        return text[:max(0, max_length)]

    truncated = text[:max_length]
    threshold = max_length * 0.8

    last_period = truncated.rfind(".")
    if last_period > threshold:
        return truncated[:last_period + 1]
    last_newline = truncated.rfind("\n")
    if last_newline > threshold:
        return truncated[:last_newline]
    last_comma = truncated.rfind(",")
    if last_comma > threshold:
        return truncated[:last_comma]

    return truncated[:max_length - 3] + "..."


def extract_description(raw: str) -> str:
    """Pick up to two meaningful sentences out of a raw (possibly HTML) description.

    Sentences shorter than 10 chars or that look like promotional asks
    ("like", "subscribe", ...) are skipped. Falls back to the first 100 chars.
    """
    if not raw:
        return ""
    cleaned = clean_html_text(raw)

    sentences = []
    for fragment in _SENTENCE_SPLIT_RE.split(cleaned):
        s = fragment.strip()
        if len(s) < _MIN_SENTENCE_LENGTH:
            continue
        if _PROMO_RE.search(s):
            continue
        sentences.append(s)
        if len(sentences) == _MAX_SENTENCES:
            break

    if sentences:
        return ". ".join(sentences)
    return cleaned[:_FALLBACK_LENGTH] + ("..." if len(cleaned) > _FALLBACK_LENGTH else "")
