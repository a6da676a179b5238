# taskreport/core/normalize.py
"""
Record normalization helpers.

The backend stores several multi-valued or formatted fields as free text
(responsible parties as a JSON list in a string, comment bodies as HTML,
tree positions that may be missing). Everything that has to interpret those
encodings lives here so the filters and the tree builder only see plain
Python values.
"""

import json
import re
import unicodedata
from datetime import date, datetime, timedelta
from typing import Any, List, Optional, Tuple

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_SCRIPT_RE = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[^>]*>[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")

# Only the entities the backend editor emits; anything else stays literal.
_ENTITIES = {
    "&nbsp;": " ",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
}

# Letters NFKD does not decompose into base + combining mark.
_LETTER_FOLDS = str.maketrans({"đ": "d", "ð": "d", "ø": "o", "ł": "l", "æ": "ae", "œ": "oe", "ß": "ss"})


def parse_responsible_list(raw: Any) -> Optional[List[Any]]:
    """Return `raw` as a list, decoding JSON text if needed; None when it is not a list."""
    if raw is None or raw == "":
        return None
    value = raw
    if isinstance(raw, (str, bytes)):
        try:
            value = json.loads(raw)
        except ValueError:
            return None
    if isinstance(value, tuple):
        value = list(value)
    return value if isinstance(value, list) else None


def is_responsible_for(raw: Any, identity: Optional[str]) -> bool:
    """Case-insensitive, trimmed membership test of `identity` in an encoded list."""
    if not identity or not identity.strip():
        return False
    values = parse_responsible_list(raw)
    if values is None:
        return False
    target = identity.strip().lower()
    return any(str(v).strip().lower() == target for v in values)


def strip_html(content: Optional[str]) -> str:
    """Plain text of an HTML fragment, used for keyword matching."""
    text = _STYLE_RE.sub("", content or "")
    text = _SCRIPT_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    for entity, char in _ENTITIES.items():
        text = text.replace(entity, char)
    # &amp; last so "&amp;lt;" decodes to "&lt;" and not "<"
    text = text.replace("&amp;", "&")
    return text.strip()


def sanitize_html(content: Optional[str]) -> str:
    """Drop script and style blocks but keep the rest of the markup for display."""
    text = _SCRIPT_RE.sub("", content or "")
    return _STYLE_RE.sub("", text)


def as_flag(value: Any) -> bool:
    """Coerce 0/1 style flags ("1", 1, True, None, "") to bool."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    try:
        return bool(int(float(value)))
    except (TypeError, ValueError):
        return False


def has_position(task: dict) -> bool:
    lft = task.get("lft")
    return isinstance(lft, int) and not isinstance(lft, bool)


def collation_key(text: Optional[str]) -> Tuple[str, str, str]:
    """
    Case- and accent-insensitive sort key: letters sort by their base form
    first ("Ánh" next to "Anh", "Đóng" among the D's), then accented after
    plain, then by the raw text so the ordering stays total.
    """
    value = unicodedata.normalize("NFC", text or "")
    folded = value.casefold()
    base = "".join(
        ch for ch in unicodedata.normalize("NFKD", folded.translate(_LETTER_FOLDS))
        if not unicodedata.combining(ch)
    )
    return base, folded, value


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string, raising ValueError otherwise."""
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def date_bounds(from_date: Optional[str], to_date: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Timestamp bounds for a creation-date range: `from` is inclusive at 00:00:00,
    `to` covers its whole day (exclusive bound at 00:00:00 of the next day).
    """
    lower = upper = None
    if from_date:
        lower = datetime.combine(parse_date(from_date), datetime.min.time()).strftime(TIMESTAMP_FORMAT)
    if to_date:
        next_day = parse_date(to_date) + timedelta(days=1)
        upper = datetime.combine(next_day, datetime.min.time()).strftime(TIMESTAMP_FORMAT)
    return lower, upper


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse backend creation timestamps ("YYYY-MM-DD HH:MM:SS[.ffffff]" or ISO)."""
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("T", " "))
    except ValueError:
        return None
    # Offsets are dropped: bounds are compared against the recorded wall-clock time.
    return parsed.replace(tzinfo=None)


def safe_token(identity: str) -> str:
    """Replace every non-alphanumeric character so the value fits in a file name."""
    return re.sub(r"[^a-zA-Z0-9]", "_", identity or "")

