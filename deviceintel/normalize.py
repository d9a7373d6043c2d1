from typing import List, Optional

# Values a reduced or spoofed user agent reports instead of a real model
MASKED_MODELS = {"", "k", "unknown", "generic", "android"}

FLAG_TRUE_VALUES = {"true", "yes", "y", "1"}


def normalize_text(s: str) -> str:
    return " ".join(s.strip().casefold().split())


def clean(value: Optional[str]) -> Optional[str]:
    """Trim a signal value; empty strings become None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def is_masked_model(model: Optional[str]) -> bool:
    if model is None:
        return True
    return normalize_text(model) in MASKED_MODELS


def contains(haystack: Optional[str], needle: str) -> bool:
    if not haystack:
        return False
    return needle.casefold() in haystack.casefold()


def tokenize(term: str, min_length: int = 3) -> List[str]:
    """Whitespace tokens at least min_length characters long."""
    return [t for t in term.split() if len(t) >= min_length]


def like_pattern(term: str) -> str:
    """Substring LIKE pattern with % and _ escaped (escape char is backslash)."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def parse_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in FLAG_TRUE_VALUES


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(str(value).strip()))
    except ValueError:
        return None


def round_ratio(ratio) -> Optional[int]:
    """Round a device pixel ratio to the nearest integer (halves round up)."""
    if ratio is None or isinstance(ratio, bool):
        return None
    try:
        value = float(ratio)
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None
    return int(value + 0.5)
