"""Blacklist sanitization and suspicious payload detection.

These helpers run in front of schema validation. They are a coarse filter:
output escaping still belongs to whoever renders the data.
"""

import math
import re
from typing import Any

MAX_STRING_LENGTH = 1000
MAX_ARRAY_LENGTH = 100
MAX_OBJECT_DEPTH = 5
TOO_DEEP_MARKER = "[OBJECT_TOO_DEEP]"

FORBIDDEN_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"expression\s*\(", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE),
    re.compile(r"<object\b[^<]*(?:(?!</object>)<[^<]*)*</object>", re.IGNORECASE),
    re.compile(r"<embed\b[^<]*(?:(?!</embed>)<[^<]*)*</embed>", re.IGNORECASE),
    re.compile(r"<link\b[^<]*(?:(?!</link>)<[^<]*)*</link>", re.IGNORECASE),
    re.compile(r"<meta\b[^<]*(?:(?!</meta>)<[^<]*)*</meta>", re.IGNORECASE),
    re.compile(r"union\s+select", re.IGNORECASE),
    re.compile(r"drop\s+table", re.IGNORECASE),
    re.compile(r"insert\s+into", re.IGNORECASE),
    re.compile(r"update\s+set", re.IGNORECASE),
    re.compile(r"delete\s+from", re.IGNORECASE),
    re.compile(r"exec\s*\(", re.IGNORECASE),
    re.compile(r"system\s*\(", re.IGNORECASE),
    re.compile(r"shell_exec\s*\(", re.IGNORECASE),
    re.compile(r"passthru\s*\(", re.IGNORECASE),
    re.compile(r"`.*`"),
    re.compile(r"\$\(.*\)"),
    re.compile(r"\.\./"),
    re.compile(r"\.\.\\"),
]

# Subsets used to classify an attack for the security log
XSS_PATTERNS = FORBIDDEN_PATTERNS[:11]
PATH_TRAVERSAL_PATTERNS = FORBIDDEN_PATTERNS[-2:]

SQL_INJECTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"\b(SELECT\s+\*|INSERT\s+INTO|UPDATE\s+SET|DELETE\s+FROM|DROP\s+TABLE|CREATE\s+TABLE"
        r"|ALTER\s+TABLE|EXEC\s+\(|UNION\s+SELECT|SCRIPT\s+TYPE|FROM\s+information_schema"
        r"|WHERE\s+1\s*=\s*1)",
        re.IGNORECASE,
    ),
    re.compile(r"--|/\*|\*/"),
    re.compile(r"\bOR\s+['\"]?\d+['\"]?\s*=\s*['\"]?\d+['\"]?", re.IGNORECASE),
    re.compile(r"\bAND\s+['\"]?\d+['\"]?\s*=\s*['\"]?\d+['\"]?", re.IGNORECASE),
    re.compile(r"\bOR\s+['\"][a-zA-Z]+['\"]\s*=\s*['\"][a-zA-Z]+['\"]", re.IGNORECASE),
    re.compile(r"\(['\"]?\d+['\"]?\s*OR\s*['\"]?\d+['\"]?\)", re.IGNORECASE),
    re.compile(r"TRUNCATE\s+TABLE", re.IGNORECASE),
    re.compile(r"\\'|\\\""),
]

# Ordered scrub steps; "&" is escaped only when it does not already start an
# entity produced by an earlier pass, which keeps the function idempotent.
_SCRUB_STEPS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[<>]"), ""),
    (re.compile(r"javascript:", re.IGNORECASE), ""),
    (re.compile(r"on\w+\s*=", re.IGNORECASE), ""),
    (re.compile(r"vbscript:", re.IGNORECASE), ""),
    (re.compile(r"expression\s*\(", re.IGNORECASE), ""),
    (re.compile(r"eval\s*\(", re.IGNORECASE), ""),
    (re.compile(r"`"), ""),
    (re.compile(r"\$"), ""),
    (re.compile(r"\.\."), ""),
    (re.compile(r"\\"), ""),
    (re.compile(r"\r"), ""),
    (re.compile(r"&(?!(?:amp|quot|#x27|#x2F);)"), "&amp;"),
    (re.compile(r'"'), "&quot;"),
    (re.compile(r"'"), "&#x27;"),
    (re.compile(r"/"), "&#x2F;"),
]


def sanitize_string(value: Any) -> str:
    """Scrub a single string value.

    Non-string input yields an empty string.
    """
    if not isinstance(value, str):
        return ""

    sanitized = value
    for pattern, replacement in _SCRUB_STEPS:
        sanitized = pattern.sub(replacement, sanitized)
    for pattern in FORBIDDEN_PATTERNS:
        sanitized = pattern.sub("", sanitized)

    return sanitized[:MAX_STRING_LENGTH].strip()


def sanitize_object(value: Any, depth: int = 0) -> Any:
    """Recursively sanitize a decoded JSON document."""
    if depth > MAX_OBJECT_DEPTH:
        return TOO_DEEP_MARKER

    if value is None or isinstance(value, bool):
        return value

    if isinstance(value, str):
        return sanitize_string(value)

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return value

    if isinstance(value, (list, tuple)):
        return [sanitize_object(item, depth + 1) for item in value[:MAX_ARRAY_LENGTH]]

    if isinstance(value, dict):
        sanitized: dict[str, Any] = {}
        for key in list(value)[:MAX_ARRAY_LENGTH]:
            clean_key = sanitize_string(str(key))
            if clean_key:
                sanitized[clean_key] = sanitize_object(value[key], depth + 1)
        return sanitized

    return sanitize_string(str(value))


def detect_suspicious_data(data: Any) -> tuple[bool, list[str]]:
    """Walk ``data`` and report every reason it looks hostile.

    Returns:
        ``(suspicious, reasons)``
    """
    reasons: list[str] = []

    def check(value: Any, path: str) -> None:
        if isinstance(value, str):
            for pattern in FORBIDDEN_PATTERNS:
                if pattern.search(value):
                    reasons.append(f"Suspicious pattern at {path or '<root>'}: {pattern.pattern}")
            if len(value) > MAX_STRING_LENGTH:
                reasons.append(f"String too long at {path or '<root>'}: {len(value)} characters")
        elif isinstance(value, (list, tuple)):
            if len(value) > MAX_ARRAY_LENGTH:
                reasons.append(f"Array too long at {path or '<root>'}: {len(value)} items")
            for index, item in enumerate(value):
                check(item, f"{path}[{index}]")
        elif isinstance(value, dict):
            if len(value) > MAX_ARRAY_LENGTH:
                reasons.append(f"Object with too many keys at {path or '<root>'}: {len(value)}")
            for key, item in value.items():
                check(item, f"{path}.{key}")

    check(data, "")
    return bool(reasons), reasons


def detect_sql_injection(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return any(pattern.search(value) for pattern in SQL_INJECTION_PATTERNS)


def classify_attack(data: Any) -> str:
    """Name the most specific attack family found in ``data``.

    Returns one of ``"sql_injection"``, ``"xss"``, ``"path_traversal"`` or
    ``"suspicious"``.
    """
    strings = list(iter_strings(data))
    if any(detect_sql_injection(value) for value in strings):
        return "sql_injection"
    if any(p.search(value) for value in strings for p in XSS_PATTERNS):
        return "xss"
    if any(p.search(value) for value in strings for p in PATH_TRAVERSAL_PATTERNS):
        return "path_traversal"
    return "suspicious"


def iter_strings(value: Any, depth: int = 0):
    if depth > MAX_OBJECT_DEPTH:
        return
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_strings(item, depth + 1)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_strings(item, depth + 1)
