"""Secret redaction for text that leaves the gateway (logs and results)."""

from __future__ import annotations

import re
from typing import Tuple

_SECRET_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"api[_-]?keys?[=:]\s*[^\s&]+", re.IGNORECASE), "api_key=***"),
    (re.compile(r"tokens?[=:]\s*[^\s&]+", re.IGNORECASE), "token=***"),
    (re.compile(r"secrets?[=:]\s*[^\s&]+", re.IGNORECASE), "secret=***"),
    (re.compile(r"passwords?[=:]\s*[^\s&]+", re.IGNORECASE), "password=***"),
)


def sanitize_error(message: str) -> str:
    """Replace secret-looking ``key=value`` pairs with a redacted marker."""
    text = str(message)
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
