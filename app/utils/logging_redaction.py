"""
Logging redaction helpers.
Redacts credentials and one-time payment links from log messages.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable


_PATTERNS: Iterable[tuple[re.Pattern, str]] = (
    # Authorization: Bearer <token>
    (re.compile(r"(Bearer\s+)([A-Za-z0-9\-\._~+/]+=*)"), r"\1[REDACTED]"),
    # OAuth client credentials in form bodies or config dumps
    (re.compile(r"(?i)(client[_-]?secret|access_token)(['\"]?\s*[:=]\s*['\"]?)([A-Za-z0-9\-\._~+/]+)"), r"\1\2[REDACTED]"),
    # One-time access links grant payment access without a login
    (re.compile(r"(?i)([?&](?:token|otp|code)=)([^&\s'\"]+)"), r"\1[REDACTED]"),
)


def redact_message(message: str) -> str:
    redacted = message
    for pattern, replacement in _PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


class RedactingFilter(logging.Filter):
    """Filter that redacts sensitive data from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Malformed format args; let the handler report it
            return True
        record.msg = redact_message(message)
        record.args = ()
        return True


def install_redaction_filter() -> None:
    """Attach the filter to every root handler (filters on the root logger
    itself are skipped for records propagated from child loggers)."""
    root = logging.getLogger()
    for handler in root.handlers:
        if not any(isinstance(f, RedactingFilter) for f in handler.filters):
            handler.addFilter(RedactingFilter())
