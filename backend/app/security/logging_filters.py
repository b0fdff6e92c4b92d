"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Authorization: Bearer\s+[\w\.-]+"
    r"|(?:access|refresh)_token[\"']?\s*[:=]\s*[\"']?[\w\.-]+[\"']?"
    r"|password[\"']?\s*[:=]\s*[\"'][^\"']+[\"'])",
    re.IGNORECASE,
)


class SensitiveFilter(logging.Filter):
    """Replace bearer tokens and passwords in log messages with a marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _SENSITIVE_PATTERN.sub("**REDACTED**", record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(_scrub(arg) for arg in record.args)
        return True


def _scrub(value: object) -> object:
    if isinstance(value, str):
        return _SENSITIVE_PATTERN.sub("**REDACTED**", value)
    return value


__all__ = ["SensitiveFilter"]
