"""Logging setup with credential redaction.

All output goes to stderr; stdout belongs to the MCP stdio transport.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

REDACTED = "[REDACTED]"

_HEX_KEY = re.compile(r"\b[0-9a-fA-F]{32,64}\b")
_SECRET_PARAM = re.compile(r"\b(api_key|key|token|password)=([^&\s'\"]+)", re.IGNORECASE)
_LONG_VALUE = re.compile(r"[^=&\s/:,;'\"]{48,}")


def redact(value: Any) -> Any:
    """Mask credentials in strings and in dicts keyed by key/secret-like names."""
    if isinstance(value, str):
        value = _SECRET_PARAM.sub(lambda m: f"{m.group(1)}={REDACTED}", value)
        value = _HEX_KEY.sub("[REDACTED_KEY]", value)
        return _LONG_VALUE.sub("[REDACTED_LONG_VALUE]", value)
    if isinstance(value, dict):
        return {
            k: REDACTED if any(s in str(k).lower() for s in ("key", "secret")) else redact(v)
            for k, v in value.items()
        }
    return value


class RedactingFilter(logging.Filter):
    """Render each record and strip anything that looks like an API key."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = redact(record.args)
        message = record.getMessage()
        record.msg = redact(message)
        record.args = None
        return True


def configure_logging(level: str = "info") -> None:
    """Configure root logging once for the server process."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RedactingFilter())
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    # httpx logs every request URL at INFO, and the URL carries the key
    logging.getLogger("httpx").setLevel(logging.WARNING)
