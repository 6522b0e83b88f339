"""Structured logging configuration for LinkVault.

JSON lines by default, plain text for local development. The request id set
by the request context middleware is attached to every record emitted while
that request is being served.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional


# Set by RequestContextMiddleware, read by the JSON formatter.
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")


class _JsonFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    ``extra`` fields are merged into the top-level object, so
    ``logger.info("Link created", extra={"link_id": "lnk-1"})`` yields
    ``{"link_id": "lnk-1", ...}``.
    """

    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = request_id_var.get("")
        if rid:
            payload["request_id"] = rid

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in payload:
                payload[key] = redact(value) if isinstance(value, str) else value

        if record.exc_info:
            payload["exception"] = redact(self.formatException(record.exc_info))

        return json.dumps(payload, default=str)


# ---------------------------------------------------------------------------
# Secret redaction for provider API keys and session tokens
# ---------------------------------------------------------------------------

_SECRET_PATTERNS = [
    re.compile(r'\bsk-[a-zA-Z0-9_\-]{20,}\b'),         # OpenAI-style and OpenRouter (sk-or-) keys
    re.compile(r'\bgsk_[a-zA-Z0-9]{20,}\b'),           # Groq
    re.compile(r'\bcsk-[a-zA-Z0-9]{20,}\b'),           # Cerebras
    re.compile(r'\bAIza[0-9A-Za-z_\-]{30,}'),          # Google Gemini
    re.compile(r'(?i)(bearer\s+)[a-zA-Z0-9._\-]{20,}'),  # session tokens
    re.compile(
        r'(?i)((?:api_key|secret|password|token|authorization)[=:]\s*)[^\s,\'"]{8,}'
    ),
]

_REDACTED = "***REDACTED***"


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(
            lambda m: m.group(1) + _REDACTED if m.lastindex else _REDACTED,
            text,
        )
    return text


class _SecretFilter(logging.Filter):
    """Redact secrets from the rendered message and formatted tracebacks.

    The message is rendered with its arguments before redaction.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = ()
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to INFO.
        log_format: ``"json"`` or ``"text"``. Defaults to ``"json"``.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "json").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_SecretFilter())

    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # litellm and httpx log every provider round-trip at INFO.
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "LiteLLM", "litellm", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured", extra={"level": level, "format": fmt}
    )
