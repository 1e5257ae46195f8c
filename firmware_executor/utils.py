import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now_iso() -> str:
    """Return current UTC time as ISO format string with timezone info."""
    return datetime.now(timezone.utc).isoformat()


def _safe_json_parse(response: Any):
    """Safely parse JSON response, returning dict or a raw-text envelope on failure."""
    if not getattr(response, "text", None) and not getattr(response, "content", None):
        return {}
    try:
        return response.json()
    except Exception:
        full_text = response.text if hasattr(response, "text") else str(response.content)
        # Truncate for logging purposes only
        return {"_raw_response": full_text[:2000], "_parse_error": "Not valid JSON"}


def redact_token(token: Optional[str]) -> str:
    """Mask a session token for log output."""
    if not token:
        return "<none>"
    return f"{token[:4]}***" if len(token) > 8 else "***"


def configure_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Lazily configure a stream logger with the executor's standard format."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def log_command_to_logger(log_entry: Dict[str, Any]):
    """Default command log sink: emit the audit entry on the commands logger."""
    logger = logging.getLogger("firmware_executor.commands")
    logger.debug(
        "%s %s -> %s (%sms) success=%s",
        log_entry.get("method"),
        log_entry.get("full_url"),
        log_entry.get("status_code"),
        log_entry.get("response_time_ms"),
        log_entry.get("success"),
    )
