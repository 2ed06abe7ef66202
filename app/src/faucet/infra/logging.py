import logging
import time
from typing import Any

logger = logging.getLogger("faucet")

# monotonic so uptime survives wall-clock adjustments
_STARTED_AT = time.monotonic()
_MAX_VALUE_CHARS = 400


def format_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\n", "↵")[:_MAX_VALUE_CHARS]
    if not text or any(ch in text for ch in " =\t\""):
        return '"' + text.replace('"', "'") + '"'
    return text


def format_event(event: str, **fields: Any) -> str:
    uptime = time.monotonic() - _STARTED_AT
    pairs = [("event", event), ("uptime_s", f"{uptime:.1f}")] + list(fields.items())
    return " ".join(f"{key}={format_value(value)}" for key, value in pairs)


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Faucet events as one key=value line, e.g.

    event=grant_recorded uptime_s=12.3 user_id=42 address=0xab...
    """
    logger.log(level, format_event(event, **fields))


__all__ = ["logger", "log_event", "format_event"]
