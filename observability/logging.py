from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional

LOGGER_NAME = "wallet"

_service_name = "wallet"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def now_ms() -> int:
    return int(time.time() * 1000)


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def configure_logging(level: str = "info", service_name: str | None = None) -> None:
    """
    Attach a plain stream handler emitting one JSON object per line.

    `service_name` is stamped on every event. Safe to call more than once.
    """
    global _service_name
    if service_name:
        _service_name = service_name
    logger = get_logger()
    logger.setLevel(_LEVELS.get(level.strip().lower(), logging.INFO))
    if not any(getattr(h, "_wallet_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._wallet_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)


def build_log_context(**fields: Any) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


def log_event(
    event: str,
    *,
    ctx: Optional[Dict[str, Any]] = None,
    data: Optional[Dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    logger = get_logger()
    if not logger.isEnabledFor(level):
        return
    record = {"ts_ms": now_ms(), "event": event, "service": _service_name, **(ctx or {}), "data": data or {}}
    logger.log(level, json.dumps(record, sort_keys=True, default=str))
