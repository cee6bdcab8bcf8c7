from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

SENSITIVE_KEYS = ("password", "senha", "token", "secret", "apikey", "service_role")


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    fmt = "%(message)s" if json_logs else "%(asctime)s %(levelname)s %(name)s %(message)s"
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=fmt)


def _redact(payload: dict[str, Any]) -> dict[str, Any]:
    clean: dict[str, Any] = {}
    for key, value in payload.items():
        if any(token in key.lower() for token in SENSITIVE_KEYS):
            clean[key] = "***"
        elif isinstance(value, dict):
            clean[key] = _redact(value)
        else:
            clean[key] = value
    return clean


def log_json(logger: logging.Logger, payload: dict, level: int = logging.INFO) -> None:
    logger.log(level, json.dumps(_redact(payload), ensure_ascii=False, default=str))


def log_action(
    logger: logging.Logger,
    *,
    module: str,
    action: str,
    outcome: str,
    **fields: Any,
) -> None:
    payload: dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "module": module,
        "action": action,
        "outcome": outcome,
    }
    payload.update({key: value for key, value in fields.items() if value is not None})
    level = logging.WARNING if outcome == "error" else logging.INFO
    log_json(logger, payload, level=level)
