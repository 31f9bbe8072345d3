from __future__ import annotations

import json
import logging

from app.salestrack.core.config import settings

# third-party loggers that drown the JSON request log at INFO
_NOISY_LOGGERS = ("sqlalchemy.engine", "passlib", "multipart")


def configure_logging() -> None:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger("salestrack").setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def log_json(logger: logging.Logger, payload: dict, *, level: int = logging.INFO) -> None:
    logger.log(level, json.dumps({"service": settings.APP_NAME, **payload}, ensure_ascii=False, default=str))


def log_event(logger: logging.Logger, event: str, **fields) -> None:
    """One structured line per domain event (provisioning, releases, closed periods)."""
    log_json(logger, {"event": event, **fields})
