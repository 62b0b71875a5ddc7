from __future__ import annotations

import sys
from loguru import logger

from ai_gateway.core.settings import settings
from ai_gateway.utils.request_context import current_request_id

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "rid={extra[request_id]} | <cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def _attach_request_id(record) -> None:
    # Every line logged while serving a request carries its x-request-id.
    record["extra"].setdefault("request_id", current_request_id())


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.configure(patcher=_attach_request_id)
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=LOG_FORMAT,
        backtrace=False,
        # Exceptions can carry model replies and image payloads; keep variable dumps out.
        diagnose=False,
        serialize=bool(getattr(settings, "LOG_JSON", False)),
    )
