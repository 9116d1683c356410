from __future__ import annotations

import logging

from extrataff.config import get_settings

_LOG_CONFIGURED = False

# Libraries whose INFO output drowns the marketplace logs.
_QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "httpx")


def configure_logging(level: str | None = None) -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    settings = get_settings()
    resolved = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _LOG_CONFIGURED = True
