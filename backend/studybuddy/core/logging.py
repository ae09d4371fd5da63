"""Process-wide logging setup. Modules only ever call logging.getLogger(__name__)."""

from __future__ import annotations

import logging

from studybuddy.core.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "openai")


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )
    logging.basicConfig(level=level, format=LOG_FORMAT)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
