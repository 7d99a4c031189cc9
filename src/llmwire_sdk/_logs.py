"""Logger naming and opt-in console logging for the SDK."""

from __future__ import annotations

import logging
import os

BASE_LOGGER_NAME = "llmwire_sdk"
LOG_ENV_VAR = "LLMWIRE_LOG"

_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO}


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``llmwire_sdk`` namespace."""
    if not name or name == BASE_LOGGER_NAME:
        return logging.getLogger(BASE_LOGGER_NAME)
    if name.startswith(BASE_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{BASE_LOGGER_NAME}.{name}")


def setup_logging() -> logging.Logger:
    """Attach a stderr handler to the base logger when ``LLMWIRE_LOG`` asks for one.

    Safe to call repeatedly; the handler is only installed once.
    """
    logger = get_logger()
    level = _LEVELS.get(os.getenv(LOG_ENV_VAR, "").strip().lower())
    if level is None:
        return logger
    if not any(getattr(h, "_llmwire_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("[%(asctime)s - %(name)s:%(lineno)d - %(levelname)s] %(message)s", "%Y-%m-%d %H:%M:%S")
        )
        handler._llmwire_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
