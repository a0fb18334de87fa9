"""Logfire and stdlib logging setup shared by the agent and the HTTP app."""

from __future__ import annotations

import logging
import os

import logfire

SERVICE_NAME = "gwen"

_LOGFIRE_READY = False


def _route_stdlib_logging() -> None:
    """Forward ``logging`` records to Logfire next to the console output."""

    root = logging.getLogger()
    if any(isinstance(handler, logfire.LogfireLoggingHandler) for handler in root.handlers):
        return
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root.addHandler(logfire.LogfireLoggingHandler())


def _ensure_logfire() -> None:
    """Configure Logfire once; spans are only exported when a token is present."""

    global _LOGFIRE_READY
    if _LOGFIRE_READY:
        return
    token = os.getenv("LOGFIRE_API_KEY")
    if token:
        logfire.configure(token=token, service_name=SERVICE_NAME)
    else:
        logfire.configure(send_to_logfire="if-token-present", service_name=SERVICE_NAME)
    _route_stdlib_logging()
    _LOGFIRE_READY = True


__all__ = ["SERVICE_NAME", "_ensure_logfire"]
