"""Logging set-up for hosts embedding canonical lookups."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Attach a stderr handler to the root logger.

    Modules in this package only create loggers; call this once from the host
    process. ``force`` replaces existing handlers, which tests rely on.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)
