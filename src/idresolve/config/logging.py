"""Root logger setup for the ``idresolve`` command."""

from __future__ import annotations

import logging

# Alembic reports every migration step at INFO
_CHATTY_LOGGERS = ("alembic.runtime.migration",)


def configure_logging(*, verbose: bool = False, force: bool = False) -> None:
    """Log to stderr at INFO, or at DEBUG with rendered statements when ``verbose``."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)
