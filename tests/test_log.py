from __future__ import annotations

import io
import logging

from rich.console import Console

from takedown_insights.log import LOGGER_NAME, setup_logging


def test_setup_logging_is_idempotent_and_routes_through_rich() -> None:
    buf = io.StringIO()
    logger = setup_logging("INFO", console=Console(file=buf, width=120))
    setup_logging("DEBUG")

    logging.getLogger(f"{LOGGER_NAME}.pipeline").debug("skipped row 3")

    assert len(logger.handlers) == 1
    assert logger.propagate is False
    assert "skipped row 3" in buf.getvalue()


def test_package_loggers_are_quiet_at_info() -> None:
    buf = io.StringIO()
    setup_logging("INFO", console=Console(file=buf, width=120))

    logging.getLogger(f"{LOGGER_NAME}.pipeline").debug("hidden")

    assert "hidden" not in buf.getvalue()
