# src/taskflow_portal/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the Portal, loads the stored snapshot (or seed
data), then runs the console front end on an asyncio loop in the main thread.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_portal, initialize
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # IMPORTANT: reuse same settings object
    portal = create_portal(settings=settings)
    initialize(portal)

    try:
        if settings.console_enabled:
            asyncio.run(run_console_loop(portal))
        else:
            logger.info("Console disabled. Snapshot at %s is ready; nothing else to run.", settings.snapshot_path)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
