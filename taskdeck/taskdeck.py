"""
TaskDeck — Main Reflex application entry point.

Boot sequence:
    1. _init_platform() — config, logging, diagnostic log directory
    2. Create rx.App() and register the pages
"""

import logging

import reflex as rx

from taskdeck.engine.config import load_config
from taskdeck.engine.errors import ConfigError
from taskdeck.engine.logging import init_file_logging, setup_logging
from taskdeck.ui.pages import auth_page, index_page

logger = logging.getLogger("taskdeck.startup")

# Guard: only initialize once, even if the module is re-imported
_platform_initialized = False


def _init_platform() -> None:
    """Load config and set up logging. The backend connects lazily."""
    global _platform_initialized
    if _platform_initialized:
        return
    _platform_initialized = True

    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e.message}")
        return

    setup_logging(config.logging.level)
    if config.logging.file_logging:
        init_file_logging(config.logging.directory)

    try:
        config.backend.require_credentials()
    except ConfigError as e:
        logger.warning(f"{e.message}; set TASKDECK_BACKEND_URL and TASKDECK_ANON_KEY")

    logger.info(f"TaskDeck initialized ({config.environment})")


_init_platform()

app = rx.App()
app.add_page(index_page, route="/", title="TaskDeck")
app.add_page(auth_page, route="/auth", title="TaskDeck — Sign In")
