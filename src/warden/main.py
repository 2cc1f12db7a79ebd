"""
Warden
======

Standalone runner: opens the moderation store, starts the flush scheduler and
serves the operator console until shut down. A game host embeds
:class:`~warden.runtime.WardenRuntime` the same way and feeds it player,
chat and violation events.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. WARDEN_HOME environment variable, if set.
    2. If running in a frozen/compiled context, the executable's directory.
    3. Otherwise the repository root of the source checkout.
    """
    if env_home := os.getenv("WARDEN_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
import logging

from dotenv import load_dotenv

from warden.configuration.app_configuration import AppConfig
from warden.errors import ConfigurationError
from warden.runtime import WardenRuntime
from warden.ui.console import ConsoleControl, console_session
from warden.util.logger import get_logger, handle_exception, set_console_level

logger = get_logger("main")


def load_config() -> AppConfig:
    """Load ``.env`` and the YAML configuration. Invalid configuration is fatal."""
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    config_path = Path(os.getenv("WARDEN_CONFIG") or BASE_DIR / "config" / "app_config.yml").resolve()
    config = AppConfig(config_path)
    if config.enable_debug_logging:
        set_console_level(logging.DEBUG)
    return config


async def async_main() -> int:
    """Start the runtime, serve the console, then flush and close. Returns an exit code."""
    try:
        config = load_config()
    except ConfigurationError as exc:
        logger.critical("Invalid configuration: %s", exc)
        return 1

    runtime = WardenRuntime(config)
    try:
        await runtime.start()
    except Exception as exc:
        logger.critical("Failed to start moderation runtime: %s", exc)
        await runtime.shutdown()
        return 1

    control = ConsoleControl(runtime)
    try:
        async with console_session(control):
            await control.shutdown_event.wait()
    except asyncio.CancelledError:
        logger.info("Main task cancelled; proceeding to shutdown")
    finally:
        await runtime.shutdown()
    return 0


def main() -> int:
    """Entrypoint. Returns the process exit code."""
    os.chdir(BASE_DIR)
    sys.excepthook = handle_exception
    logger.info("Starting Warden…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
