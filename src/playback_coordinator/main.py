#!/usr/bin/env python3
"""Entry point: load settings, configure logging, run the bot until shutdown."""

from __future__ import annotations

import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from playback_coordinator.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from playback_coordinator.config.settings import Settings

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    """Apply ``logging_config.json``, or a plain stderr config if it is unusable.

    The level from settings always wins over the file's root level.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(config_path) as f:
            logging.config.dictConfig(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.warning("Could not load %s, falling back to basic config", config_path)

    logging.getLogger().setLevel(level)


def check_runtime(settings: Settings) -> None:
    """Warn about missing FFmpeg and create the song directory when downloading."""
    if shutil.which("ffmpeg") is None:
        logger.warning(LogTemplates.FFMPEG_MISSING)

    if settings.audio.download:
        Path(settings.audio.download_dir).mkdir(parents=True, exist_ok=True)


def main() -> int:
    from playback_coordinator.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    logger.info(
        LogTemplates.CONFIG_SUMMARY,
        "download" if settings.audio.download else "stream",
        settings.queue.max_queue_size,
        settings.voting.skip_ratio,
        settings.driver.tick_seconds,
    )
    check_runtime(settings)

    from playback_coordinator.config.container import create_container
    from playback_coordinator.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)

    try:
        logger.info(LogTemplates.BOT_STARTING_RUN)
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    return 0


def cli() -> None:
    """Console script entry point (``playback-coordinator``)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
