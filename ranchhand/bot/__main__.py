"""
ranchhand.bot.__main__ — Entry point for ``python -m ranchhand.bot``
====================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine, ensure tables exist, seed the default
   report schedule.
4. Create the RanchBot and hand it config + engine + webhook URL.
5. Start the bot (blocking — runs the asyncio event loop).

Run with::

    python -m ranchhand.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from ranchhand.bot.core import RanchBot
from ranchhand.config import load_config
from ranchhand.database.engine import create_db_engine, init_db

logger = logging.getLogger("ranchhand")


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )


def main() -> None:
    """Bootstrap and run the Ranchhand bot."""

    # 1. Environment variables (secrets).
    load_dotenv()
    configure_logging()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config(os.getenv("RANCHHAND_CONFIG", "config.yaml"))
    logger.info("Config loaded — Ranch: %s (tz %s)", cfg.ranch_name, cfg.timezone)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine, cfg.default_schedule)

    # 4. Bot.
    bot = RanchBot(cfg=cfg, engine=engine, webhook_url=os.getenv("REPORT_WEBHOOK_URL") or None)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Ranchhand bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
