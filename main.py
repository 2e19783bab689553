"""Application entry point.

Initializes the fortune database and runs one maintenance or draw command::

    python main.py stats
    python main.py draw <user_token>
    python main.py history <user_token>
    python main.py reinit
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Optional, Sequence

from config import Config, load_config
from core import get_logger, setup_logger
from services import CatalogManager, CooldownActive, DrawSuccess

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fortune draw core")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("stats", help="Show database and cache statistics")
    draw = commands.add_parser("draw", help="Draw a fortune for a user token")
    draw.add_argument("user_token")
    history = commands.add_parser("history", help="List a user's draws")
    history.add_argument("user_token")
    commands.add_parser("reinit", help="Clear all draws and reseed the catalog")
    return parser


async def run(args: argparse.Namespace, config: Config) -> None:
    logger.info("Fortune core starting (%s environment)", config.environment)
    manager = CatalogManager.from_config(config)
    await manager.initialize()
    try:
        if args.command == "stats":
            stats = await manager.get_database_stats()
            healthy = await manager.check_connection()
            logger.info(
                "fortunes=%s draws=%s users=%s healthy=%s",
                stats.fortune_count, stats.user_draw_count, stats.unique_users, healthy,
            )
            logger.info("cache: %s", manager.get_cache_stats())
        elif args.command == "draw":
            outcome = await manager.draw_fortune(args.user_token)
            if isinstance(outcome, DrawSuccess):
                logger.info("#%s [%s] %s", outcome.id, outcome.category, outcome.text)
            elif isinstance(outcome, CooldownActive):
                logger.info("Please wait %s more seconds", outcome.remaining)
            else:
                logger.info("%s: %s", type(outcome).__name__, outcome.message)
        elif args.command == "history":
            for entry in await manager.get_draw_history(args.user_token):
                logger.info("%s #%s %s", entry.timestamp.isoformat(), entry.fortune_id, entry.text)
        elif args.command == "reinit":
            await manager.reinitialize()
            logger.info("Catalog reinitialized")
    finally:
        await manager.close()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    config = load_config()
    setup_logger(level=config.log_level, log_file=config.log_file)
    try:
        asyncio.run(run(args, config))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
