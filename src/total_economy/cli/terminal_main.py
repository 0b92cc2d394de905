"""
Economy Shell Entry Point

This module provides the `total-economy` console entry point. It loads the
configuration, sets up logging and runs the interactive admin shell.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from total_economy.cogs.economy.main import TotalEconomyPlugin
from total_economy.core.config import load_config
from total_economy.core.errors import AppError
from total_economy.core.logging import get_logger, initialize_logging, shutdown_logging

from .interactive import InteractiveShell


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="total-economy",
        description="Interactive administration shell for player economy accounts"
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        help="Configuration file to load (YAML or JSON)"
    )
    parser.add_argument(
        "--environment",
        choices=["development", "testing", "production"],
        help="Configuration environment (defaults to TE_ENVIRONMENT or development)"
    )
    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the admin shell

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(environment=args.environment, config_file=args.config_file)
        initialize_logging(config)
    except AppError as e:
        print(f"❌ Configuration error: {e.message}", file=sys.stderr)
        return 2

    logger = get_logger("main")
    logger.info(f"Starting Total Economy shell ({config.environment.value})")

    shell = InteractiveShell(TotalEconomyPlugin(config))
    try:
        async with shell.session():
            await shell.start()
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted by user")
    except AppError as e:
        logger.error(f"Shell stopped: {e}", exc_info=True)
        print(f"❌ {e.message}", file=sys.stderr)
        return 1
    finally:
        logging.getLogger("total_economy").info("Economy shell ended")
        shutdown_logging()

    return 0


def run() -> None:
    """Console script entry point"""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
