# main.py

"""Entry point for the storefront_search command-line driver."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging

logger = logging.getLogger("storefront_search.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="storefront_search",
        description=(
            "Search products, brands, and categories with local "
            "search history and trending terms."
        ),
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Search query. Omit to show recent/trending/viewed lists.",
    )
    parser.add_argument(
        "-u",
        "--user",
        default=None,
        dest="user_id",
        help="Signed-in user id (default: guest).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--clear-history",
        action="store_true",
        default=False,
        dest="clear_history",
        help="Clear recent searches locally and remotely.",
    )
    parser.add_argument(
        "--viewed",
        default=None,
        metavar="PRODUCT_JSON",
        help="Record a product view, e.g. '{\"id\": 7, \"name\": \"Tote\"}'.",
    )
    return parser


def main() -> None:
    """Dispatch to the requested runner and exit with its code."""
    log_file = setup_logging()
    logger.info("storefront_search starting, log file: %s", log_file)

    args = _build_parser().parse_args()

    from src.cli import runner

    if args.clear_history:
        coro = runner.clear_history(args.user_id)
    elif args.viewed is not None:
        coro = runner.record_view(args.viewed, args.user_id)
    elif args.query is None:
        coro = runner.show_history(args.user_id, args.output_format)
    else:
        coro = runner.cli_search(
            args.query, args.user_id, args.output_format
        )

    try:
        exit_code = asyncio.run(coro)
    except Exception:
        logger.critical("Fatal error in CLI run", exc_info=True)
        raise
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
