#!/usr/bin/env python3
"""
Flow Viewer - Real-time options order-flow monitor.

Usage:
    python -m flow_viewer.main --url ws://localhost:3000/ws

    Or headless (feed + periodic log summary, no TUI):
    python -m flow_viewer.main --headless

Controls:
    q - Quit
    d / c / s - Cycle direction / classification / stance filter
    x - Clear filters
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from loguru import logger

from .config import FlowConfig, configure_logging, load_config

HEADLESS_REPORT_INTERVAL_SEC = 10.0
DEFAULT_TUI_LOG_FILE = "logs/flow_viewer.log"


async def run_headless(client) -> None:
    """Run the feed and log session counts until cancelled."""
    client.start()
    while True:
        await asyncio.sleep(HEADLESS_REPORT_INTERVAL_SEC)
        s = client.session
        logger.info(
            f"state={client.state.value} counts={s.counts()} "
            f"mapped={len(s.directory)} dropped={s.dropped} ignored={s.ignored}"
        )


async def main(config: FlowConfig, headless: bool = False) -> None:
    """Main entry point - runs data feed and UI concurrently."""

    # Import here to avoid slow startup for --help
    from .datafeed.flow_client import FlowClient
    from .engine.session import FlowSession

    session = FlowSession(
        trade_capacity=config.trade_capacity,
        print_capacity=config.print_capacity,
        auto_trade_capacity=config.auto_trade_capacity,
    )
    client = FlowClient(
        session,
        url=config.ws_url,
        futures_symbols=config.futures_symbols,
        equity_symbols=config.equity_symbols,
        reconnect_delay=config.reconnect_delay,
    )

    logger.info(
        f"Starting Flow Viewer: url={config.ws_url} futures={config.futures_symbols} "
        f"equities={config.equity_symbols}"
    )

    try:
        if headless:
            await run_headless(client)
        else:
            from .ui.flow_view import run_ui

            client.start()
            # Run UI (blocks until quit)
            await run_ui(client)
    finally:
        await client.close()


def build_config(args: argparse.Namespace) -> FlowConfig:
    """Config file + environment, then CLI flags on top."""
    config = load_config(args.config)

    if args.url:
        config.ws_url = args.url
    if args.futures is not None:
        config.futures_symbols = args.futures
    if args.equities is not None:
        config.equity_symbols = args.equities
    if args.reconnect_delay is not None:
        if args.reconnect_delay < 0:
            raise ValueError(f"reconnect delay must be >= 0, got {args.reconnect_delay}")
        config.reconnect_delay = args.reconnect_delay
    if args.log_level:
        config.log_level = args.log_level
    if args.log_file:
        config.log_file = args.log_file
    elif not args.headless and not config.log_file:
        # The TUI owns the terminal
        config.log_file = DEFAULT_TUI_LOG_FILE

    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Flow Viewer - Real-time options order-flow monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m flow_viewer.main
    python -m flow_viewer.main --url ws://flow.local:3000/ws --equities SPY QQQ
    python -m flow_viewer.main --headless --log-level DEBUG
        """
    )

    parser.add_argument(
        "--url",
        help="Flow server WebSocket URL (default: ws://localhost:3000/ws)"
    )

    parser.add_argument(
        "--config",
        help="Optional YAML config file"
    )

    parser.add_argument(
        "--futures",
        nargs="*",
        help="Futures root symbols to subscribe (default: /ES /NQ)"
    )

    parser.add_argument(
        "--equities",
        nargs="*",
        help="Equity symbols to subscribe (default: SPY QQQ AAPL TSLA)"
    )

    parser.add_argument(
        "--reconnect-delay",
        type=float,
        help="Seconds to wait before reconnecting (default: 3)"
    )

    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)"
    )

    parser.add_argument(
        "--log-file",
        help=f"Log file (default: stderr headless, {DEFAULT_TUI_LOG_FILE} with the TUI)"
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the feed without the TUI"
    )

    return parser


def cli() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(config.log_level, config.log_file)

    # Run
    try:
        asyncio.run(main(config, headless=args.headless))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
