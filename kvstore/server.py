#!/usr/bin/env python3
"""
KV-Store Server Entry Point

This is the main entry point for starting the KV-Store server.

Usage:
    python -m kvstore.server                    # Default settings (0.0.0.0:8080)
    python -m kvstore.server --port 9090        # Custom port
    python -m kvstore.server --host 127.0.0.1   # Custom host
    python -m kvstore.server --workers 16       # Bigger worker pool
    python -m kvstore.server --debug            # Enable debug logging

Environment Variables:
    KV_STORE_HOST       - Server bind address
    KV_STORE_PORT       - Server port
    KV_STORE_WORKERS    - Worker pool size
    KV_STORE_DEBUG      - Enable debug mode (true/false)
    KV_STORE_LOG_LEVEL  - Log level when not in debug mode
"""

import argparse
import asyncio
import logging
import signal
import sys

from .cache.store import KVStore
from .config.settings import settings
from .network.http_server import KVServer

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="KV-Store: Networked In-Memory Key-Value Store Server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=settings.WORKERS,
        help="Number of worker threads executing store operations",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def run(server: KVServer, loop: asyncio.AbstractEventLoop) -> None:
    """
    Run the server on the given loop until it stops, then close the loop.

    SIGINT and SIGTERM schedule a graceful stop. Every scheduled stop is
    awaited before the loop is closed, so the worker pool is always shut
    down.
    """
    shutdown_tasks = []

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    def request_shutdown(sig: signal.Signals) -> None:
        shutdown_tasks.append(loop.create_task(shutdown(sig)))

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, request_shutdown, sig)

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        if shutdown_tasks:
            loop.run_until_complete(asyncio.gather(*shutdown_tasks))
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")


def main() -> None:
    """Main entry point for the server."""
    args = parse_args()

    setup_logging(debug=args.debug)

    # The one store for the lifetime of the process
    store = KVStore()

    server = KVServer(
        host=args.host,
        port=args.port,
        store=store,
        workers=args.workers,
    )

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    print(f"Server running on port {args.port}")
    logger.info("Starting KV-Store server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Workers: {args.workers}")
    logger.info(f"  Debug: {args.debug}")

    run(server, loop)


if __name__ == "__main__":
    main()
