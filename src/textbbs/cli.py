"""Command-line interface for the text BBS daemon and client."""

import argparse
import logging
import os
import signal
import sys
import threading
from dataclasses import replace

from .client import BbsClient, default_user, run_client
from .config import Config, apply_env, load_config
from .providers import SqliteRepository
from .server import BbsServer
from .transport import HttpTransport, UnixSocketTransport

MAX_PAGE_SIZE = 100


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args() -> argparse.Namespace:
    """Parse daemon command line arguments."""
    parser = argparse.ArgumentParser(
        description="text-bbs daemon - Serve a menu-driven BBS to terminal clients",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                          # Use default config
  %(prog)s -c config.yaml           # Use specific config file
  %(prog)s --socket /tmp/bbsd.sock  # Listen on a different socket
  %(prog)s --db ~/bbs.sqlite3       # Use a different database
  %(prog)s --http 8080              # Also serve the HTTP API

Env:
  BBS_SOCKET_PATH, BBS_DB_PATH, BBS_PORT (overridden by flags)
""",
    )

    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        help="Path to YAML configuration file",
    )

    parser.add_argument(
        "--socket",
        metavar="PATH",
        help="Unix socket path to listen on",
    )

    parser.add_argument(
        "--db",
        metavar="PATH",
        help="SQLite database file",
    )

    parser.add_argument(
        "--http",
        metavar="PORT",
        type=int,
        help="Serve the HTTP API on this port",
    )

    parser.add_argument(
        "--http-host",
        metavar="HOST",
        help="Interface for the HTTP API (default: 127.0.0.1)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args()


def _build_config(args: argparse.Namespace) -> Config:
    config = load_config(args.config) if args.config else Config()
    config = apply_env(config)

    # Flags win over the environment
    if args.socket:
        config = replace(config, socket_path=args.socket)
    if args.db:
        config = replace(config, db_path=args.db)
    if args.http is not None:
        config = replace(config, http_port=args.http)
    if args.http_host:
        config = replace(config, http_host=args.http_host)
    return config


def main() -> int:
    """Daemon entry point."""
    args = parse_args()
    setup_logging(args.verbose)

    logger = logging.getLogger(__name__)

    # Load configuration
    try:
        config = _build_config(args)
    except FileNotFoundError:
        logger.error(f"Config file not found: {args.config}")
        return 1
    except (ValueError, OSError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    # Open the database
    if config.db_path == ":memory:":
        db_path = config.db_path
    else:
        db_path = config.get_db_path()
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create database directory {db_path.parent}: {e}")
            return 1

    try:
        repository = SqliteRepository(db_path)
        repository.seed_defaults()
    except Exception as e:
        logger.error(f"Failed to open database {db_path}: {e}")
        return 1

    # Create components
    transports = [UnixSocketTransport(config.get_socket_path())]
    if config.http_port is not None:
        transports.append(HttpTransport(config.http_host, config.http_port))
    server = BbsServer(repository, transports, config)

    # Set up signal handlers for graceful shutdown
    stopping = threading.Event()

    def signal_handler(sig, frame):
        logger.info("Shutdown signal received")
        stopping.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Start server
    logger.info("Starting BBS daemon...")
    logger.info(f"  Database: {db_path}")
    logger.info(f"  Socket: {config.get_socket_path()}")
    if config.http_port is not None:
        logger.info(f"  HTTP: {config.http_host}:{config.http_port}")

    try:
        server.start()
        logger.info("Server running. Press Ctrl+C to stop.")

        # Keep running
        while not stopping.is_set():
            signal.pause()

    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1
    finally:
        server.stop()
        repository.close()

    return 0


def parse_client_args() -> argparse.Namespace:
    """Parse client command line arguments."""
    parser = argparse.ArgumentParser(
        description="text-bbs client - Connect to a running BBS daemon",
    )

    parser.add_argument(
        "--socket",
        metavar="PATH",
        help="Unix socket path of the daemon (env: BBS_SOCKET_PATH)",
    )

    parser.add_argument(
        "--user",
        metavar="NAME",
        help="User name to sign posts with (default: login name)",
    )

    parser.add_argument(
        "--page-size",
        metavar="N",
        type=int,
        help=f"Posts per page (1-{MAX_PAGE_SIZE})",
    )

    return parser.parse_args()


def client_main() -> int:
    """Client entry point."""
    args = parse_client_args()

    socket_path = args.socket or os.environ.get("BBS_SOCKET_PATH") or Config().socket_path
    socket_path = os.path.abspath(os.path.expanduser(socket_path))
    user = args.user or default_user()

    page_size = args.page_size
    if page_size is not None and not 0 < page_size <= MAX_PAGE_SIZE:
        page_size = None

    client = BbsClient(socket_path)
    try:
        client.connect()
    except OSError as e:
        print(f"[bbs] cannot connect to {socket_path}: {e}", file=sys.stderr)
        return 1

    try:
        return run_client(client, user, page_size)
    except KeyboardInterrupt:
        return 0
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
