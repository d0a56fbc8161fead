#!/usr/bin/env python3
"""
Entry point for running the Song Battle web server.

Usage:
    python run_web.py [--host HOST] [--port PORT] [--data-dir DIR] [--avoid-recent]
                      [--export-dir DIR] [--reload]

Examples:
    python run_web.py                    # Run on localhost:8000
    python run_web.py --port 3000        # Run on localhost:3000
    python run_web.py --data-dir ~/music # Use another collection
    python run_web.py --avoid-recent     # Rotate opponents in balanced duels
    python run_web.py --reload           # Auto-reload on code changes
"""
import argparse
import logging
import os

import uvicorn

from songbattle.utils.config import (
    ENV_AVOID_RECENT, ENV_DATA_DIR, ENV_EXPORT_DIR, ENV_SEED
)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Run the Song Battle web server")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help=f"Directory holding the database (default: ${ENV_DATA_DIR} or data)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible pairings"
    )
    parser.add_argument(
        "--avoid-recent",
        action="store_true",
        help="Avoid each track's last opponents in balanced duels"
    )
    parser.add_argument(
        "--export-dir",
        type=str,
        default=None,
        help=f"Directory for playlist exports (default: ${ENV_EXPORT_DIR} or <data-dir>/exports)"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload on code changes"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def export_settings(args, environ=None):
    """
    Hand command line settings to the app through the environment.

    The app builds its SongBattleConfig from the environment on startup,
    which also reaches uvicorn worker processes started with --reload.
    """
    environ = os.environ if environ is None else environ

    if args.data_dir:
        environ[ENV_DATA_DIR] = args.data_dir
    if args.seed is not None:
        environ[ENV_SEED] = str(args.seed)
    if args.avoid_recent:
        environ[ENV_AVOID_RECENT] = "1"
    if args.export_dir:
        environ[ENV_EXPORT_DIR] = args.export_dir


def main():
    args = parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    export_settings(args)

    print(f"Starting Song Battle web server at http://{args.host}:{args.port}")
    print(f"API documentation: http://{args.host}:{args.port}/docs")
    print()

    uvicorn.run(
        "songbattle.web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
