"""CLI entry point for cc-query (ccq)."""

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from loguru import logger

from .config import Settings
from .errors import CcqError
from .repl import run_piped, start_interactive
from .services.database import QuerySession

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8421
LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")


def _version() -> str:
    try:
        return version("cc-query")
    except PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ccq",
        description="SQL REPL for querying Claude Code session data",
    )
    parser.add_argument(
        "project_path",
        nargs="?",
        help="Path to project (omit for all projects)",
    )
    parser.add_argument(
        "-s",
        "--session",
        help="Filter to sessions matching ID prefix",
    )
    parser.add_argument(
        "-d",
        "--data-dir",
        type=Path,
        help="Use directory directly as JSONL data source",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log discovery details to stderr",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help=(
            "Serve an HTTP query API instead of reading statements. The API runs arbitrary "
            "DuckDB SQL, including file reads and writes, with your user's permissions"
        ),
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Host to bind to with --serve (default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port to bind to with --serve (default: {DEFAULT_PORT})",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")
    return parser


def configure_logging(verbose: bool) -> None:
    """Send logs to stderr so they never mix with query output."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def serve(session: QuerySession, host: str, port: int) -> None:
    import uvicorn

    from .main import create_app

    if host not in LOOPBACK_HOSTS:
        logger.warning(f"Serving unrestricted SQL on non-loopback address {host}")
    logger.info(f"Starting cc-query API at http://{host}:{port}")
    uvicorn.run(create_app(session), host=host, port=port)


def run(args: argparse.Namespace) -> None:
    settings = Settings.from_env()
    session = QuerySession.create(
        settings,
        project_path=args.project_path,
        session_filter=args.session or None,
        data_dir=args.data_dir,
    )

    if args.serve:
        serve(session, args.host, args.port)
        return

    with session:
        if sys.stdin.isatty():
            start_interactive(session, settings.history_file)
        else:
            run_piped(session)


def main(argv: list[str] | None = None) -> int:
    """Run ccq; returns the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        run(args)
    except (CcqError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
