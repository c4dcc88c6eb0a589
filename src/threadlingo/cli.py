"""
Command-line interface for threadlingo.

Provides CLI commands for server management:
- init-db: Create the SQLite state schema
- config: Print the resolved configuration
- run: Start the API server

Usage:
    threadlingo init-db [--path PATH]
    threadlingo config
    threadlingo run [--port PORT] [--host HOST]

Environment Variables:
    THREADLINGO_HOST: Host to bind the API server (default: 0.0.0.0)
    THREADLINGO_PORT: Port for the API server (default: 8000)
    THREADLINGO_STATE_PATH: SQLite state file used by init-db
"""

import argparse
import sys
from collections.abc import Sequence


def cmd_init_db(args: argparse.Namespace) -> int:
    """
    Initialize the SQLite state schema.

    Creates the parent directory and the ``thread_state`` table when they
    are missing.  Safe to run repeatedly.

    Returns:
        0 on success, 1 on error
    """
    from threadlingo.config import config
    from threadlingo.state.errors import StateStoreError
    from threadlingo.state.sqlite import SqliteStateStore

    path = getattr(args, "path", None) or config.state.absolute_path
    try:
        SqliteStateStore(path).init_schema()
    except StateStoreError as e:
        print(f"Error initializing state store: {e}", file=sys.stderr)
        return 1

    print(f"State store initialized at {path}.")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the resolved configuration summary."""
    from threadlingo.config import print_config_summary

    print_config_summary()
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Run the API server.

    Configuration Priority:
        1. CLI arguments (--port, --host)
        2. Environment variables (THREADLINGO_PORT, THREADLINGO_HOST)
        3. config/server.ini
        4. Default values (8000, 0.0.0.0)

    Returns:
        0 on clean shutdown (Ctrl+C), 1 on error during startup
    """
    from threadlingo.api.server import start_server

    try:
        start_server(host=getattr(args, "host", None), port=getattr(args, "port", None))
        return 0
    except KeyboardInterrupt:
        print("\nServer stopped.")
        return 0
    except OSError as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="threadlingo",
        description="Threadlingo - conversational translation API with background evals",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init-db command
    init_parser = subparsers.add_parser(
        "init-db",
        help="Initialize the SQLite state schema",
        description="Create the thread_state table used by the sqlite state backend.",
    )
    init_parser.add_argument(
        "--path",
        type=str,
        help="State file to initialize (default: [state] path, or THREADLINGO_STATE_PATH)",
    )
    init_parser.set_defaults(func=cmd_init_db)

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show the resolved configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run the API server",
    )
    run_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="API server port (default: 8000, or THREADLINGO_PORT env var)",
    )
    run_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind the server to (default: 0.0.0.0, or THREADLINGO_HOST env var)",
    )
    run_parser.set_defaults(func=cmd_run)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
