"""dagdash CLI: run the dashboard or manage configured servers.

Entry point: python -m dagdash
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

from . import __version__
from .config import (
    AIRFLOW_VERSIONS,
    BasicAuth,
    DEFAULT_TIMEOUT_SECS,
    ConfigError,
    DashConfig,
    ServerConfig,
    TokenAuth,
    get_state_dir,
    load_config,
    save_config,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger("dagdash")


def _fmt_table(rows: list[list[str]], headers: list[str]) -> str:
    """Format rows as a simple aligned table."""
    all_rows = [headers] + rows
    widths = [max(len(r[i]) for r in all_rows) for i in range(len(headers))]
    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append("  ".join(c.ljust(w) for c, w in zip(row, widths)))
    return "\n".join(lines)


def setup_logging(debug: bool = False, log_path: Path | None = None) -> Path:
    """Log to a file; the terminal belongs to the dashboard."""
    log_path = log_path or get_state_dir() / "dagdash.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_path),
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
    )
    return log_path


def _load(args: argparse.Namespace) -> DashConfig:
    try:
        return load_config(args.config)
    except ConfigError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def cmd_run(args: argparse.Namespace) -> None:
    """Start the interactive dashboard."""
    from .client import ClientRegistry
    from .events import EventSource
    from .state import AppState
    from .tui import DagDashApp
    from .worker import Worker

    config = _load(args)
    server = getattr(args, "server", None)
    if server and config.get_server(server) is None:
        print(f"Server not configured: {server}", file=sys.stderr)
        sys.exit(1)

    events = EventSource(config.tick_rate)
    registry = ClientRegistry({s.name: s for s in config.servers})
    worker = Worker(registry, events.deliver)
    state = AppState(config)
    app = DagDashApp(state, events, worker, server=server)
    try:
        app.run()
    finally:
        registry.close()
    if app.loop_error is not None:
        raise app.loop_error


def cmd_config_list(args: argparse.Namespace) -> None:
    """List configured servers."""
    config = _load(args)
    if not config.servers:
        print("No servers configured.")
        return

    headers = ["NAME", "ENDPOINT", "VERSION", "AUTH", "ACTIVE"]
    rows = []
    for s in config.servers:
        if isinstance(s.auth, BasicAuth):
            auth = f"basic ({s.auth.username})"
        elif isinstance(s.auth, TokenAuth):
            auth = "token (cmd)" if s.auth.cmd else "token"
        else:
            auth = "none"
        rows.append([s.name, s.endpoint, s.version, auth, "*" if s.name == config.active_server else ""])
    print(_fmt_table(rows, headers))


def cmd_config_add(args: argparse.Namespace) -> None:
    """Add a server, replacing any entry with the same name."""
    config = _load(args)
    if args.username:
        if args.password is None:
            print("--username needs --password", file=sys.stderr)
            sys.exit(1)
        auth = BasicAuth(username=args.username, password=args.password)
    elif args.token or args.token_cmd:
        auth = TokenAuth(token=args.token, cmd=args.token_cmd)
    else:
        auth = None

    replaced = config.get_server(args.name) is not None
    config.add_server(
        ServerConfig(
            name=args.name,
            endpoint=args.endpoint,
            version=args.airflow_version,
            auth=auth,
            timeout_secs=args.timeout,
        )
    )
    path = save_config(config, args.config)
    print(f"{'Updated' if replaced else 'Added'} {args.name} in {path}")


def cmd_config_update(args: argparse.Namespace) -> None:
    """Change fields of an existing server; options left out keep their value."""
    config = _load(args)
    server = config.get_server(args.name)
    if server is None:
        print(f"Server not configured: {args.name}", file=sys.stderr)
        sys.exit(1)

    auth = server.auth
    if args.username or args.password is not None:
        current = auth if isinstance(auth, BasicAuth) else None
        username = args.username or (current.username if current else None)
        password = args.password if args.password is not None else (current.password if current else None)
        if username is None or password is None:
            print("Basic auth needs both --username and --password", file=sys.stderr)
            sys.exit(1)
        auth = BasicAuth(username=username, password=password)
    elif args.token or args.token_cmd:
        auth = TokenAuth(token=args.token, cmd=args.token_cmd)
    elif args.no_auth:
        auth = None

    updated = dataclasses.replace(
        server,
        name=args.new_name or server.name,
        endpoint=args.endpoint or server.endpoint,
        version=args.airflow_version or server.version,
        auth=auth,
        timeout_secs=args.timeout if args.timeout is not None else server.timeout_secs,
    )
    if updated.name != server.name and config.get_server(updated.name) is not None:
        print(f"Server already configured: {updated.name}", file=sys.stderr)
        sys.exit(1)
    config.update_server(server.name, updated)
    path = save_config(config, args.config)
    print(f"Updated {updated.name} in {path}")


def cmd_config_remove(args: argparse.Namespace) -> None:
    """Remove a server by name."""
    config = _load(args)
    if not config.remove_server(args.name):
        print(f"Server not configured: {args.name}", file=sys.stderr)
        sys.exit(1)
    path = save_config(config, args.config)
    print(f"Removed {args.name} from {path}")


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dagdash",
        description="Terminal dashboard for Apache Airflow",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("--config", "-c", type=Path, help="Config file (default: $DAGDASH_CONFIG or ~/.config/dagdash/config.yaml)")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    parser.set_defaults(func=cmd_run)
    sub = parser.add_subparsers(dest="command")

    # run
    p_run = sub.add_parser("run", help="Start the dashboard (default)")
    p_run.add_argument("--server", "-s", help="Open this server directly")
    p_run.set_defaults(func=cmd_run)

    # config ...
    p_config = sub.add_parser("config", help="Manage configured servers")
    config_sub = p_config.add_subparsers(dest="config_command")
    p_config.set_defaults(func=lambda args: p_config.print_help())

    p_list = config_sub.add_parser("list", help="List servers")
    p_list.set_defaults(func=cmd_config_list)

    p_add = config_sub.add_parser("add", help="Add or replace a server")
    p_add.add_argument("name", help="Server name")
    p_add.add_argument("endpoint", help="Base URL, e.g. http://localhost:8080")
    p_add.add_argument(
        "--airflow-version",
        choices=AIRFLOW_VERSIONS,
        default="airflow2",
        help="Airflow major version (default: airflow2)",
    )
    p_add.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT_SECS, help="Request timeout in seconds")
    p_add.add_argument("--username", "-u", help="Basic auth user")
    p_add.add_argument("--password", "-p", help="Basic auth password")
    token = p_add.add_mutually_exclusive_group()
    token.add_argument("--token", help="Bearer token")
    token.add_argument("--token-cmd", help="Shell command printing a bearer token")
    p_add.set_defaults(func=cmd_config_add)

    p_update = config_sub.add_parser("update", help="Change an existing server")
    p_update.add_argument("name", help="Server name")
    p_update.add_argument("--name", dest="new_name", help="Rename the server")
    p_update.add_argument("--endpoint", help="New base URL")
    p_update.add_argument("--airflow-version", choices=AIRFLOW_VERSIONS, help="Airflow major version")
    p_update.add_argument("--timeout", type=int, help="Request timeout in seconds")
    p_update.add_argument("--username", "-u", help="Basic auth user")
    p_update.add_argument("--password", "-p", help="Basic auth password")
    auth = p_update.add_mutually_exclusive_group()
    auth.add_argument("--token", help="Bearer token")
    auth.add_argument("--token-cmd", help="Shell command printing a bearer token")
    auth.add_argument("--no-auth", action="store_true", help="Drop credentials")
    p_update.set_defaults(func=cmd_config_update)

    p_remove = config_sub.add_parser("remove", help="Remove a server")
    p_remove.add_argument("name", help="Server name")
    p_remove.set_defaults(func=cmd_config_remove)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.debug)
    try:
        args.func(args)
    except Exception:
        logger.exception("dagdash crashed")
        raise


if __name__ == "__main__":
    main()
