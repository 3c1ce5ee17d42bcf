from __future__ import annotations

import argparse
import random
import shutil
import subprocess
import sys
from typing import Any

from cassatodo.config import AppConfig, ConfigError, load_config
from cassatodo.observability import configure_driver_logging, get_json_logger


def _run(cmd: list[str]) -> int:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        # Print concise stderr on failure to aid debugging without spamming output
        if proc.returncode != 0 and proc.stderr:
            sys.stderr.write(proc.stderr.strip() + "\n")
        return int(proc.returncode)
    except OSError as exc:
        sys.stderr.write(f"error: failed to run {' '.join(cmd)}: {exc}\n")
        return 1


def ensure_cassandra() -> int:
    """Ensure the docker compose ``cassandra`` service is up.

    Returns 0 on success; non-zero on failure.
    """
    if shutil.which("docker") is None:
        sys.stderr.write("docker not found in PATH. Install Docker to run a local cluster.\n")
        return 1
    return _run(["docker", "compose", "up", "-d", "cassandra"])


def _resolve_config(args: Any) -> AppConfig:
    """Layer CLI flags over env/settings-file configuration."""
    return load_config(
        overrides={
            "contact_point": getattr(args, "contact_point", None),
            "keyspace": getattr(args, "keyspace", None),
            "port": getattr(args, "port", None),
        }
    )


def _cmd_demo(cfg: AppConfig, args: Any) -> int:
    from cassatodo.demo import run

    rng = random.Random(args.seed) if args.seed is not None else None
    run(cfg, rng)
    return 0


def _cmd_init(cfg: AppConfig, args: Any) -> int:
    from cassatodo.db import CassandraConnection, drop_keyspace, initialize_schema

    with CassandraConnection(cfg) as session:
        drop_keyspace(session, cfg.keyspace)
        initialize_schema(session, cfg.keyspace)
    return 0


def _cmd_list(cfg: AppConfig, args: Any) -> int:
    from cassatodo.db import CassandraConnection
    from cassatodo.demo import print_todos
    from cassatodo.store import CassandraTodoStore

    with CassandraConnection(cfg) as session:
        session.set_keyspace(cfg.keyspace)
        print_todos(CassandraTodoStore(session).load_all())
    return 0


def _add_connection_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--contact-point", help="Cassandra host (overrides CASSANDRA_CONTACT_POINT)")
    p.add_argument("--keyspace", help="Keyspace name (overrides CASSANDRA_KEYSPACE)")
    p.add_argument("--port", type=int, help="Native protocol port (default 9042)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("cassatodo")
    sub = parser.add_subparsers(dest="cmd")

    p_demo = sub.add_parser(
        "demo", help="Drop and recreate the keyspace, then seed, update and delete todos"
    )
    _add_connection_args(p_demo)
    p_demo.add_argument("--seed", type=int, help="Seed for the random update/delete choices")

    p_init = sub.add_parser("init", help="Drop and recreate the keyspace, table and indexes")
    _add_connection_args(p_init)

    p_list = sub.add_parser("list", help="Print every todo in an existing keyspace")
    _add_connection_args(p_list)

    sub.add_parser("ensure", help="Start a local single-node Cassandra via docker compose")
    return parser


_COMMANDS = {"demo": _cmd_demo, "init": _cmd_init, "list": _cmd_list}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    cmd = str(getattr(args, "cmd", None) or "demo")

    if cmd == "ensure":
        raise SystemExit(ensure_cassandra())

    if getattr(args, "cmd", None) is None:
        # Bare invocation behaves like `demo` with no overrides
        args = parser.parse_args(["demo", *(argv or [])])

    try:
        cfg = _resolve_config(args)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        raise SystemExit(2) from exc

    configure_driver_logging()
    get_json_logger("cassatodo").info(
        "config loaded",
        extra={
            "event": "config_loaded",
            "contact_point": cfg.contact_point,
            "keyspace": cfg.keyspace,
            "attributes": {"port": cfg.port, "connect_timeout": cfg.connect_timeout},
        },
    )
    raise SystemExit(_COMMANDS[cmd](cfg, args))


__all__ = ["build_parser", "ensure_cassandra", "main"]
