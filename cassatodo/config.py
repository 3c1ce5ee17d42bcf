from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from typing import Any

DEFAULT_PORT = 9042
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_SETTINGS_FILE = "appsettings.json"

# Keyspace names are interpolated into DDL, so only plain unquoted identifiers pass
_KEYSPACE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]{0,47}$")


class ConfigError(ValueError):
    """Raised at startup when required settings are missing or malformed."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("invalid configuration: " + "; ".join(self.problems))


@dataclass(slots=True)
class AppConfig:
    contact_point: str
    keyspace: str
    port: int = DEFAULT_PORT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT


def _read_settings_file(path: str | None, problems: list[str]) -> dict[str, Any]:
    """Read the ``Cassandra`` section of a JSON settings file.

    An explicitly named file must exist; the default ``appsettings.json`` is
    optional. Problems are appended to ``problems`` rather than raised.
    """
    explicit = bool(path)
    path = path or DEFAULT_SETTINGS_FILE
    if not os.path.exists(path):
        if explicit:
            problems.append(f"settings file not found: {path}")
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        problems.append(f"settings file {path} unreadable: {exc}")
        return {}
    section = data.get("Cassandra") if isinstance(data, dict) else None
    return section if isinstance(section, dict) else {}


def _pick(env: dict[str, Any], env_key: str, section: dict[str, Any], file_key: str) -> str:
    raw = env.get(env_key)
    if raw is None or not str(raw).strip():
        raw = section.get(file_key)
    return "" if raw is None else str(raw).strip()


def load_config(
    env: dict[str, str] | None = None,
    overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Merge env vars over the settings file, then ``overrides`` over both.

    ``overrides`` holds CLI flag values keyed by ``AppConfig`` field name;
    ``None`` entries are ignored. Validation runs once over the merged values.
    """
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    problems: list[str] = []
    section = _read_settings_file(e.get("CASSANDRA_SETTINGS_FILE"), problems)
    raw: dict[str, Any] = {
        "contact_point": _pick(e, "CASSANDRA_CONTACT_POINT", section, "ContactPoint"),
        "keyspace": _pick(e, "CASSANDRA_KEYSPACE", section, "KeyspaceName"),
        "port": _pick(e, "CASSANDRA_PORT", section, "Port"),
        "connect_timeout": _pick(e, "CASSANDRA_CONNECT_TIMEOUT", section, "ConnectTimeout"),
    }
    for key, value in (overrides or {}).items():
        if value is not None and key in raw:
            raw[key] = value
    return build_config(**raw, problems=problems)


def build_config(
    *,
    contact_point: str,
    keyspace: str,
    port: str | int = "",
    connect_timeout: str | float = "",
    problems: list[str] | None = None,
) -> AppConfig:
    """Validate raw settings and return an ``AppConfig``.

    Every problem, including any passed in from loading, is collected so a
    single error names all of them.
    """
    problems = list(problems or [])
    if not contact_point:
        problems.append("contact point is required (CASSANDRA_CONTACT_POINT)")
    if not keyspace:
        problems.append("keyspace is required (CASSANDRA_KEYSPACE)")
    elif not _KEYSPACE_RE.match(keyspace):
        problems.append(f"keyspace {keyspace!r} is not a valid CQL identifier")

    port_val = DEFAULT_PORT
    if str(port).strip():
        try:
            port_val = int(port)
        except (TypeError, ValueError):
            problems.append(f"port {port!r} is not an integer")
        else:
            if not 1 <= port_val <= 65535:
                problems.append(f"port {port_val} is out of range")

    timeout_val = DEFAULT_CONNECT_TIMEOUT
    if str(connect_timeout).strip():
        try:
            timeout_val = float(connect_timeout)
        except (TypeError, ValueError):
            problems.append(f"connect timeout {connect_timeout!r} is not a number")
        else:
            if timeout_val <= 0:
                problems.append("connect timeout must be positive")

    if problems:
        raise ConfigError(problems)
    return AppConfig(
        contact_point=contact_point,
        keyspace=keyspace,
        port=port_val,
        connect_timeout=timeout_val,
    )


__all__ = ["AppConfig", "ConfigError", "build_config", "load_config"]
