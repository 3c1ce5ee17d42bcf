from __future__ import annotations

from typing import Any

from cassatodo.observability import get_json_logger
from cassatodo.store.cassandra_store import TABLE

logger = get_json_logger("cassatodo.db")

CREATE_TABLE = f"""
CREATE TABLE IF NOT EXISTS {TABLE} (
    id UUID PRIMARY KEY,
    task TEXT,
    completed BOOLEAN,
    user_id BIGINT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

INDEXED_COLUMNS = ("completed", "user_id")


def drop_keyspace(session: Any, keyspace: str) -> bool:
    """Drop ``keyspace``, reporting rather than raising on failure.

    A missing keyspace is the normal first-run case, so any error here is
    printed and logged and the caller carries on. Returns True on success.
    """
    try:
        session.execute(f"DROP KEYSPACE {keyspace}")
    except Exception as exc:  # noqa: BLE001
        print(f"An error occurred: {exc}")
        logger.warning(
            "keyspace drop failed",
            extra={"event": "keyspace_drop_failed", "keyspace": keyspace},
        )
        return False
    print(f"Keyspace {keyspace} dropped successfully.")
    logger.info("keyspace dropped", extra={"event": "keyspace_dropped", "keyspace": keyspace})
    return True


def initialize_schema(session: Any, keyspace: str, replication_factor: int = 1) -> None:
    """Create keyspace, table and secondary indexes if absent.

    Leaves ``session`` bound to ``keyspace``. Failures propagate.
    """
    session.execute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} WITH REPLICATION = "
        f"{{'class': 'SimpleStrategy', 'replication_factor': {int(replication_factor)}}}"
    )
    session.set_keyspace(keyspace)
    session.execute(CREATE_TABLE)
    for column in INDEXED_COLUMNS:
        session.execute(f"CREATE INDEX IF NOT EXISTS ON {TABLE} ({column})")
    logger.info(
        "schema initialized",
        extra={"event": "schema_initialized", "keyspace": keyspace},
    )


__all__ = ["CREATE_TABLE", "INDEXED_COLUMNS", "drop_keyspace", "initialize_schema"]
