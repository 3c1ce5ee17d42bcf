from __future__ import annotations

from types import TracebackType

from cassandra.cluster import Cluster, Session

from cassatodo.config import AppConfig
from cassatodo.observability import get_json_logger

logger = get_json_logger("cassatodo.db")


class CassandraConnection:
    """Owns one ``Cluster``/``Session`` pair for the lifetime of a ``with`` block.

    The cluster is shut down on every exit path, including when the body raises.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._cluster: Cluster | None = None
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("connection is not open")
        return self._session

    def open(self) -> Session:
        if self._session is not None:
            return self._session
        cfg = self._config
        cluster = Cluster(
            contact_points=[cfg.contact_point],
            port=cfg.port,
            connect_timeout=cfg.connect_timeout,
        )
        try:
            session = cluster.connect()
        except Exception:
            logger.error(
                "failed to connect to cassandra",
                exc_info=True,
                extra={"event": "cassandra_connect_failed", "contact_point": cfg.contact_point},
            )
            cluster.shutdown()
            raise
        self._cluster = cluster
        self._session = session
        logger.info(
            "connected to cassandra",
            extra={"event": "cassandra_connected", "contact_point": cfg.contact_point},
        )
        return session

    def close(self) -> None:
        cluster = self._cluster
        self._cluster = None
        self._session = None
        if cluster is None:
            return
        cluster.shutdown()
        logger.info(
            "cassandra connection closed",
            extra={"event": "cassandra_closed", "contact_point": self._config.contact_point},
        )

    def __enter__(self) -> Session:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["CassandraConnection"]
