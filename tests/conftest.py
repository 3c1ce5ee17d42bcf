from __future__ import annotations

import os
import shutil
import subprocess
import time
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any

import pytest

from tests.helpers.session import FakeCluster, InMemorySession, ready_session

# Captured before per-test isolation strips CASSANDRA_* from the environment
_ENV_CONTACT_POINT = os.getenv("CASSANDRA_CONTACT_POINT")


@pytest.fixture(scope="session")
def docker_compose_file(pytestconfig: pytest.Config) -> str:
    return os.path.join(str(pytestconfig.rootpath), "docker-compose.yml")


@pytest.fixture(scope="session")
def docker_compose_project_name() -> str:
    """Use a dedicated project name so the test cluster never collides with a dev one."""
    return "cassatodo_test"


@pytest.fixture(scope="session", autouse=True)
def _compose_fixed_test_ports() -> None:
    """Default the test cluster to a non-conflicting host port (dev uses 9042)."""
    os.environ.setdefault("CASSANDRA_HOST_PORT", "19042")


@pytest.fixture(autouse=True)
def _isolated_config_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep a developer's appsettings.json and CASSANDRA_* vars out of unit tests."""
    monkeypatch.chdir(tmp_path)
    for key in (
        "CASSANDRA_CONTACT_POINT",
        "CASSANDRA_KEYSPACE",
        "CASSANDRA_PORT",
        "CASSANDRA_SETTINGS_FILE",
        "CASSANDRA_CONNECT_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def session() -> InMemorySession:
    return ready_session("demo")


@pytest.fixture()
def fake_cluster(monkeypatch: pytest.MonkeyPatch) -> type[FakeCluster]:
    import cassatodo.db.connection as connection

    FakeCluster.instances.clear()
    monkeypatch.setattr(connection, "Cluster", FakeCluster)
    return FakeCluster


def _wait_until(timeout_s: float, pause_s: float, check: Callable[[], bool]) -> bool:
    deadline = time.time() + timeout_s
    while time.time() < deadline:
        if check():
            return True
        time.sleep(pause_s)
    return False


def _cassandra_ping(host: str, port: int) -> bool:
    try:
        from cassandra.cluster import Cluster

        cluster = Cluster(contact_points=[host], port=port, connect_timeout=2)
        try:
            cluster.connect()
            return True
        finally:
            cluster.shutdown()
    except Exception:
        return False


@lru_cache(maxsize=1)
def _local_cassandra_available() -> bool:
    host = _ENV_CONTACT_POINT or "127.0.0.1"
    return _cassandra_ping(host, 9042)


@pytest.fixture(scope="session")
def cassandra_contact_point(request: pytest.FixtureRequest) -> tuple[str, int]:
    """Provide a reachable (host, port), preferring env/local, otherwise Docker.

    Priority:
    1) CASSANDRA_CONTACT_POINT env if reachable on 9042
    2) 127.0.0.1:9042 if reachable
    3) pytest-docker ``cassandra`` service (if Docker available)
    """
    env_host = _ENV_CONTACT_POINT
    if env_host and _wait_until(10.0, 0.5, lambda: _cassandra_ping(env_host, 9042)):
        return env_host, 9042

    if _wait_until(3.0, 0.5, lambda: _cassandra_ping("127.0.0.1", 9042)):
        return "127.0.0.1", 9042

    if _docker_available():
        docker_services: Any = request.getfixturevalue("docker_services")
        port = docker_services.port_for("cassandra", 9042)
        docker_services.wait_until_responsive(
            timeout=180.0, pause=2.0, check=lambda: _cassandra_ping("127.0.0.1", port)
        )
        return "127.0.0.1", port

    pytest.skip("Cassandra not available locally and Docker not available")


@lru_cache(maxsize=1)
def _docker_available() -> bool:
    """Ensure the `docker` CLI exists and `docker ps` succeeds."""
    if os.environ.get("FORCE_DOCKER_TESTS") == "1":
        return True

    docker = shutil.which("docker")
    if not docker:
        return False

    try:
        proc = subprocess.run(
            [docker, "ps", "-q"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=3,
        )
        return proc.returncode == 0
    except Exception:
        return False


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-skip integration tests when no cluster can be reached or started."""
    needs_check = any("integration" in item.keywords for item in items)
    if not needs_check:
        return
    reachable = _local_cassandra_available() or _docker_available()
    if reachable:
        return
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(
                pytest.mark.skip(
                    reason="Cassandra not available; set CASSANDRA_CONTACT_POINT or start Docker"
                )
            )
