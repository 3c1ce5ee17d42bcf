from __future__ import annotations

import datetime as _dt
import uuid
from collections.abc import Iterable
from typing import Any

from cassatodo.models.todo import COLUMNS, Todo
from cassatodo.observability import get_json_logger

from .interface import TodoStore

TABLE = "todos"

_SELECT_ALL = f"SELECT {', '.join(COLUMNS)} FROM {TABLE}"
_SELECT_ONE = f"{_SELECT_ALL} WHERE id = ?"
_SELECT_IN = f"{_SELECT_ALL} WHERE id IN ?"
_INSERT = (
    f"INSERT INTO {TABLE} ({', '.join(COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in COLUMNS)})"
)
_UPDATE = f"UPDATE {TABLE} SET task = ?, completed = ?, updated_at = ? WHERE id = ?"
_DELETE = f"DELETE FROM {TABLE} WHERE id = ?"


def _row_to_todo(row: Any) -> Todo:
    # Driver default row factory yields named tuples
    return Todo.model_validate(row._asdict())


class CassandraTodoStore(TodoStore):
    """Cassandra-backed Todo store.

    Works against a session whose keyspace is already set. Statements are
    prepared lazily on first use and cached per store instance; every value
    travels as a bound parameter. Driver errors propagate to the caller.
    """

    def __init__(self, session: Any) -> None:
        if session is None:
            raise ValueError("session is required")
        self._session = session
        self._prepared: dict[str, Any] = {}
        self._logger = get_json_logger("cassatodo.store")

    def _statement(self, query: str) -> Any:
        stmt = self._prepared.get(query)
        if stmt is None:
            stmt = self._session.prepare(query)
            self._prepared[query] = stmt
        return stmt

    def _execute(self, query: str, params: Iterable[Any] | None = None) -> list[Any]:
        return list(self._session.execute(self._statement(query), params))

    def load(self, todo_id: uuid.UUID) -> Todo | None:
        rows = self._execute(_SELECT_ONE, (todo_id,))
        if not rows:
            return None
        return _row_to_todo(rows[0])

    def load_all(self, todo_ids: Iterable[uuid.UUID] | None = None) -> list[Todo]:
        ids = list(dict.fromkeys(todo_ids)) if todo_ids is not None else []
        if not ids:
            rows = self._execute(_SELECT_ALL)
        else:
            rows = self._execute(_SELECT_IN, (ids,))
        return [_row_to_todo(r) for r in rows]

    def insert(self, todo: Todo) -> Todo:
        self._execute(_INSERT, tuple(getattr(todo, c) for c in COLUMNS))
        self._logger.debug(
            "todo inserted",
            extra={"event": "todo_inserted", "todo_id": str(todo.id)},
        )
        return todo

    def update(
        self,
        todo_id: uuid.UUID,
        *,
        task: str | None = None,
        completed: bool | None = None,
    ) -> Todo | None:
        current = self.load(todo_id)
        if current is None:
            return None
        if task is not None:
            current.task = task
        if completed is not None:
            current.completed = completed
        current.updated_at = _dt.datetime.now(_dt.UTC)
        self._execute(_UPDATE, (current.task, current.completed, current.updated_at, todo_id))
        self._logger.debug(
            "todo updated",
            extra={"event": "todo_updated", "todo_id": str(todo_id)},
        )
        return current

    def delete(self, todo_id: uuid.UUID) -> bool:
        if self.load(todo_id) is None:
            return False
        self._execute(_DELETE, (todo_id,))
        self._logger.debug(
            "todo deleted",
            extra={"event": "todo_deleted", "todo_id": str(todo_id)},
        )
        return True


__all__ = ["CassandraTodoStore", "TABLE"]
