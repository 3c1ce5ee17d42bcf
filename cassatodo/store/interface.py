from __future__ import annotations

import uuid
from collections.abc import Iterable

from cassatodo.models.todo import Todo


class TodoStore:
    """Pluggable Todo store interface.

    Concrete implementations own every read and write of ``Todo`` rows.
    """

    def load(self, todo_id: uuid.UUID) -> Todo | None:  # pragma: no cover - interface only
        raise NotImplementedError

    def load_all(
        self, todo_ids: Iterable[uuid.UUID] | None = None
    ) -> list[Todo]:  # pragma: no cover - interface only
        raise NotImplementedError

    def insert(self, todo: Todo) -> Todo:  # pragma: no cover - interface only
        raise NotImplementedError

    def update(
        self,
        todo_id: uuid.UUID,
        *,
        task: str | None = None,
        completed: bool | None = None,
    ) -> Todo | None:  # pragma: no cover - interface only
        raise NotImplementedError

    def delete(self, todo_id: uuid.UUID) -> bool:  # pragma: no cover - interface only
        raise NotImplementedError


__all__ = ["TodoStore"]
