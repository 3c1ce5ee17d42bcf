from __future__ import annotations

import datetime as _dt
import uuid

from pydantic import BaseModel, Field, field_validator


def _utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.UTC)


class Todo(BaseModel):
    """A single row of the ``todos`` table.

    - ``id`` is generated client-side and is the primary key
    - ``user_id`` is a plain BIGINT, there is no users table behind it
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    task: str | None = None
    completed: bool = False
    user_id: int = 0
    created_at: _dt.datetime = Field(default_factory=_utc_now)
    updated_at: _dt.datetime = Field(default_factory=_utc_now)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: _dt.datetime) -> _dt.datetime:
        # The driver hands TIMESTAMP columns back as naive UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=_dt.UTC)
        return value.astimezone(_dt.UTC)

    def summary(self) -> str:
        return f"{self.id}. {self.task} (Completed: {self.completed}, User: {self.user_id})"


COLUMNS: tuple[str, ...] = tuple(Todo.model_fields)


__all__ = ["COLUMNS", "Todo"]
