from __future__ import annotations

import datetime as _dt
import random
import uuid

from cassatodo.config import AppConfig
from cassatodo.db import CassandraConnection, drop_keyspace, initialize_schema
from cassatodo.models.todo import Todo
from cassatodo.store import CassandraTodoStore, TodoStore

SEED_TODOS: tuple[tuple[str, bool, int], ...] = (
    ("Do something nice for someone I care about", True, 26),
    ("Memorize the fifty states and their capitals", False, 48),
    ("Watch a classic movie", False, 4),
)

UPDATED_TASK = "Keep positive mind"


def print_todos(todos: list[Todo]) -> None:
    for todo in todos:
        print(todo.summary())


def insert_dummy_todos(store: TodoStore) -> list[uuid.UUID]:
    ids: list[uuid.UUID] = []
    for task, completed, user_id in SEED_TODOS:
        now = _dt.datetime.now(_dt.UTC)
        todo = Todo(
            task=task,
            completed=completed,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        store.insert(todo)
        ids.append(todo.id)
    return ids


def update_random_todo(store: TodoStore, ids: list[uuid.UUID], rng: random.Random) -> uuid.UUID:
    """Rewrite the task of one randomly chosen id and drop it from ``ids``."""
    selected = rng.choice(ids)
    ids.remove(selected)
    store.update(selected, task=UPDATED_TASK)
    print(f"Updated task for UUID: {selected}")
    updated = store.load(selected)
    if updated is not None:
        print(updated.summary())
    return selected


def delete_random_todo(store: TodoStore, ids: list[uuid.UUID], rng: random.Random) -> uuid.UUID:
    selected = rng.choice(ids)
    store.delete(selected)
    print(f"Deleted task for UUID: {selected}")
    return selected


def run_demo(store: TodoStore, rng: random.Random | None = None) -> list[Todo]:
    """Seed, read, update and delete rows, printing each step.

    Returns the rows left after the delete.
    """
    rng = rng or random.Random()
    ids = insert_dummy_todos(store)
    print_todos(store.load_all(ids))

    update_random_todo(store, ids, rng)
    delete_random_todo(store, ids, rng)

    remaining = store.load_all()
    print_todos(remaining)
    return remaining


def run(config: AppConfig, rng: random.Random | None = None) -> list[Todo]:
    print(f"ContactPoint: {config.contact_point}")
    print(f"KeyspaceName: {config.keyspace}")
    with CassandraConnection(config) as session:
        drop_keyspace(session, config.keyspace)
        initialize_schema(session, config.keyspace)
        return run_demo(CassandraTodoStore(session), rng)


__all__ = [
    "SEED_TODOS",
    "UPDATED_TASK",
    "delete_random_todo",
    "insert_dummy_todos",
    "print_todos",
    "run",
    "run_demo",
    "update_random_todo",
]
