from .cassandra_store import CassandraTodoStore
from .interface import TodoStore

__all__ = ["CassandraTodoStore", "TodoStore"]
