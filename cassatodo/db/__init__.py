from .connection import CassandraConnection
from .schema import drop_keyspace, initialize_schema

__all__ = ["CassandraConnection", "drop_keyspace", "initialize_schema"]
