"""Graph store adapters."""

from .base import GraphStore, MutationTransaction
from .memory import InMemoryStore
from .neo4j_store import Neo4jStore

__all__ = ["GraphStore", "InMemoryStore", "MutationTransaction", "Neo4jStore"]
