"""
Adapters layer - Entity store clients (hosted REST API and in-memory).
"""

from .http_entity_store import HttpEntityStore
from .memory_entity_store import MemoryEntityStore

__all__ = ["HttpEntityStore", "MemoryEntityStore"]
