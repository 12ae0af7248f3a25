"""
Backends del store de documentos.
"""
from app.infrastructure.store.indexes import CompositeIndexRegistry
from app.infrastructure.store.memory_store import InMemoryDocumentStore
from app.infrastructure.store.sql_store import SqlDocumentStore
from app.infrastructure.store.store_manager import StoreManager

__all__ = [
    "CompositeIndexRegistry",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
    "StoreManager",
]
