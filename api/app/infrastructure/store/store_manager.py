"""
Gestion centralizada del store de documentos.
Crea el backend configurado una sola vez y lo comparte entre peticiones,
de modo que las suscripciones en vivo ven todas las escrituras.
"""
from typing import Optional

from loguru import logger

from app.core.config import settings, get_composite_indexes
from app.domain.repositories.document_store import IDocumentStore
from app.infrastructure.store.indexes import CompositeIndexRegistry
from app.infrastructure.store.memory_store import InMemoryDocumentStore
from app.infrastructure.store.sql_store import SqlDocumentStore


class StoreManager:
    """
    Mantiene la instancia unica del store.

    STORE_BACKEND:
    - 'sql': SqlDocumentStore sobre DATABASE_URL
    - 'memory': InMemoryDocumentStore (datos volatiles)
    """

    _store: Optional[IDocumentStore] = None

    @classmethod
    def build(cls) -> IDocumentStore:
        """Construye un store nuevo segun la configuracion."""
        indexes = CompositeIndexRegistry(
            get_composite_indexes(settings.STORE_COMPOSITE_INDEXES, settings.ATHLETES_COLLECTION)
        )
        backend = settings.STORE_BACKEND.lower()

        if backend == "memory":
            store = InMemoryDocumentStore(indexes)
        elif backend == "sql":
            from app.infrastructure.database.session import AsyncSessionLocal

            store = SqlDocumentStore(AsyncSessionLocal, indexes)
        else:
            raise ValueError(f"STORE_BACKEND no soportado: {settings.STORE_BACKEND}")

        logger.info(f"Store de documentos '{backend}' con {len(indexes)} indices compuestos")
        return store

    @classmethod
    def get(cls) -> IDocumentStore:
        if cls._store is None:
            cls._store = cls.build()
        return cls._store

    @classmethod
    def set(cls, store: Optional[IDocumentStore]) -> None:
        """Reemplaza la instancia compartida (tests)."""
        cls._store = store

    @classmethod
    def close(cls) -> int:
        """
        Cancela las suscripciones abiertas y suelta el store.

        Returns:
            int: Numero de suscripciones canceladas
        """
        if cls._store is None:
            return 0
        closed = cls._store.listeners.clear()
        cls._store = None
        return closed
