"""
Store de documentos en memoria.
Implementa el contrato completo; se usa en tests y desarrollo local.
"""
import copy
import uuid
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from app.domain.repositories.document_store import (
    DocumentSnapshot,
    IDocumentStore,
    IWriteBatch,
    SnapshotCallback,
    StoreQuery,
    Unsubscribe,
)
from app.infrastructure.store.evaluation import evaluate
from app.infrastructure.store.indexes import CompositeIndexRegistry
from app.infrastructure.store.listeners import SnapshotListenerRegistry
from app.shared.exceptions.store import (
    BatchCommitError,
    DocumentNotFoundError,
    IndexRequiredError,
)


def new_document_id() -> str:
    """ID de 20 caracteres, estilo store de documentos."""
    return uuid.uuid4().hex[:20]


class InMemoryWriteBatch(IWriteBatch):
    """Lote en memoria: valida todo antes de aplicar nada."""

    def __init__(self, store: "InMemoryDocumentStore"):
        self._store = store
        self._ops: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []
        self._committed = False

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> "InMemoryWriteBatch":
        self._ops.append(("update", collection, doc_id, copy.deepcopy(fields)))
        return self

    def delete(self, collection: str, doc_id: str) -> "InMemoryWriteBatch":
        self._ops.append(("delete", collection, doc_id, None))
        return self

    async def commit(self) -> None:
        if self._committed:
            raise BatchCommitError("El lote ya fue confirmado")
        self._committed = True
        await self._store._commit_ops(self._ops)


class InMemoryDocumentStore(IDocumentStore):
    """
    Store de documentos en memoria con la misma politica de indices
    y la misma semantica de orden/cursor que el backend SQL.
    """

    def __init__(self, indexes: Optional[CompositeIndexRegistry] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.indexes = indexes or CompositeIndexRegistry()
        self.listeners = SnapshotListenerRegistry(self._run)

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _check_index(self, query: StoreQuery) -> None:
        missing = self.indexes.missing_index(query)
        if missing is not None:
            raise IndexRequiredError(query.collection, missing)

    async def _run(self, query: StoreQuery) -> List[DocumentSnapshot]:
        docs = [
            DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collection(query.collection).items()
        ]
        return evaluate(docs, query)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = new_document_id()
        self._collection(collection)[doc_id] = copy.deepcopy(data)
        await self.listeners.notify(collection)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        data = self._collection(collection).get(doc_id)
        if data is None:
            return None
        return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        docs = self._collection(collection)
        if doc_id not in docs:
            raise DocumentNotFoundError(collection, doc_id)
        docs[doc_id].update(copy.deepcopy(fields))
        await self.listeners.notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collection(collection).pop(doc_id, None)
        await self.listeners.notify(collection)

    async def query(self, query: StoreQuery) -> List[DocumentSnapshot]:
        self._check_index(query)
        return await self._run(query)

    async def count(self, query: StoreQuery) -> int:
        self._check_index(query)
        return len(await self._run(query.with_limit(None).after(None)))

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    async def _commit_ops(self, ops: List[Tuple[str, str, str, Optional[Dict[str, Any]]]]) -> None:
        # Validar primero: si algo falla no se aplica ninguna escritura
        for kind, collection, doc_id, _ in ops:
            if kind == "update" and doc_id not in self._collection(collection):
                raise BatchCommitError(str(DocumentNotFoundError(collection, doc_id)))

        touched = set()
        for kind, collection, doc_id, fields in ops:
            docs = self._collection(collection)
            if kind == "update":
                docs[doc_id].update(fields)
            else:
                docs.pop(doc_id, None)
            touched.add(collection)

        logger.debug(f"Lote confirmado: {len(ops)} escrituras")
        for collection in touched:
            await self.listeners.notify(collection)

    async def on_snapshot(self, query: StoreQuery, callback: SnapshotCallback) -> Unsubscribe:
        self._check_index(query)
        return await self.listeners.subscribe(query, callback)
