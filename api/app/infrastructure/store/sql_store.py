"""
Store de documentos sobre SQLAlchemy (async).

Cada documento es una fila de ``documents`` con el cuerpo en una columna
JSON. Los predicados de igualdad y el orden se traducen a expresiones JSON
portables (SQLite / PostgreSQL).
"""
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.repositories.document_store import (
    DocumentSnapshot,
    IDocumentStore,
    IWriteBatch,
    SnapshotCallback,
    StoreQuery,
    Unsubscribe,
)
from app.infrastructure.database.models import DocumentModel
from app.infrastructure.store.indexes import CompositeIndexRegistry
from app.infrastructure.store.listeners import SnapshotListenerRegistry
from app.infrastructure.store.memory_store import new_document_id
from app.shared.exceptions.store import (
    BatchCommitError,
    DocumentNotFoundError,
    IndexRequiredError,
    StoreError,
)


def _json_field(name: str, value: Any):
    """Expresion tipada para comparar un campo del cuerpo JSON."""
    element = DocumentModel.data[name]
    if isinstance(value, bool):
        return element.as_boolean()
    if isinstance(value, int):
        return element.as_integer()
    if isinstance(value, float):
        return element.as_float()
    return element.as_string()


class SqlWriteBatch(IWriteBatch):
    """Lote confirmado en una unica transaccion."""

    def __init__(self, store: "SqlDocumentStore"):
        self._store = store
        self._ops: List[Tuple[str, str, str, Optional[Dict[str, Any]]]] = []

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> "SqlWriteBatch":
        self._ops.append(("update", collection, doc_id, dict(fields)))
        return self

    def delete(self, collection: str, doc_id: str) -> "SqlWriteBatch":
        self._ops.append(("delete", collection, doc_id, None))
        return self

    async def commit(self) -> None:
        touched = set()
        try:
            async with self._store.session_factory() as session:
                async with session.begin():
                    for kind, collection, doc_id, fields in self._ops:
                        if kind == "update":
                            await self._store._merge(session, collection, doc_id, fields)
                        else:
                            await session.execute(
                                delete(DocumentModel).where(
                                    DocumentModel.collection == collection,
                                    DocumentModel.id == doc_id,
                                )
                            )
                        touched.add(collection)
        except (DocumentNotFoundError, SQLAlchemyError) as e:
            raise BatchCommitError(str(e)) from e

        logger.debug(f"Lote SQL confirmado: {len(self._ops)} escrituras")
        for collection in touched:
            await self._store.listeners.notify(collection)


class SqlDocumentStore(IDocumentStore):
    """Implementacion del store de documentos con SQLAlchemy."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        indexes: Optional[CompositeIndexRegistry] = None,
    ):
        """
        Args:
            session_factory: Fabrica de sesiones async
            indexes: Indices compuestos declarados
        """
        self.session_factory = session_factory
        self.indexes = indexes or CompositeIndexRegistry()
        self.listeners = SnapshotListenerRegistry(self._run)

    def _check_index(self, query: StoreQuery) -> None:
        missing = self.indexes.missing_index(query)
        if missing is not None:
            raise IndexRequiredError(query.collection, missing)

    @staticmethod
    def _where(query: StoreQuery) -> list:
        clauses = [DocumentModel.collection == query.collection]
        for f in query.filters:
            clauses.append(_json_field(f.field, f.value) == f.value)
        if query.order_by:
            clauses.append(DocumentModel.data[query.order_by].as_string().is_not(None))
        return clauses

    async def _run(self, query: StoreQuery) -> List[DocumentSnapshot]:
        stmt = select(DocumentModel).where(*self._where(query))

        if query.order_by:
            order_col = DocumentModel.data[query.order_by].as_string()
            if query.descending:
                stmt = stmt.order_by(order_col.desc(), DocumentModel.id.desc())
            else:
                stmt = stmt.order_by(order_col.asc(), DocumentModel.id.asc())
        else:
            stmt = stmt.order_by(DocumentModel.id.asc())

        cursor = query.start_after
        if cursor is not None:
            if query.order_by:
                order_col = DocumentModel.data[query.order_by].as_string()
                value = cursor.data.get(query.order_by)
                if query.descending:
                    stmt = stmt.where(or_(order_col < value, and_(order_col == value, DocumentModel.id < cursor.id)))
                else:
                    stmt = stmt.where(or_(order_col > value, and_(order_col == value, DocumentModel.id > cursor.id)))
            else:
                stmt = stmt.where(DocumentModel.id > cursor.id)

        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreError(f"Error consultando '{query.collection}': {e}") from e
        return [DocumentSnapshot(id=row.id, data=dict(row.data or {})) for row in rows]

    @staticmethod
    async def _merge(session: AsyncSession, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        row = await session.get(DocumentModel, (collection, doc_id))
        if row is None:
            raise DocumentNotFoundError(collection, doc_id)
        # Reasignar para que SQLAlchemy detecte el cambio en la columna JSON
        row.data = {**(row.data or {}), **fields}

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = new_document_id()
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add(DocumentModel(collection=collection, id=doc_id, data=dict(data)))
        except SQLAlchemyError as e:
            raise StoreError(f"Error creando documento en '{collection}': {e}") from e
        await self.listeners.notify(collection)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        try:
            async with self.session_factory() as session:
                row = await session.get(DocumentModel, (collection, doc_id))
        except SQLAlchemyError as e:
            raise StoreError(f"Error leyendo {collection}/{doc_id}: {e}") from e
        if row is None:
            return None
        return DocumentSnapshot(id=row.id, data=dict(row.data or {}))

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self._merge(session, collection, doc_id, fields)
        except SQLAlchemyError as e:
            raise StoreError(f"Error actualizando {collection}/{doc_id}: {e}") from e
        await self.listeners.notify(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(DocumentModel).where(
                            DocumentModel.collection == collection,
                            DocumentModel.id == doc_id,
                        )
                    )
        except SQLAlchemyError as e:
            raise StoreError(f"Error eliminando {collection}/{doc_id}: {e}") from e
        await self.listeners.notify(collection)

    async def query(self, query: StoreQuery) -> List[DocumentSnapshot]:
        self._check_index(query)
        return await self._run(query)

    async def count(self, query: StoreQuery) -> int:
        self._check_index(query)
        stmt = select(func.count()).select_from(DocumentModel).where(*self._where(query))
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise StoreError(f"Error contando '{query.collection}': {e}") from e

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self)

    async def on_snapshot(self, query: StoreQuery, callback: SnapshotCallback) -> Unsubscribe:
        self._check_index(query)
        return await self.listeners.subscribe(query, callback)
