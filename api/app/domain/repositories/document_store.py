"""
Interfaz del store de documentos.
Define el contrato que debe cumplir cualquier backend (memoria, SQL, ...).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class DocumentSnapshot:
    """Documento leido del store: id asignado por el store + cuerpo."""

    id: str
    data: Dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class FieldFilter:
    """Predicado de igualdad sobre un campo del documento."""

    field: str
    value: Any


@dataclass(frozen=True)
class StoreQuery:
    """
    Consulta sobre una coleccion.

    El orden siempre se desempata por id del documento en la misma direccion
    que ``order_by``; ``start_after`` usa esa misma clave.
    """

    collection: str
    filters: Tuple[FieldFilter, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None
    start_after: Optional[DocumentSnapshot] = None

    def with_limit(self, limit: Optional[int]) -> "StoreQuery":
        return StoreQuery(self.collection, self.filters, self.order_by, self.descending, limit, self.start_after)

    def after(self, cursor: Optional[DocumentSnapshot]) -> "StoreQuery":
        return StoreQuery(self.collection, self.filters, self.order_by, self.descending, self.limit, cursor)

    def unfiltered(self) -> "StoreQuery":
        """Misma coleccion sin predicados, orden, limite ni cursor."""
        return StoreQuery(self.collection)


SnapshotCallback = Callable[[List[DocumentSnapshot]], Union[None, Awaitable[None]]]
Unsubscribe = Callable[[], None]


class IWriteBatch(ABC):
    """Lote de escrituras que se confirma de forma atomica."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> "IWriteBatch":
        """Agrega una actualizacion parcial (merge) al lote."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> "IWriteBatch":
        """Agrega un borrado al lote."""

    @abstractmethod
    async def commit(self) -> None:
        """
        Confirma el lote completo.

        Raises:
            BatchCommitError: Si alguna escritura falla; no se aplica ninguna
        """


class IDocumentStore(ABC):
    """
    Interfaz del store de documentos sin esquema.
    Operaciones asincronas; los listeners reciben snapshots completos.
    """

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """
        Crea un documento con id asignado por el store.

        Returns:
            str: ID del documento creado
        """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """Obtiene un documento o None si no existe."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """
        Actualizacion parcial: los campos omitidos no se tocan.

        Raises:
            DocumentNotFoundError: Si el documento no existe
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Elimina un documento (no falla si no existe)."""

    @abstractmethod
    async def query(self, query: StoreQuery) -> List[DocumentSnapshot]:
        """
        Ejecuta una consulta.

        Raises:
            IndexRequiredError: Si la consulta necesita un indice no declarado
        """

    @abstractmethod
    async def count(self, query: StoreQuery) -> int:
        """Cuenta los documentos que cumplen la consulta (ignora limite/cursor)."""

    @abstractmethod
    def batch(self) -> IWriteBatch:
        """Crea un lote de escrituras vacio."""

    @abstractmethod
    async def on_snapshot(self, query: StoreQuery, callback: SnapshotCallback) -> Unsubscribe:
        """
        Registra una consulta en vivo.

        Entrega el snapshot inicial antes de retornar y luego, de forma
        asincrona, uno completo tras cada escritura que afecte a la
        coleccion. Devuelve la funcion para cancelar.

        Raises:
            IndexRequiredError: Si la consulta necesita un indice no declarado
        """
