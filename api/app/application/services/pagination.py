"""
Paginacion del directorio por cursores.

Tres representaciones que nunca se mezclan:
- numero de pagina (``PaginationState.page``): solo para mostrar;
- ``StoreCursor``: ultimo documento visto, lo que entiende el store;
- ``OffsetCursor``: posicion en una lista filtrada en memoria (ruta
  degradada o busqueda de texto libre).
"""
import base64
import binascii
import json
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from app.application.services.athlete_query_composer import AthleteQueryComposer
from app.application.services.fallback_filter_engine import FallbackFilterEngine
from app.domain.entities.athlete import AthleteFilters
from app.domain.repositories.document_store import DocumentSnapshot
from app.infrastructure.store.evaluation import order_key
from app.shared.constants.athlete_constants import ORDER_FIELD
from app.shared.exceptions.domain import ValidationException


@dataclass(frozen=True)
class StoreCursor:
    """Referencia opaca al ultimo documento de la pagina anterior."""

    document: DocumentSnapshot


@dataclass(frozen=True)
class OffsetCursor:
    """Posicion dentro de un resultado filtrado en memoria."""

    offset: int


PageCursor = Union[StoreCursor, OffsetCursor]


def encode_cursor(cursor: Optional[PageCursor]) -> Optional[str]:
    """Serializa un cursor a un token opaco apto para URL."""
    if cursor is None:
        return None
    if isinstance(cursor, StoreCursor):
        payload = {"k": "s", "id": cursor.document.id, "v": cursor.document.data.get(ORDER_FIELD)}
    else:
        payload = {"k": "o", "n": cursor.offset}
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: Optional[str]) -> Optional[PageCursor]:
    """
    Reconstruye un cursor desde su token.

    Raises:
        ValidationException: Si el token no es valido
    """
    if not token:
        return None
    try:
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        if payload["k"] == "s":
            return StoreCursor(DocumentSnapshot(id=str(payload["id"]), data={ORDER_FIELD: payload["v"]}))
        if payload["k"] == "o":
            offset = int(payload["n"])
            if offset < 0:
                raise ValueError("offset negativo")
            return OffsetCursor(offset)
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise ValidationException(f"Cursor invalido: {e}", field="cursor") from e
    raise ValidationException("Cursor invalido", field="cursor")


@dataclass
class PageResult:
    """Pagina de documentos y cursor para la siguiente."""

    items: List[DocumentSnapshot]
    has_more: bool
    next_cursor: Optional[PageCursor] = None
    used_fallback: bool = False


class PaginationCursorManager:
    """
    Pagina sobre el store pidiendo ``page_size + 1`` documentos.

    Con busqueda de texto libre o en la ruta degradada se pagina cortando
    la lista completa filtrada, de modo que ``has_more`` es exacto y el
    conteo coincide con la suma de las paginas.
    """

    def __init__(self, engine: FallbackFilterEngine, composer: AthleteQueryComposer):
        self.engine = engine
        self.composer = composer

    async def page(
        self,
        filters: AthleteFilters,
        page_size: int,
        after: Optional[PageCursor] = None,
    ) -> PageResult:
        """
        Obtiene una pagina.

        Args:
            filters: Filtros del directorio
            page_size: Tamano de pagina (> 0)
            after: Cursor devuelto por la pagina anterior
        """
        if page_size <= 0:
            raise ValidationException("pageSize debe ser mayor que 0", field="pageSize")

        if filters.search_term or isinstance(after, OffsetCursor):
            return await self._page_in_memory(filters, page_size, after)

        query = self.composer.compose(filters).with_limit(page_size + 1)
        if isinstance(after, StoreCursor):
            query = query.after(after.document)

        execution = await self.engine.execute(query, filters)
        if execution.used_fallback:
            return self._slice(execution.documents, self._offset_after(execution.documents, after), page_size, True)

        docs = execution.documents
        has_more = len(docs) > page_size
        items = docs[:page_size]
        # El ultimo documento de esta pagina es el cursor de la siguiente
        next_cursor = StoreCursor(items[-1]) if has_more else None
        return PageResult(items=items, has_more=has_more, next_cursor=next_cursor)

    async def count(self, filters: AthleteFilters) -> int:
        """
        Total de documentos con los mismos predicados que ``page``.
        """
        if filters.search_term:
            docs, _ = await self._all_matching(filters)
            return len(docs)
        return await self.engine.count(self.composer.compose(filters), filters)

    async def _all_matching(self, filters: AthleteFilters) -> Tuple[List[DocumentSnapshot], bool]:
        execution = await self.engine.execute(self.composer.compose(filters), filters)
        docs = self.composer.refine(execution.documents, filters, equality=False, search=True)
        return docs, execution.used_fallback

    async def _page_in_memory(
        self,
        filters: AthleteFilters,
        page_size: int,
        after: Optional[PageCursor],
    ) -> PageResult:
        docs, used_fallback = await self._all_matching(filters)
        return self._slice(docs, self._offset_after(docs, after), page_size, used_fallback)

    @staticmethod
    def _offset_after(docs: List[DocumentSnapshot], after: Optional[PageCursor]) -> int:
        if after is None:
            return 0
        if isinstance(after, OffsetCursor):
            return after.offset
        # Cursor del store sobre una lista en memoria: primera posicion posterior
        cursor_key = order_key(after.document, ORDER_FIELD)
        for position, doc in enumerate(docs):
            if order_key(doc, ORDER_FIELD) < cursor_key:
                return position
        return len(docs)

    @staticmethod
    def _slice(docs: List[DocumentSnapshot], offset: int, page_size: int, used_fallback: bool) -> PageResult:
        end = offset + page_size
        has_more = end < len(docs)
        return PageResult(
            items=docs[offset:end],
            has_more=has_more,
            next_cursor=OffsetCursor(end) if has_more else None,
            used_fallback=used_fallback,
        )
