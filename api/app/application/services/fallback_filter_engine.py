"""
Ejecucion de consultas con degradacion a filtrado en memoria.

Si el store rechaza la consulta compuesta por falta de indice, se lee la
coleccion completa y se aplican los mismos predicados en memoria. El
resultado es el mismo; el coste pasa a ser O(tamano de la coleccion).
"""
from dataclasses import dataclass
from typing import List

from loguru import logger

from app.application.services.athlete_query_composer import AthleteQueryComposer
from app.domain.entities.athlete import AthleteFilters
from app.domain.repositories.document_store import DocumentSnapshot, IDocumentStore, StoreQuery
from app.infrastructure.store.results import StoreFailed, StoreOk, attempt


@dataclass
class QueryExecution:
    """Documentos recuperados y ruta utilizada."""

    documents: List[DocumentSnapshot]
    used_fallback: bool = False


class FallbackFilterEngine:
    """Ejecuta consultas del directorio con ruta degradada ante falta de indice."""

    def __init__(self, store: IDocumentStore, composer: AthleteQueryComposer):
        self.store = store
        self.composer = composer

    async def execute(self, query: StoreQuery, filters: AthleteFilters) -> QueryExecution:
        """
        Ejecuta la consulta compuesta.

        En la ruta degradada se ignoran limite y cursor: se devuelve el
        resultado completo filtrado y ordenado, y la paginacion pasa a ser
        un corte de lista.

        Raises:
            Exception: El error original del store si no es de indice
        """
        outcome = await attempt(self.store.query(query))
        if isinstance(outcome, StoreOk):
            return QueryExecution(documents=outcome.value, used_fallback=False)
        if isinstance(outcome, StoreFailed):
            raise outcome.error

        logger.warning(
            f"Indice requerido para la consulta de '{query.collection}'; "
            f"filtrando en memoria ({outcome.detail})"
        )
        return QueryExecution(documents=await self._fetch_filtered(query, filters), used_fallback=True)

    async def count(self, query: StoreQuery, filters: AthleteFilters) -> int:
        """
        Cuenta con la misma consulta (o su ruta degradada) que ``execute``.
        """
        outcome = await attempt(self.store.count(query))
        if isinstance(outcome, StoreOk):
            return outcome.value
        if isinstance(outcome, StoreFailed):
            raise outcome.error

        logger.warning(
            f"Indice requerido para el conteo de '{query.collection}'; contando en memoria"
        )
        return len(await self._fetch_filtered(query, filters))

    async def _fetch_filtered(self, query: StoreQuery, filters: AthleteFilters) -> List[DocumentSnapshot]:
        everything = await self.store.query(query.unfiltered())
        return self.composer.refine(everything, filters, equality=True, search=False)
