"""
Composicion de consultas del directorio de atletas.

Traduce ``AthleteFilters`` a una ``StoreQuery`` (igualdades + orden por
``updatedAt`` descendente) y ofrece los mismos predicados en memoria para
las rutas que filtran del lado del cliente.
"""
from typing import Iterable, List

from app.domain.entities.athlete import AthleteFilters
from app.domain.repositories.document_store import DocumentSnapshot, FieldFilter, StoreQuery
from app.infrastructure.store.evaluation import order_key
from app.shared.constants.athlete_constants import ORDER_FIELD, SEARCH_FIELDS


class AthleteQueryComposer:
    """
    Construye consultas y aplica los mismos predicados en memoria.

    La busqueda de texto libre nunca va al store (no la soporta).
    """

    def __init__(self, collection: str):
        self.collection = collection

    def compose(self, filters: AthleteFilters) -> StoreQuery:
        """
        Consulta con un predicado por cada filtro concreto (no "all").

        Args:
            filters: Filtros del directorio

        Returns:
            StoreQuery: Consulta ordenada por updatedAt descendente
        """
        return StoreQuery(
            collection=self.collection,
            filters=tuple(FieldFilter(name, value) for name, value in filters.equality_predicates()),
            order_by=ORDER_FIELD,
            descending=True,
        )

    @staticmethod
    def matches_equality(doc: DocumentSnapshot, filters: AthleteFilters) -> bool:
        return all(doc.data.get(name) == value for name, value in filters.equality_predicates())

    @staticmethod
    def matches_search(doc: DocumentSnapshot, filters: AthleteFilters) -> bool:
        term = filters.search_term
        if not term:
            return True
        for name in SEARCH_FIELDS:
            value = doc.data.get(name)
            if isinstance(value, str) and term in value.lower():
                return True
        return False

    @staticmethod
    def sort_documents(docs: Iterable[DocumentSnapshot]) -> List[DocumentSnapshot]:
        """
        Orden del store: updatedAt descendente, desempate por id.
        Los documentos sin updatedAt quedan fuera, igual que en el store.
        """
        ordered = [d for d in docs if ORDER_FIELD in d.data]
        ordered.sort(key=lambda d: order_key(d, ORDER_FIELD), reverse=True)
        return ordered

    def refine(
        self,
        docs: Iterable[DocumentSnapshot],
        filters: AthleteFilters,
        equality: bool = True,
        search: bool = True,
    ) -> List[DocumentSnapshot]:
        """
        Aplica en memoria los predicados pedidos y el orden del store.

        Args:
            docs: Documentos recuperados
            filters: Filtros del directorio
            equality: Aplicar los predicados de igualdad
            search: Aplicar la busqueda de texto libre
        """
        result = [
            d for d in docs
            if (not equality or self.matches_equality(d, filters))
            and (not search or self.matches_search(d, filters))
        ]
        return self.sort_documents(result)
