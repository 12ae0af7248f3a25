"""
Politica de indices compuestos del store.

Una consulta con predicados de igualdad y ``order_by`` sobre un campo
distinto necesita un indice ``(campos de igualdad..., campo de orden)``
declarado. Ambos backends aplican la misma politica para comportarse
como el store de produccion.
"""
from typing import FrozenSet, Iterable, Optional, Sequence, Set, Tuple

from app.domain.repositories.document_store import StoreQuery


IndexKey = Tuple[str, FrozenSet[str], str]


class CompositeIndexRegistry:
    """Registro de indices compuestos declarados por coleccion."""

    def __init__(self, indexes: Optional[Iterable[Tuple[str, Sequence[str]]]] = None):
        self._indexes: Set[IndexKey] = set()
        for collection, index_fields in indexes or ():
            self.declare(collection, index_fields)

    def declare(self, collection: str, index_fields: Sequence[str]) -> None:
        """
        Declara un indice. El ultimo campo es el de orden.

        Args:
            collection: Coleccion a la que aplica
            index_fields: Campos de igualdad seguidos del campo de orden
        """
        if len(index_fields) < 2:
            raise ValueError("Un indice compuesto necesita al menos dos campos")
        *equality, order_field = index_fields
        self._indexes.add((collection, frozenset(equality), order_field))

    def required_fields(self, query: StoreQuery) -> Optional[Tuple[str, ...]]:
        """
        Campos del indice que la consulta necesita, o None si no necesita.
        """
        equality = {f.field for f in query.filters}
        if not equality or not query.order_by:
            return None
        if equality == {query.order_by}:
            return None
        equality.discard(query.order_by)
        return tuple(sorted(equality)) + (query.order_by,)

    def missing_index(self, query: StoreQuery) -> Optional[Tuple[str, ...]]:
        """Campos del indice requerido y no declarado, o None."""
        required = self.required_fields(query)
        if required is None:
            return None
        key = (query.collection, frozenset(required[:-1]), required[-1])
        return None if key in self._indexes else required

    def __len__(self) -> int:
        return len(self._indexes)
