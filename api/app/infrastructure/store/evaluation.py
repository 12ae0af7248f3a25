"""
Evaluacion en memoria de consultas: igualdad, orden estable y cursores.
"""
from typing import Any, List, Tuple

from app.domain.repositories.document_store import DocumentSnapshot, StoreQuery


def _rank(value: Any) -> Tuple[int, Any]:
    # Orden de tipos: null < booleano < numero < texto
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    return (3, str(value))


def order_key(doc: DocumentSnapshot, order_by: str) -> Tuple[Tuple[int, Any], str]:
    """Clave de orden (campo, id) usada tanto para ordenar como para cursores."""
    return (_rank(doc.data.get(order_by)), doc.id)


def matches_filters(doc: DocumentSnapshot, query: StoreQuery) -> bool:
    return all(f.field in doc.data and doc.data[f.field] == f.value for f in query.filters)


def evaluate(docs: List[DocumentSnapshot], query: StoreQuery) -> List[DocumentSnapshot]:
    """
    Aplica filtros, orden, cursor y limite como lo haria el store.

    Los documentos sin el campo de orden quedan fuera del resultado.
    """
    result = [d for d in docs if matches_filters(d, query)]
    if query.order_by:
        result = [d for d in result if query.order_by in d.data]
        result.sort(key=lambda d: order_key(d, query.order_by), reverse=query.descending)
    else:
        result.sort(key=lambda d: d.id)

    if query.start_after is not None:
        if query.order_by:
            cursor_key = order_key(query.start_after, query.order_by)
            if query.descending:
                result = [d for d in result if order_key(d, query.order_by) < cursor_key]
            else:
                result = [d for d in result if order_key(d, query.order_by) > cursor_key]
        else:
            result = [d for d in result if d.id > query.start_after.id]

    if query.limit is not None:
        result = result[: query.limit]
    return result
