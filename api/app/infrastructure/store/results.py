"""
Resultado etiquetado de una operacion contra el store.

Los servicios ramifican sobre la etiqueta (``StoreOk`` /
``StoreIndexRequired`` / ``StoreFailed``) en lugar de inspeccionar
mensajes de error.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Union

from app.shared.exceptions.store import INDEX_REQUIRED_MARKER, IndexRequiredError


@dataclass(frozen=True)
class StoreOk:
    value: Any


@dataclass(frozen=True)
class StoreIndexRequired:
    detail: str


@dataclass(frozen=True)
class StoreFailed:
    detail: str
    error: BaseException


StoreOutcome = Union[StoreOk, StoreIndexRequired, StoreFailed]


def classify_store_error(error: BaseException) -> StoreOutcome:
    """
    Clasifica un error del store.

    Los clientes externos no siempre tipan este caso; se reconoce por el
    marcador documentado "requires an index" en el mensaje.
    """
    if isinstance(error, IndexRequiredError) or INDEX_REQUIRED_MARKER in str(error):
        return StoreIndexRequired(detail=str(error))
    return StoreFailed(detail=str(error), error=error)


async def attempt(operation: Awaitable[Any]) -> StoreOutcome:
    """Ejecuta una operacion del store y devuelve su resultado etiquetado."""
    try:
        return StoreOk(value=await operation)
    except Exception as e:
        return classify_store_error(e)
