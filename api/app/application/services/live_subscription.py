"""
Suscripciones en vivo al directorio de atletas.

Cada notificacion del store trae el resultado completo; la lista visible
se recalcula entera (sin diffs) y se vuelve a aplicar la busqueda de
texto libre. Si el store rechaza la consulta filtrada por falta de
indice, se suscribe a la coleccion completa y se filtra todo en memoria.
"""
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from app.application.services.athlete_query_composer import AthleteQueryComposer
from app.domain.entities.athlete import AthleteFilters
from app.domain.repositories.document_store import DocumentSnapshot, IDocumentStore, Unsubscribe
from app.infrastructure.store.results import StoreFailed, StoreOk, attempt


ListCallback = Callable[[List[DocumentSnapshot]], Union[None, Awaitable[None]]]


class AthleteListState:
    """
    Lista visible propiedad exclusiva de su dueno (directorio o suscriptor).

    ``apply_snapshot`` es el unico punto de mutacion; el resto solo lee.
    """

    def __init__(self):
        self._items: Tuple[Any, ...] = ()
        self._version = 0

    @property
    def items(self) -> Tuple[Any, ...]:
        return self._items

    @property
    def version(self) -> int:
        return self._version

    def apply_snapshot(self, items: Sequence[Any]) -> None:
        self._items = tuple(items)
        self._version += 1

    def __len__(self) -> int:
        return len(self._items)


class Subscription:
    """
    Manejador de una suscripcion activa.

    ``unsubscribe`` es idempotente y corta cualquier callback posterior.
    El propio objeto es invocable como la funcion de cancelacion.
    """

    def __init__(self):
        self._cancel: Optional[Unsubscribe] = None
        self._active = True
        self.used_fallback = False

    @property
    def active(self) -> bool:
        return self._active

    def bind(self, cancel: Unsubscribe, used_fallback: bool) -> None:
        self._cancel = cancel
        self.used_fallback = used_fallback
        # Cancelada durante la entrega del snapshot inicial
        if not self._active:
            cancel()

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._cancel is not None:
            self._cancel()

    __call__ = unsubscribe


class LiveSubscriptionReconciler:
    """Abre consultas en vivo y reconcilia cada snapshot con los filtros."""

    def __init__(self, store: IDocumentStore, composer: AthleteQueryComposer):
        self.store = store
        self.composer = composer

    async def subscribe(self, filters: AthleteFilters, callback: ListCallback) -> Subscription:
        """
        Suscribe ``callback`` a la lista filtrada.

        Args:
            filters: Filtros del directorio
            callback: Recibe la lista visible completa en cada cambio

        Returns:
            Subscription: Manejador con ``unsubscribe`` idempotente

        Raises:
            Exception: El error original del store si no es de indice
        """
        subscription = Subscription()

        def on_snapshot(docs: List[DocumentSnapshot], client_equality: bool):
            if not subscription.active:
                return None
            visible = self.composer.refine(docs, filters, equality=client_equality, search=True)
            return callback(visible)

        query = self.composer.compose(filters)
        outcome = await attempt(self.store.on_snapshot(query, lambda docs: on_snapshot(docs, False)))
        used_fallback = False

        if isinstance(outcome, StoreFailed):
            raise outcome.error
        if not isinstance(outcome, StoreOk):
            logger.warning(
                f"Indice requerido para la suscripcion de '{query.collection}'; "
                f"suscribiendo a la coleccion completa ({outcome.detail})"
            )
            used_fallback = True
            # Sin predicados ni orden la consulta nunca requiere indice
            cancel = await self.store.on_snapshot(query.unfiltered(), lambda docs: on_snapshot(docs, True))
        else:
            cancel = outcome.value

        subscription.bind(cancel, used_fallback)
        return subscription
