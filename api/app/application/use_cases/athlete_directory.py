"""
Estado del directorio de atletas para un cliente.

Mantiene filtros, numero de pagina (solo para mostrar), el cursor de cada
pagina ya visitada y la lista visible. Puede funcionar paginando contra
el store o en vivo (suscripcion que entrega la lista completa).
"""
import dataclasses
import inspect
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from app.application.services.live_subscription import AthleteListState, Subscription
from app.application.use_cases.athlete_use_cases import AthleteUseCases
from app.core.config import settings
from app.domain.entities.athlete import Athlete, AthleteFilters, PaginationState
from app.shared.exceptions.base import AppException
from app.shared.exceptions.domain import ValidationException


ChangeCallback = Callable[["AthleteDirectory"], Any]


class AthleteDirectory:
    """
    Orquesta filtros, paginacion y suscripcion en vivo del directorio.

    Un fallo al cargar no vacia la lista: se conserva la ultima lista
    valida y se expone el error en ``error``.
    """

    def __init__(
        self,
        use_cases: AthleteUseCases,
        page_size: int = None,
        on_change: Optional[ChangeCallback] = None,
    ):
        self.use_cases = use_cases
        self.filters = AthleteFilters.directory_default()
        self.pagination = PaginationState(page_size=page_size or settings.DEFAULT_PAGE_SIZE)
        self.state = AthleteListState()
        self.error: Optional[str] = None
        self.used_fallback = False
        self.on_change = on_change

        # Token para pedir la pagina N; la pagina 1 no lleva cursor
        self._cursors: Dict[int, Optional[str]] = {1: None}
        self._subscription: Optional[Subscription] = None
        self._live = False
        self._live_items: List[Athlete] = []

    @property
    def athletes(self) -> List[Athlete]:
        return list(self.state.items)

    @property
    def is_live(self) -> bool:
        return self._live

    # ------------------------------------------------------------------
    # Carga paginada
    # ------------------------------------------------------------------

    async def load(self) -> List[Athlete]:
        """
        Recalcula el total y vuelve a cargar la pagina actual.

        Se usa tras cambiar filtros y tras cualquier mutacion.
        """
        try:
            if self.is_live:
                self.error = None
                # El snapshot inicial de la suscripcion ya notifica
                await self._open_subscription()
                return self.athletes
            total = await self.use_cases.get_athletes_count(self.filters)
            self.pagination.recompute(total)
            self._cursors = {1: None}
            page = min(self.pagination.page, max(self.pagination.total_pages, 1))
            await self._fetch_page(page)
            self.error = None
        except AppException as e:
            self._fail(e)
        await self._notify()
        return self.athletes

    refresh = load
    after_mutation = load

    async def go_to_page(self, page: int) -> List[Athlete]:
        """
        Muestra la pagina ``page`` (1-based).

        Sin cursor conocido para esa pagina se recorren las anteriores en
        orden para obtenerlo.
        """
        try:
            last = max(self.pagination.total_pages, 1)
            if page < 1 or page > last:
                raise ValidationException(f"La pagina {page} no existe (1-{last})", field="page")
            if self.is_live:
                self.pagination.page = page
                self.state.apply_snapshot(self._live_slice())
            else:
                await self._fetch_page(page)
            self.error = None
        except AppException as e:
            self._fail(e)
        await self._notify()
        return self.athletes

    async def next_page(self) -> List[Athlete]:
        if self.pagination.page >= self.pagination.total_pages:
            return self.athletes
        return await self.go_to_page(self.pagination.page + 1)

    async def previous_page(self) -> List[Athlete]:
        if self.pagination.page <= 1:
            return self.athletes
        return await self.go_to_page(self.pagination.page - 1)

    async def _cursor_for(self, page: int) -> Optional[str]:
        known = max(p for p in self._cursors if p <= page)
        cursor = self._cursors[known]
        while known < page:
            result = await self.use_cases.get_athletes(self.filters, self.pagination.page_size, cursor)
            if not result.has_more:
                raise ValidationException(f"La pagina {page} no existe", field="page")
            known += 1
            cursor = result.next_cursor
            self._cursors[known] = cursor
        return cursor

    async def _fetch_page(self, page: int) -> None:
        cursor = await self._cursor_for(page)
        result = await self.use_cases.get_athletes(self.filters, self.pagination.page_size, cursor)
        if result.has_more:
            self._cursors[page + 1] = result.next_cursor
        self.pagination.page = page
        self.used_fallback = result.used_fallback
        self.state.apply_snapshot(result.athletes)

    # ------------------------------------------------------------------
    # Filtros
    # ------------------------------------------------------------------

    async def set_filter(self, **changes: Any) -> List[Athlete]:
        """
        Cambia uno o varios filtros y vuelve a la pagina 1.

        Raises:
            ValidationException: Si algun filtro no existe
        """
        known = {f.name for f in dataclasses.fields(AthleteFilters)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationException(f"Filtro desconocido: {', '.join(sorted(unknown))}", field="filters")
        self.filters = dataclasses.replace(self.filters, **changes)
        self.pagination.page = 1
        return await self.load()

    async def clear_filters(self) -> List[Athlete]:
        """Vuelve a los filtros por defecto del directorio."""
        self.filters = AthleteFilters.directory_default()
        self.pagination.page = 1
        return await self.load()

    # ------------------------------------------------------------------
    # Modo en vivo
    # ------------------------------------------------------------------

    async def start_live(self) -> None:
        """Pasa a recibir la lista completa en cada cambio del store."""
        try:
            await self._open_subscription()
            self.error = None
        except AppException as e:
            self._fail(e)
            await self._notify()

    async def stop_live(self) -> None:
        """Cancela la suscripcion en vivo (idempotente)."""
        self._live = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.debug("Suscripcion en vivo del directorio cancelada")

    async def _open_subscription(self) -> None:
        await self.stop_live()
        # El snapshot inicial se entrega antes de que retorne la suscripcion
        self._live = True
        try:
            self._subscription = await self.use_cases.subscribe_to_athletes(self.filters, self._on_live_snapshot)
        except Exception:
            self._live = False
            raise
        # La ruta usada se conoce despues del snapshot inicial
        if self._subscription.used_fallback != self.used_fallback:
            self.used_fallback = self._subscription.used_fallback
            await self._notify()

    def _live_slice(self) -> List[Athlete]:
        start = (self.pagination.page - 1) * self.pagination.page_size
        return self._live_items[start:start + self.pagination.page_size]

    def _on_live_snapshot(self, athletes: List[Athlete]):
        self._live_items = list(athletes)
        self.pagination.recompute(len(self._live_items))
        self.pagination.page = min(self.pagination.page, max(self.pagination.total_pages, 1))
        self.state.apply_snapshot(self._live_slice())
        return self._notify()

    # ------------------------------------------------------------------

    def _fail(self, error: AppException) -> None:
        self.error = error.message
        logger.warning(f"Directorio: {error.message}; se conserva la lista anterior")

    async def _notify(self) -> None:
        if self.on_change is None:
            return
        result = self.on_change(self)
        if inspect.isawaitable(result):
            await result

    def to_dict(self) -> Dict[str, Any]:
        """Vista serializable del estado actual."""
        return {
            "athletes": [athlete.to_document() | {"id": athlete.id} for athlete in self.athletes],
            "pagination": {
                "page": self.pagination.page,
                "pageSize": self.pagination.page_size,
                "total": self.pagination.total,
                "totalPages": self.pagination.total_pages,
            },
            "live": self.is_live,
            "usedFallback": self.used_fallback,
            "error": self.error,
        }
