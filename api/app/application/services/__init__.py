"""
Servicios de aplicacion.

Contiene la logica del directorio reutilizable que no pertenece
a un caso de uso especifico.
"""
from app.application.services.athlete_query_composer import AthleteQueryComposer
from app.application.services.fallback_filter_engine import FallbackFilterEngine, QueryExecution
from app.application.services.pagination import (
    PaginationCursorManager,
    PageResult,
    StoreCursor,
    OffsetCursor,
)
from app.application.services.bulk_mutation_engine import BulkMutationEngine
from app.application.services.live_subscription import (
    AthleteListState,
    LiveSubscriptionReconciler,
    Subscription,
)

__all__ = [
    # Consultas
    "AthleteQueryComposer",
    "FallbackFilterEngine",
    "QueryExecution",
    # Paginacion
    "PaginationCursorManager",
    "PageResult",
    "StoreCursor",
    "OffsetCursor",
    # Mutaciones
    "BulkMutationEngine",
    # Tiempo real
    "AthleteListState",
    "LiveSubscriptionReconciler",
    "Subscription",
]
