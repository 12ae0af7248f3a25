"""
Entidades del dominio.
"""
from app.domain.entities.athlete import (
    Athlete,
    AthleteContact,
    AthleteFilters,
    AthleteMedia,
    BulkAction,
    PaginationState,
)

__all__ = [
    "Athlete",
    "AthleteContact",
    "AthleteFilters",
    "AthleteMedia",
    "BulkAction",
    "PaginationState",
]
