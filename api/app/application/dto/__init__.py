"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .athlete_dto import (
    AthleteCreateDTO,
    AthleteUpdateDTO,
    AthleteDTO,
    AthletePageDTO,
    AthleteCountDTO,
    AthleteStatisticsDTO,
    BulkActionRequestDTO,
    BulkActionResponseDTO,
    ImportResultDTO,
    MediaUploadResponseDTO,
)

__all__ = [
    "AthleteCreateDTO",
    "AthleteUpdateDTO",
    "AthleteDTO",
    "AthletePageDTO",
    "AthleteCountDTO",
    "AthleteStatisticsDTO",
    "BulkActionRequestDTO",
    "BulkActionResponseDTO",
    "ImportResultDTO",
    "MediaUploadResponseDTO",
]
