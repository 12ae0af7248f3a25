"""
Casos de uso de la aplicacion.
"""
from .athlete_use_cases import AthleteUseCases
from .athlete_directory import AthleteDirectory

__all__ = ["AthleteUseCases", "AthleteDirectory"]
