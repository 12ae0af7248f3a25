"""
Constantes relacionadas con atletas y el directorio.
"""
from enum import Enum


class AthleteLevel(str, Enum):
    """Niveles competitivos de un atleta."""
    GRASSROOTS = "grassroots"
    SEMI_PRO = "semi-pro"
    PROFESSIONAL = "professional"


class ScoutingStatus(str, Enum):
    """Estado de scouting del atleta."""
    ACTIVE = "active"
    SCOUTED = "scouted"
    SIGNED = "signed"
    INACTIVE = "inactive"


class AthleteStatus(str, Enum):
    """Estado de ciclo de vida / visibilidad (distinto del scouting)."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class MediaType(str, Enum):
    """Tipos de media asociados a un atleta."""
    PHOTO = "photo"
    VIDEO = "video"


class BulkActionType(str, Enum):
    """Acciones masivas soportadas por el directorio."""
    EXPORT = "export"
    DELETE = "delete"
    UPDATE_STATUS = "updateStatus"
    UPDATE_LEVEL = "updateLevel"
    ASSIGN_PROGRAM = "assignProgram"


SPORTS = (
    "football",
    "basketball",
    "athletics",
    "volleyball",
    "tennis",
    "boxing",
    "swimming",
)

DEFAULT_SPORT = "football"

LIBERIA_COUNTIES = (
    "Bomi",
    "Bong",
    "Gbarpolu",
    "Grand Bassa",
    "Grand Cape Mount",
    "Grand Gedeh",
    "Grand Kru",
    "Lofa",
    "Margibi",
    "Maryland",
    "Montserrado",
    "Nimba",
    "River Cess",
    "River Gee",
    "Sinoe",
)

# Valor centinela: "sin restriccion sobre este campo"
FILTER_ALL = "all"

# Campos con filtro de igualdad en el store (orden estable)
EQUALITY_FILTER_FIELDS = ("sport", "level", "county", "scoutingStatus", "position")

# Campos donde se aplica la busqueda de texto libre (solo cliente)
SEARCH_FIELDS = ("name", "position", "location", "bio")

ORDER_FIELD = "updatedAt"

# Campos que nunca se modifican tras la creacion
IMMUTABLE_FIELDS = ("id", "createdAt")
