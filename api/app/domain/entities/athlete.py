"""
Entidades de dominio: Athlete y tipos asociados del directorio.

Los documentos del store usan claves camelCase; los atributos Python usan
snake_case. La conversion es mecanica (ver ``to_camel`` / ``to_snake``).
"""
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

from app.shared.constants.athlete_constants import (
    AthleteLevel,
    AthleteStatus,
    BulkActionType,
    DEFAULT_SPORT,
    FILTER_ALL,
    MediaType,
    ScoutingStatus,
)
from app.shared.exceptions.domain import ValidationException


def to_camel(name: str) -> str:
    """first_name -> firstName"""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_snake(name: str) -> str:
    """firstName -> first_name"""
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def strip_none(value: Any) -> Any:
    """
    Elimina recursivamente las claves con valor None.

    El store distingue entre campo ausente y campo presente con null en
    actualizaciones parciales, asi que nunca se persiste un None.
    """
    if isinstance(value, dict):
        return {k: strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_none(v) for v in value if v is not None]
    return value


@dataclass
class AthleteMedia:
    """Referencia a un archivo multimedia alojado en el proveedor externo."""

    id: str
    url: str
    type: str = MediaType.PHOTO.value
    uploaded_at: str = ""
    caption: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return strip_none({to_camel(f.name): getattr(self, f.name) for f in fields(self)})

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "AthleteMedia":
        known = {f.name for f in fields(cls)}
        kwargs = {to_snake(k): v for k, v in data.items() if to_snake(k) in known}
        kwargs.setdefault("id", "")
        kwargs.setdefault("url", "")
        return cls(**kwargs)


@dataclass
class AthleteContact:
    """Bloque de contacto del atleta."""

    email: Optional[str] = None
    phone: Optional[str] = None
    emergency_contact: Optional[Dict[str, str]] = None
    address: Optional[Dict[str, str]] = None

    def to_document(self) -> Dict[str, Any]:
        return strip_none({to_camel(f.name): getattr(self, f.name) for f in fields(self)})

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "AthleteContact":
        known = {f.name for f in fields(cls)}
        return cls(**{to_snake(k): v for k, v in data.items() if to_snake(k) in known})


@dataclass
class Athlete:
    """
    Entidad principal del directorio.

    ``stats`` es un mapa abierto clave -> numero; no hay esquema fijo.
    ``extra`` conserva los campos del documento que la entidad no modela.
    """

    id: Optional[str] = None
    name: str = ""
    sport: str = DEFAULT_SPORT
    level: str = AthleteLevel.GRASSROOTS.value
    scouting_status: str = ScoutingStatus.ACTIVE.value
    status: str = AthleteStatus.ACTIVE.value

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[str] = None
    position: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    county: Optional[str] = None
    training_program: Optional[str] = None
    performance_notes: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    preferred_foot: Optional[str] = None
    nationality: Optional[str] = None
    previous_clubs: Optional[List[str]] = None
    achievements: Optional[List[str]] = None
    medical_info: Optional[Dict[str, Any]] = None
    social_media: Optional[Dict[str, str]] = None

    stats: Dict[str, float] = field(default_factory=dict)
    media: List[AthleteMedia] = field(default_factory=list)
    contact: Optional[AthleteContact] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    extra: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """
        Valida los campos obligatorios y los valores enumerados.

        Raises:
            ValidationException: Si algun campo no es valido
        """
        if not self.name or not self.name.strip():
            raise ValidationException("Name is required", field="name")
        if self.level not in {lvl.value for lvl in AthleteLevel}:
            raise ValidationException(f"Invalid level '{self.level}'", field="level")
        if self.scouting_status not in {s.value for s in ScoutingStatus}:
            raise ValidationException(
                f"Invalid scouting status '{self.scouting_status}'", field="scoutingStatus"
            )
        if self.status not in {s.value for s in AthleteStatus}:
            raise ValidationException(f"Invalid status '{self.status}'", field="status")
        for key, value in self.stats.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationException(f"Stat '{key}' must be numeric", field="stats")

    def to_document(self) -> Dict[str, Any]:
        """Serializa la entidad al cuerpo del documento (sin id, sin None)."""
        body: Dict[str, Any] = dict(self.extra)
        for f in fields(self):
            if f.name in ("id", "extra", "media", "contact", "stats"):
                continue
            body[to_camel(f.name)] = getattr(self, f.name)
        if self.stats:
            body["stats"] = dict(self.stats)
        if self.media:
            body["media"] = [m.to_document() for m in self.media]
        if self.contact is not None:
            contact = self.contact.to_document()
            if contact:
                body["contact"] = contact
        return strip_none(body)

    @classmethod
    def from_document(cls, doc_id: Optional[str], data: Dict[str, Any]) -> "Athlete":
        known = {f.name for f in fields(cls)} - {"id", "extra"}
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            attr = to_snake(key)
            if attr not in known:
                extra[key] = value
            elif attr == "media":
                kwargs["media"] = [AthleteMedia.from_document(m) for m in value or []]
            elif attr == "contact":
                kwargs["contact"] = AthleteContact.from_document(value) if value else None
            elif attr == "stats":
                kwargs["stats"] = dict(value or {})
            else:
                kwargs[attr] = value
        return cls(id=doc_id, extra=extra, **kwargs)


@dataclass
class AthleteFilters:
    """
    Intencion de consulta del directorio (no se persiste).

    ``FILTER_ALL`` (o cadena vacia) significa "sin restriccion".
    ``age_min``/``age_max`` son informativos: no se aplican como predicado.
    """

    search: str = ""
    sport: str = FILTER_ALL
    level: str = FILTER_ALL
    county: str = FILTER_ALL
    scouting_status: str = FILTER_ALL
    position: str = FILTER_ALL
    age_min: Optional[int] = None
    age_max: Optional[int] = None

    @classmethod
    def directory_default(cls) -> "AthleteFilters":
        """Filtros iniciales del directorio: futbol, resto sin restriccion."""
        return cls(sport=DEFAULT_SPORT)

    def equality_predicates(self) -> List[Tuple[str, str]]:
        """Pares (campo del documento, valor) con restriccion concreta."""
        candidates = (
            ("sport", self.sport),
            ("level", self.level),
            ("county", self.county),
            ("scoutingStatus", self.scouting_status),
            ("position", self.position),
        )
        return [(name, value) for name, value in candidates if value and value != FILTER_ALL]

    @property
    def search_term(self) -> str:
        return (self.search or "").strip().lower()


@dataclass
class BulkAction:
    """Accion masiva sobre un conjunto de atletas."""

    type: BulkActionType
    athlete_ids: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PaginationState:
    """
    Estado de paginacion mostrado al usuario.

    ``page`` es solo para visualizacion; nunca sirve como cursor del store.
    """

    page: int = 1
    page_size: int = 12
    total: int = 0
    total_pages: int = 0

    def recompute(self, total: int) -> None:
        """Recalcula total y numero de paginas tras cambios de filtro o mutaciones."""
        self.total = total
        self.total_pages = math.ceil(total / self.page_size) if self.page_size > 0 else 0
