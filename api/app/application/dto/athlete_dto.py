"""
DTOs relacionados con atletas.
Definen la estructura de datos para transferir informacion de atletas.
Las claves viajan en camelCase, igual que en el store.
"""
from typing import Optional, Dict, Any, List, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.domain.entities.athlete import Athlete, AthleteMedia, PaginationState
from app.shared.constants.athlete_constants import (
    AthleteLevel,
    AthleteStatus,
    BulkActionType,
    ScoutingStatus,
)


class CamelModel(BaseModel):
    """Base con alias camelCase; acepta tambien los nombres Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AthleteMediaDTO(CamelModel):
    id: str
    url: str
    type: str
    uploaded_at: Optional[str] = None
    caption: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_entity(cls, media: AthleteMedia) -> "AthleteMediaDTO":
        return cls.model_validate(media.to_document())


class AthleteContactDTO(CamelModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    emergency_contact: Optional[Dict[str, str]] = None
    address: Optional[Dict[str, str]] = None


class AthleteBaseDTO(CamelModel):
    """Campos editables comunes a alta y actualizacion."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
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
    stats: Optional[Dict[str, Union[int, float]]] = Field(None, description="Mapa abierto clave -> numero")
    contact: Optional[AthleteContactDTO] = None

    def to_fields(self) -> Dict[str, Any]:
        """Campos enviados, en camelCase y sin nulos."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class AthleteCreateDTO(AthleteBaseDTO):
    """DTO para dar de alta un atleta."""

    name: str = Field(..., description="Nombre del atleta")
    sport: Optional[str] = None
    level: Optional[AthleteLevel] = None
    scouting_status: Optional[ScoutingStatus] = None
    status: Optional[AthleteStatus] = None


class AthleteUpdateDTO(AthleteBaseDTO):
    """DTO para actualizacion parcial: solo se escriben los campos enviados."""

    name: Optional[str] = None
    sport: Optional[str] = None
    level: Optional[AthleteLevel] = None
    scouting_status: Optional[ScoutingStatus] = None
    status: Optional[AthleteStatus] = None


class AthleteDTO(AthleteBaseDTO):
    """
    DTO de salida de un atleta.
    Los campos no modelados del documento se devuelven tal cual.
    """

    id: str
    name: str = ""
    sport: Optional[str] = None
    level: Optional[str] = None
    scouting_status: Optional[str] = None
    status: Optional[str] = None
    media: List[AthleteMediaDTO] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    @classmethod
    def from_entity(cls, athlete: Athlete) -> "AthleteDTO":
        return cls.model_validate({**athlete.to_document(), "id": athlete.id})


class PaginationDTO(CamelModel):
    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def from_state(cls, state: PaginationState) -> "PaginationDTO":
        return cls(
            page=state.page,
            page_size=state.page_size,
            total=state.total,
            total_pages=state.total_pages,
        )


class AthletePageDTO(CamelModel):
    """Pagina del directorio."""

    athletes: List[AthleteDTO]
    has_more: bool
    next_cursor: Optional[str] = Field(None, description="Token opaco para la siguiente pagina")
    used_fallback: bool = False
    pagination: PaginationDTO


class AthleteCreatedDTO(CamelModel):
    id: str


class AthleteCountDTO(CamelModel):
    count: int


class AthleteStatisticsDTO(CamelModel):
    total: int
    by_level: Dict[str, int]
    by_sport: Dict[str, int]
    by_county: Dict[str, int]
    by_status: Dict[str, int]


class BulkActionRequestDTO(CamelModel):
    """DTO para una accion masiva."""

    type: BulkActionType
    athlete_ids: List[str] = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)


class BulkActionResponseDTO(CamelModel):
    action: str
    affected: int


class ImportResultDTO(CamelModel):
    success: int
    errors: List[str]


class MediaUploadResponseDTO(CamelModel):
    uploaded: List[AthleteMediaDTO]
    errors: List[str] = Field(default_factory=list)


class MediaUpdateDTO(CamelModel):
    caption: Optional[str] = None
    tags: Optional[List[str]] = None
