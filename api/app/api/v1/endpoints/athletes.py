"""
Endpoints del directorio de atletas.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status

from app.application.dto.athlete_dto import (
    AthleteCountDTO,
    AthleteCreateDTO,
    AthleteCreatedDTO,
    AthleteDTO,
    AthleteMediaDTO,
    AthletePageDTO,
    AthleteStatisticsDTO,
    AthleteUpdateDTO,
    BulkActionRequestDTO,
    BulkActionResponseDTO,
    ImportResultDTO,
    MediaUpdateDTO,
    MediaUploadResponseDTO,
    PaginationDTO,
)
from app.application.use_cases.athlete_use_cases import AthleteUseCases, MediaUpload
from app.api.v1.dependencies.use_case_deps import get_athlete_use_cases
from app.core.config import settings
from app.domain.entities.athlete import AthleteFilters, BulkAction, PaginationState
from app.shared.constants.athlete_constants import FILTER_ALL, MediaType
from app.shared.exceptions.domain import EntityNotFoundException, ValidationException


router = APIRouter(prefix="/athletes", tags=["Athletes"])

CSV_MEDIA_TYPE = "text/csv"


def get_athlete_filters(
    search: str = Query("", description="Texto libre sobre nombre, posicion, ubicacion y bio"),
    sport: str = Query(FILTER_ALL),
    level: str = Query(FILTER_ALL),
    county: str = Query(FILTER_ALL),
    scouting_status: str = Query(FILTER_ALL, alias="scoutingStatus"),
    position: str = Query(FILTER_ALL),
    min_age: Optional[int] = Query(None, alias="minAge", ge=0),
    max_age: Optional[int] = Query(None, alias="maxAge", ge=0),
) -> AthleteFilters:
    """Filtros del directorio desde la query string ("all" = sin restriccion)."""
    return AthleteFilters(
        search=search,
        sport=sport,
        level=level,
        county=county,
        scouting_status=scouting_status,
        position=position,
        age_min=min_age,
        age_max=max_age,
    )


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "",
    response_model=AthletePageDTO,
    summary="Listar atletas paginados"
)
async def list_athletes(
    filters: AthleteFilters = Depends(get_athlete_filters),
    page: int = Query(1, ge=1, description="Numero de pagina (solo informativo)"),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    cursor: Optional[str] = Query(None, description="Token devuelto como nextCursor"),
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> AthletePageDTO:
    """
    Obtiene una pagina del directorio ordenada por ultima actualizacion.

    Para la siguiente pagina se envia ``cursor`` con el ``nextCursor``
    recibido; ``page`` solo se usa para devolver el estado de paginacion.
    """
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    result = await use_cases.get_athletes(filters, page_size=page_size, cursor=cursor)
    pagination = PaginationState(page=page, page_size=page_size)
    pagination.recompute(await use_cases.get_athletes_count(filters))

    return AthletePageDTO(
        athletes=[AthleteDTO.from_entity(a) for a in result.athletes],
        has_more=result.has_more,
        next_cursor=result.next_cursor,
        used_fallback=result.used_fallback,
        pagination=PaginationDTO.from_state(pagination),
    )


@router.get("/count", response_model=AthleteCountDTO)
async def count_athletes(
    filters: AthleteFilters = Depends(get_athlete_filters),
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> AthleteCountDTO:
    """Total de atletas que cumplen los filtros."""
    return AthleteCountDTO(count=await use_cases.get_athletes_count(filters))


@router.get("/statistics", response_model=AthleteStatisticsDTO)
async def athlete_statistics(
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> AthleteStatisticsDTO:
    """Totales por nivel, deporte, condado y estado de scouting."""
    return AthleteStatisticsDTO.model_validate(await use_cases.get_athlete_statistics())


@router.get("/export", response_class=Response)
async def export_athletes(
    filters: AthleteFilters = Depends(get_athlete_filters),
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> Response:
    """Exporta a CSV todos los atletas que cumplen los filtros."""
    return _csv_response(await use_cases.export_athletes_to_csv(filters), "athletes.csv")


@router.post("/import", response_model=ImportResultDTO)
async def import_athletes(
    file: UploadFile = File(..., description="CSV con la cabecera de exportacion"),
    created_by: Optional[str] = Form(None, alias="createdBy"),
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> ImportResultDTO:
    """
    Importa atletas desde CSV.

    Las filas invalidas se reportan en ``errors`` y no detienen el resto.
    """
    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationException("El CSV debe estar codificado en UTF-8", field="file")
    result = await use_cases.import_athletes_from_csv(text, created_by)
    return ImportResultDTO(success=result.success, errors=result.errors)


@router.post("/bulk", response_model=None)
async def bulk_action(
    dto: BulkActionRequestDTO,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
):
    """
    Aplica una accion masiva de forma atomica.

    ``export`` devuelve el CSV de los atletas seleccionados.
    """
    outcome = await use_cases.bulk_update_athletes(
        BulkAction(type=dto.type, athlete_ids=dto.athlete_ids, data=dto.data)
    )
    if outcome.csv is not None:
        return _csv_response(outcome.csv, "athletes-selection.csv")
    return BulkActionResponseDTO(action=outcome.action, affected=outcome.affected)


@router.post(
    "",
    response_model=AthleteCreatedDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Crear un atleta"
)
async def create_athlete(
    dto: AthleteCreateDTO,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> AthleteCreatedDTO:
    """Crea un atleta y devuelve su ID."""
    return AthleteCreatedDTO(id=await use_cases.create_athlete(dto.to_fields()))


@router.get("/{athlete_id}", response_model=AthleteDTO)
async def get_athlete(
    athlete_id: str,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> AthleteDTO:
    """Obtiene un atleta por su ID."""
    athlete = await use_cases.get_athlete_by_id(athlete_id)
    if athlete is None:
        raise EntityNotFoundException("Athlete", athlete_id)
    return AthleteDTO.from_entity(athlete)


@router.patch("/{athlete_id}", response_model=AthleteDTO)
async def update_athlete(
    athlete_id: str,
    dto: AthleteUpdateDTO,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> AthleteDTO:
    """Actualizacion parcial: solo se modifican los campos enviados."""
    await use_cases.update_athlete(athlete_id, dto.to_fields())
    return AthleteDTO.from_entity(await use_cases.get_athlete_by_id(athlete_id))


@router.delete("/{athlete_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_athlete(
    athlete_id: str,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> None:
    """Elimina un atleta y su media."""
    await use_cases.delete_athlete(athlete_id)


@router.post(
    "/{athlete_id}/media",
    response_model=MediaUploadResponseDTO,
    status_code=status.HTTP_201_CREATED
)
async def upload_media(
    athlete_id: str,
    files: List[UploadFile] = File(...),
    media_type: MediaType = Form(MediaType.PHOTO, alias="mediaType"),
    caption: Optional[str] = Form(None),
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> MediaUploadResponseDTO:
    """
    Sube uno o varios archivos al atleta en paralelo.

    Los fallos individuales se devuelven en ``errors``.
    """
    uploads = [
        MediaUpload(
            content=await f.read(),
            filename=f.filename or "upload",
            media_type=media_type.value,
            caption=caption,
            content_type=f.content_type,
        )
        for f in files
    ]
    report = await use_cases.upload_athlete_media_many(athlete_id, uploads)
    return MediaUploadResponseDTO(
        uploaded=[AthleteMediaDTO.from_entity(m) for m in report.uploaded],
        errors=[f"{name}: {error}" for name, error in report.failures],
    )


@router.delete("/{athlete_id}/media/{media_id:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media(
    athlete_id: str,
    media_id: str,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> None:
    """Elimina un archivo del atleta (el ID publico puede contener '/')."""
    await use_cases.delete_athlete_media(athlete_id, media_id)


@router.patch("/{athlete_id}/media/{media_id:path}", response_model=AthleteMediaDTO)
async def update_media(
    athlete_id: str,
    media_id: str,
    payload: MediaUpdateDTO,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
) -> AthleteMediaDTO:
    """Actualiza pie y etiquetas de un archivo del atleta."""
    media = await use_cases.update_athlete_media(athlete_id, media_id, payload.caption, payload.tags)
    return AthleteMediaDTO.from_entity(media)
