"""
Casos de uso relacionados con atletas.
Contiene la logica de negocio del directorio: CRUD, paginacion, acciones
masivas, suscripciones en vivo, CSV y media.
"""
import asyncio
import re
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from app.application.services.athlete_csv import athletes_to_csv, iter_csv_rows, row_to_athlete
from app.application.services.athlete_query_composer import AthleteQueryComposer
from app.application.services.bulk_mutation_engine import BulkMutationEngine
from app.application.services.fallback_filter_engine import FallbackFilterEngine
from app.application.services.live_subscription import LiveSubscriptionReconciler, Subscription
from app.application.services.pagination import (
    PaginationCursorManager,
    decode_cursor,
    encode_cursor,
)
from app.core.config import settings
from app.domain.entities.athlete import Athlete, AthleteFilters, AthleteMedia, BulkAction, strip_none
from app.domain.repositories.document_store import DocumentSnapshot, IDocumentStore
from app.infrastructure.external.cloudinary.cloudinary_client import (
    DESTROY_OK_RESULTS,
    CloudinaryClient,
    resource_type_for,
)
from app.shared.constants.athlete_constants import BulkActionType, IMMUTABLE_FIELDS, MediaType
from app.shared.exceptions.domain import (
    EntityNotFoundException,
    MediaOperationException,
    StoreUnavailableException,
    ValidationException,
)
from app.shared.exceptions.store import DocumentNotFoundError, StoreError
from app.shared.utils.datetime_utils import DateTimeUtils


@dataclass
class AthletePage:
    """Pagina del directorio lista para devolver al cliente."""

    athletes: List[Athlete]
    has_more: bool
    next_cursor: Optional[str] = None
    used_fallback: bool = False


@dataclass
class BulkOutcome:
    """Resultado de una accion masiva (``csv`` solo para export)."""

    action: str
    affected: int
    csv: Optional[str] = None


@dataclass
class ImportResult:
    success: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class MediaUpload:
    """Archivo a subir para un atleta."""

    content: bytes
    filename: str
    media_type: str = MediaType.PHOTO.value
    caption: Optional[str] = None
    content_type: Optional[str] = None


@dataclass
class MediaUploadReport:
    uploaded: List[AthleteMedia] = field(default_factory=list)
    failures: List[Tuple[str, Exception]] = field(default_factory=list)


@contextmanager
def _store_errors(operation: str):
    """Traduce fallos no recuperables del store a ``StoreUnavailableException``."""
    try:
        yield
    except DocumentNotFoundError:
        raise
    except StoreError as e:
        logger.error(f"Error del store en '{operation}': {e}")
        raise StoreUnavailableException(operation, str(e)) from e


class AthleteUseCases:
    """
    Casos de uso para gestion del directorio de atletas.
    """

    def __init__(
        self,
        store: IDocumentStore,
        media_client: Optional[CloudinaryClient] = None,
        collection: str = None,
    ):
        self.store = store
        self.media_client = media_client
        self.collection = collection or settings.ATHLETES_COLLECTION
        self.composer = AthleteQueryComposer(self.collection)
        self.engine = FallbackFilterEngine(store, self.composer)
        self.paginator = PaginationCursorManager(self.engine, self.composer)
        self.bulk = BulkMutationEngine(store, self.collection)
        self.reconciler = LiveSubscriptionReconciler(store, self.composer)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create_athlete(self, data: Dict[str, Any], created_by: Optional[str] = None) -> str:
        """
        Crea un atleta.

        Args:
            data: Campos del atleta (claves camelCase)
            created_by: Autor del alta

        Returns:
            str: ID asignado por el store

        Raises:
            ValidationException: Si faltan campos obligatorios o hay valores invalidos
        """
        body = {k: v for k, v in strip_none(dict(data)).items() if k not in IMMUTABLE_FIELDS}
        athlete = Athlete.from_document(None, body)
        if created_by:
            athlete.created_by = created_by
        return await self._insert(athlete)

    async def _insert(self, athlete: Athlete) -> str:
        athlete.validate()
        now = DateTimeUtils.now_iso()
        athlete.created_at = now
        athlete.updated_at = now
        with _store_errors("create_athlete"):
            athlete_id = await self.store.add(self.collection, athlete.to_document())
        logger.info(f"Atleta creado: {athlete_id} ({athlete.name})")
        return athlete_id

    async def get_athlete_by_id(self, athlete_id: str) -> Optional[Athlete]:
        """
        Obtiene un atleta por su ID.

        Returns:
            Optional[Athlete]: El atleta o None si no existe
        """
        with _store_errors("get_athlete_by_id"):
            snapshot = await self.store.get(self.collection, athlete_id)
        return self._to_entity(snapshot) if snapshot else None

    async def _require(self, athlete_id: str) -> Athlete:
        athlete = await self.get_athlete_by_id(athlete_id)
        if athlete is None:
            raise EntityNotFoundException("Athlete", athlete_id)
        return athlete

    async def update_athlete(
        self,
        athlete_id: str,
        partial: Dict[str, Any],
        updated_by: Optional[str] = None,
    ) -> None:
        """
        Actualizacion parcial: los campos no enviados no se tocan.

        Raises:
            EntityNotFoundException: Si el atleta no existe
            ValidationException: Si el resultado no es valido
        """
        fields = {k: v for k, v in strip_none(dict(partial)).items() if k not in IMMUTABLE_FIELDS}
        current = await self._require(athlete_id)

        merged = {**current.to_document(), **fields}
        Athlete.from_document(athlete_id, merged).validate()

        fields["updatedAt"] = DateTimeUtils.now_iso()
        if updated_by:
            fields["updatedBy"] = updated_by
        try:
            with _store_errors("update_athlete"):
                await self.store.update(self.collection, athlete_id, fields)
        except DocumentNotFoundError:
            # Borrado entre la lectura y la escritura
            raise EntityNotFoundException("Athlete", athlete_id)
        logger.info(f"Atleta actualizado: {athlete_id} ({', '.join(sorted(fields))})")

    async def delete_athlete(self, athlete_id: str) -> None:
        """
        Elimina un atleta y, antes, toda su media en el proveedor.

        Los fallos al borrar media se registran pero no impiden el borrado
        del atleta.
        """
        athlete = await self._require(athlete_id)
        await self._purge_media(athlete_id, athlete.media)
        with _store_errors("delete_athlete"):
            await self.store.delete(self.collection, athlete_id)
        logger.info(f"Atleta eliminado: {athlete_id}")

    # ------------------------------------------------------------------
    # Directorio
    # ------------------------------------------------------------------

    async def get_athletes(
        self,
        filters: AthleteFilters,
        page_size: int = None,
        cursor: Optional[str] = None,
    ) -> AthletePage:
        """
        Obtiene una pagina del directorio.

        Args:
            filters: Filtros del directorio
            page_size: Tamano de pagina (por defecto DEFAULT_PAGE_SIZE)
            cursor: Token devuelto por la pagina anterior

        Returns:
            AthletePage: Atletas, ``has_more`` y token de la siguiente pagina
        """
        page_size = page_size or settings.DEFAULT_PAGE_SIZE
        if page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
            raise ValidationException(
                f"pageSize debe estar entre 1 y {settings.MAX_PAGE_SIZE}", field="pageSize"
            )
        after = decode_cursor(cursor)

        with _store_errors("get_athletes"):
            result = await self.paginator.page(filters, page_size, after)

        return AthletePage(
            athletes=[self._to_entity(doc) for doc in result.items],
            has_more=result.has_more,
            next_cursor=encode_cursor(result.next_cursor),
            used_fallback=result.used_fallback,
        )

    async def get_athletes_count(self, filters: AthleteFilters) -> int:
        """Total de atletas que cumplen los filtros."""
        with _store_errors("get_athletes_count"):
            return await self.paginator.count(filters)

    async def subscribe_to_athletes(
        self,
        filters: AthleteFilters,
        callback: Callable[[List[Athlete]], Any],
    ) -> Subscription:
        """
        Suscribe ``callback`` a la lista filtrada completa.

        El llamador debe invocar ``unsubscribe`` una vez al terminar.
        """
        def on_documents(docs: List[DocumentSnapshot]):
            return callback([self._to_entity(doc) for doc in docs])

        with _store_errors("subscribe_to_athletes"):
            return await self.reconciler.subscribe(filters, on_documents)

    async def get_athlete_statistics(self) -> Dict[str, Any]:
        """
        Totales del directorio por nivel, deporte, condado y estado de scouting.
        """
        with _store_errors("get_athlete_statistics"):
            docs = await self.store.query(self.composer.compose(AthleteFilters()).unfiltered())

        stats: Dict[str, Any] = {
            "total": len(docs),
            "byLevel": {},
            "bySport": {},
            "byCounty": {},
            "byStatus": {},
        }
        for doc in docs:
            for bucket, key in (("byLevel", "level"), ("bySport", "sport"), ("byStatus", "scoutingStatus")):
                value = doc.data.get(key)
                if value is not None:
                    stats[bucket][value] = stats[bucket].get(value, 0) + 1
            county = doc.data.get("county")
            if county:
                stats["byCounty"][county] = stats["byCounty"].get(county, 0) + 1
        return stats

    # ------------------------------------------------------------------
    # Acciones masivas
    # ------------------------------------------------------------------

    async def bulk_update_athletes(self, action: BulkAction) -> BulkOutcome:
        """
        Aplica una accion masiva de forma atomica.

        ``export`` no escribe: devuelve el CSV de los atletas seleccionados.
        ``delete`` purga la media de los atletas borrados tras confirmar el lote.

        Raises:
            ValidationException: Si la accion no es valida
            BulkOperationException: Si el lote no se pudo confirmar
        """
        action_type = BulkActionType(action.type)

        if action_type == BulkActionType.EXPORT:
            athletes = []
            for athlete_id in dict.fromkeys(action.athlete_ids):
                athlete = await self.get_athlete_by_id(athlete_id)
                if athlete is not None:
                    athletes.append(athlete)
            return BulkOutcome(action=action_type.value, affected=len(athletes), csv=athletes_to_csv(athletes))

        media_by_athlete: Dict[str, List[AthleteMedia]] = {}
        if action_type == BulkActionType.DELETE:
            for athlete_id in dict.fromkeys(action.athlete_ids):
                athlete = await self.get_athlete_by_id(athlete_id)
                if athlete is not None and athlete.media:
                    media_by_athlete[athlete_id] = athlete.media

        affected = await self.bulk.apply(action_type, action.athlete_ids, action.data)

        if media_by_athlete:
            await asyncio.gather(*(
                self._purge_media(athlete_id, media) for athlete_id, media in media_by_athlete.items()
            ))
        return BulkOutcome(action=action_type.value, affected=affected)

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    async def export_athletes_to_csv(self, filters: AthleteFilters) -> str:
        """
        Exporta a CSV todos los atletas que cumplen los filtros.

        Recorre el paginador con ``EXPORT_PAGE_SIZE``; el limite
        ``MAX_PAGE_SIZE`` solo aplica a los listados.
        """
        athletes: List[Athlete] = []
        after = None
        with _store_errors("export_athletes_to_csv"):
            while True:
                page = await self.paginator.page(filters, settings.EXPORT_PAGE_SIZE, after)
                athletes.extend(self._to_entity(doc) for doc in page.items)
                if not page.has_more:
                    break
                after = page.next_cursor
        logger.info(f"Exportados {len(athletes)} atletas a CSV")
        return athletes_to_csv(athletes)

    async def import_athletes_from_csv(self, csv_text: str, created_by: Optional[str] = None) -> ImportResult:
        """
        Importa atletas desde CSV, fila a fila.

        Una fila invalida no detiene la importacion: se anota
        "Row N: <motivo>" (N cuenta la cabecera como fila 1).
        """
        result = ImportResult()
        for row_number, row in iter_csv_rows(csv_text):
            if not (row.get("Name") or "").strip():
                result.errors.append(f"Row {row_number}: Name is required")
                continue
            try:
                await self._insert(row_to_athlete(row, created_by))
                result.success += 1
            except ValidationException as e:
                result.errors.append(f"Row {row_number}: {e.message}")
            except StoreUnavailableException as e:
                result.errors.append(f"Row {row_number}: {e.details.get('reason', e.message)}")

        logger.info(f"Importacion CSV: {result.success} creados, {len(result.errors)} errores")
        return result

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def _require_media_client(self) -> CloudinaryClient:
        if self.media_client is None:
            raise MediaOperationException("Media provider is not configured")
        return self.media_client

    async def _upload_one(self, athlete_id: str, upload: MediaUpload) -> AthleteMedia:
        client = self._require_media_client()
        folder = f"athletes/{athlete_id}/{upload.media_type}s"
        timestamp = int(time.time() * 1000)
        safe_name = re.sub(r"\s+", "_", upload.filename)
        public_id = f"{folder}/{timestamp}_{safe_name}"

        result = await client.upload(
            upload.content,
            upload.filename,
            folder=folder,
            public_id=public_id,
            resource_type=resource_type_for(upload.media_type),
            context={"caption": upload.caption} if upload.caption else None,
        )
        return AthleteMedia(
            id=result.public_id,
            url=result.url,
            type=upload.media_type,
            uploaded_at=DateTimeUtils.now_iso(),
            caption=upload.caption,
            size=result.bytes if result.bytes is not None else len(upload.content),
            mime_type=upload.content_type,
        )

    async def upload_athlete_media_many(self, athlete_id: str, uploads: List[MediaUpload]) -> MediaUploadReport:
        """
        Sube varios archivos en paralelo y registra los que tuvieron exito.

        Cada fallo se reporta por separado; el resto de subidas no se ve
        afectado.
        """
        for upload in uploads:
            if upload.media_type not in {m.value for m in MediaType}:
                raise ValidationException(f"Invalid media type '{upload.media_type}'", field="mediaType")
        athlete = await self._require(athlete_id)
        self._require_media_client()

        results = await asyncio.gather(
            *(self._upload_one(athlete_id, upload) for upload in uploads),
            return_exceptions=True,
        )

        report = MediaUploadReport()
        for upload, outcome in zip(uploads, results):
            if isinstance(outcome, Exception):
                logger.error(f"Fallo la subida de '{upload.filename}' para {athlete_id}: {outcome}")
                report.failures.append((upload.filename, outcome))
            else:
                report.uploaded.append(outcome)

        if report.uploaded:
            media = [m.to_document() for m in athlete.media + report.uploaded]
            try:
                with _store_errors("upload_athlete_media"):
                    await self.store.update(
                        self.collection,
                        athlete_id,
                        {"media": media, "updatedAt": DateTimeUtils.now_iso()},
                    )
            except DocumentNotFoundError:
                raise EntityNotFoundException("Athlete", athlete_id)
            logger.info(f"{len(report.uploaded)} archivos agregados al atleta {athlete_id}")
        return report

    async def upload_athlete_media(self, athlete_id: str, upload: MediaUpload) -> AthleteMedia:
        """
        Sube un archivo y lo agrega a la media del atleta.

        Raises:
            MediaOperationException: Si la subida falla
        """
        report = await self.upload_athlete_media_many(athlete_id, [upload])
        if report.failures:
            raise report.failures[0][1]
        return report.uploaded[0]

    async def delete_athlete_media(self, athlete_id: str, media_id: str) -> None:
        """
        Borra un archivo del proveedor y lo quita de la media del atleta.

        Si el proveedor ya no lo tiene se considera borrado.
        """
        athlete = await self._require(athlete_id)
        item = next((m for m in athlete.media if m.id == media_id), None)
        if item is None:
            raise EntityNotFoundException("Media", media_id)

        await self._destroy(item, strict=True)

        remaining = [m.to_document() for m in athlete.media if m.id != media_id]
        try:
            with _store_errors("delete_athlete_media"):
                await self.store.update(
                    self.collection,
                    athlete_id,
                    {"media": remaining, "updatedAt": DateTimeUtils.now_iso()},
                )
        except DocumentNotFoundError:
            raise EntityNotFoundException("Athlete", athlete_id)
        logger.info(f"Media {media_id} eliminada del atleta {athlete_id}")

    async def update_athlete_media(
        self,
        athlete_id: str,
        media_id: str,
        caption: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> AthleteMedia:
        """
        Cambia el pie de un archivo en el proveedor y en el atleta.

        El pie viaja como contexto ``caption``; las etiquetas reemplazan a
        las existentes en el proveedor.
        """
        athlete = await self._require(athlete_id)
        item = next((m for m in athlete.media if m.id == media_id), None)
        if item is None:
            raise EntityNotFoundException("Media", media_id)

        caption = caption.strip() if caption and caption.strip() else None
        client = self._require_media_client()
        await client.update_metadata(
            item.id,
            resource_type_for(item.type),
            tags=tags,
            context={"caption": caption} if caption else None,
        )

        item.caption = caption
        try:
            with _store_errors("update_athlete_media"):
                await self.store.update(
                    self.collection,
                    athlete_id,
                    {
                        "media": [m.to_document() for m in athlete.media],
                        "updatedAt": DateTimeUtils.now_iso(),
                    },
                )
        except DocumentNotFoundError:
            raise EntityNotFoundException("Athlete", athlete_id)
        logger.info(f"Metadatos de la media {media_id} actualizados")
        return item

    async def _destroy(self, item: AthleteMedia, strict: bool) -> bool:
        """
        Borra un archivo en el proveedor.

        Timeouts, errores de red y 5xx se registran y no se propagan. Con
        ``strict`` el resto de fallos se propaga.
        """
        client = self._require_media_client()
        try:
            result = await client.destroy(item.id, resource_type_for(item.type))
        except MediaOperationException as e:
            status = e.provider_status
            if "not found" in e.message.lower():
                return True
            if not strict or status is None or status >= 500:
                logger.warning(f"No se pudo borrar la media '{item.id}': {e.message}")
                return False
            raise

        if result in DESTROY_OK_RESULTS:
            return True
        logger.warning(f"Resultado inesperado al borrar la media '{item.id}': {result}")
        if strict:
            raise MediaOperationException(f"Unexpected destroy result '{result}'", public_id=item.id)
        return False

    async def _purge_media(self, athlete_id: str, media: List[AthleteMedia]) -> None:
        if not media:
            return
        if self.media_client is None:
            logger.warning(f"Proveedor de media no configurado; {len(media)} archivos de {athlete_id} sin borrar")
            return
        results = await asyncio.gather(*(self._destroy(item, strict=False) for item in media))
        failed = results.count(False)
        if failed:
            logger.warning(f"Limpieza de media de {athlete_id}: {failed} de {len(media)} archivos sin borrar")
        else:
            logger.debug(f"Media de {athlete_id} eliminada ({len(media)} archivos)")

    @staticmethod
    def _to_entity(snapshot: DocumentSnapshot) -> Athlete:
        return Athlete.from_document(snapshot.id, snapshot.data)
