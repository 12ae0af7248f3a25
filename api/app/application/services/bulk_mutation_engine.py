"""
Mutaciones masivas atomicas sobre atletas.
"""
from typing import Any, Dict, List, Optional

from loguru import logger

from app.domain.repositories.document_store import IDocumentStore
from app.shared.constants.athlete_constants import (
    AthleteLevel,
    AthleteStatus,
    BulkActionType,
)
from app.shared.exceptions.domain import BulkOperationException, ValidationException
from app.shared.exceptions.store import StoreError
from app.shared.utils.datetime_utils import DateTimeUtils


class BulkMutationEngine:
    """
    Aplica la misma mutacion a un conjunto de IDs en un unico lote.

    O se confirma todo o el llamador recibe un unico fallo agregado;
    no se reporta exito parcial.
    """

    def __init__(self, store: IDocumentStore, collection: str):
        self.store = store
        self.collection = collection

    def _fields_for(self, action_type: BulkActionType, data: Dict[str, Any]) -> Dict[str, Any]:
        """Campos a escribir para las acciones de actualizacion."""
        if action_type == BulkActionType.UPDATE_STATUS:
            status = data.get("status")
            if status not in {s.value for s in AthleteStatus}:
                raise ValidationException(f"Estado no valido: {status}", field="status")
            return {"status": status}

        if action_type == BulkActionType.UPDATE_LEVEL:
            level = data.get("level")
            if level not in {lvl.value for lvl in AthleteLevel}:
                raise ValidationException(f"Nivel no valido: {level}", field="level")
            return {"level": level}

        if action_type == BulkActionType.ASSIGN_PROGRAM:
            program = (data.get("program") or "").strip()
            if not program:
                raise ValidationException("Se requiere un programa", field="program")
            return {"trainingProgram": program}

        raise ValidationException(f"Accion no soportada: {action_type}", field="type")

    async def apply(
        self,
        action_type: BulkActionType,
        ids: List[str],
        data: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Construye y confirma el lote.

        Args:
            action_type: Tipo de accion
            ids: IDs de atletas afectados
            data: Datos de la accion (status, level o program)

        Returns:
            int: Numero de documentos escritos (0 para export)

        Raises:
            ValidationException: Si la accion o sus datos no son validos
            BulkOperationException: Si el lote no se pudo confirmar
        """
        action_type = BulkActionType(action_type)
        if action_type == BulkActionType.EXPORT:
            # Export no escribe en el store
            logger.debug("Accion masiva 'export' sin mutaciones")
            return 0

        # Sin duplicados, conservando el orden
        unique_ids = list(dict.fromkeys(i for i in ids if i))
        if not unique_ids:
            raise ValidationException("No hay atletas seleccionados", field="athleteIds")

        batch = self.store.batch()
        if action_type == BulkActionType.DELETE:
            for doc_id in unique_ids:
                batch.delete(self.collection, doc_id)
        else:
            fields = self._fields_for(action_type, data or {})
            fields["updatedAt"] = DateTimeUtils.now_iso()
            for doc_id in unique_ids:
                batch.update(self.collection, doc_id, fields)

        try:
            await batch.commit()
        except StoreError as e:
            logger.error(f"Fallo el lote '{action_type.value}' sobre {len(unique_ids)} atletas: {e}")
            raise BulkOperationException(action_type.value, len(unique_ids), str(e)) from e

        logger.info(f"Accion masiva '{action_type.value}' aplicada a {len(unique_ids)} atletas")
        return len(unique_ids)
