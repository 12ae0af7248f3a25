"""
Excepciones relacionadas con la lógica de dominio.
"""
from typing import Any

from app.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""
    
    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class EntityNotFoundException(DomainException):
    """Excepción cuando no se encuentra una entidad."""
    
    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__(
            message=f"{entity_name} con ID {entity_id} no encontrado",
            error_code="ENTITY_NOT_FOUND",
            details={"entity": entity_name, "id": str(entity_id)}
        )
        self.status_code = 404


class ValidationException(DomainException):
    """Excepción para errores de validación."""
    
    def __init__(self, message: str, field: str = None):
        details = {"field": field} if field else None
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details
        )


class BulkOperationException(DomainException):
    """
    Fallo al confirmar un lote de escrituras masivas.

    Se reporta como un único fallo agregado; no se atribuye a IDs concretos.
    """
    
    def __init__(self, action: str, count: int, reason: str = ""):
        super().__init__(
            message=f"No se pudo aplicar la acción '{action}' a {count} atletas",
            error_code="BULK_OPERATION_FAILED",
            details={"action": action, "count": count, "reason": reason}
        )
        self.status_code = 409


class MediaOperationException(AppException):
    """Excepción para fallos contra el proveedor de media."""
    
    def __init__(self, message: str, public_id: str = None, status: int = None):
        details = {}
        if public_id:
            details["public_id"] = public_id
        if status is not None:
            details["provider_status"] = status
        super().__init__(
            message=message,
            status_code=502,
            error_code="MEDIA_OPERATION_FAILED",
            details=details
        )
        self.provider_status = status


class StoreUnavailableException(AppException):
    """El store de documentos rechazó la operación por un motivo no recuperable."""
    
    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Error del store durante '{operation}'",
            status_code=503,
            error_code="STORE_UNAVAILABLE",
            details={"operation": operation, "reason": reason}
        )
