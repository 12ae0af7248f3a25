"""
Excepción base de la API del directorio.

Toda excepción que deba llegar al cliente como respuesta JSON hereda de
``AppException``; el manejador global la traduce a
``{"error", "message", "details"}`` con su ``status_code``.
"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Error con código HTTP y código de error estable para el cliente.

    Attributes:
        message: Texto legible del error
        status_code: Código HTTP de la respuesta
        error_code: Identificador estable (p.ej. ENTITY_NOT_FOUND)
        details: Contexto adicional serializable
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Cuerpo de respuesta del error."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }
