"""
Persistencia SQL del store de documentos.

Importar el paquete registra ``DocumentModel`` en ``Base.metadata``.
"""
from app.infrastructure.database.models import DocumentModel

__all__ = ["DocumentModel"]
