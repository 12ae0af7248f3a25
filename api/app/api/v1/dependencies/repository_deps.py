"""
Dependencias para inyección del store de documentos.
"""
from app.domain.repositories.document_store import IDocumentStore
from app.infrastructure.store.store_manager import StoreManager


def get_document_store() -> IDocumentStore:
    """
    Dependencia para obtener el store de documentos compartido.

    Returns:
        IDocumentStore: Instancia unica del store configurado
    """
    return StoreManager.get()
