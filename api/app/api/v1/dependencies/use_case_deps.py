"""
Dependencias para inyeccion de casos de uso.
"""
from typing import Optional

from fastapi import Depends

from app.application.use_cases.athlete_use_cases import AthleteUseCases
from app.api.v1.dependencies.repository_deps import get_document_store
from app.core.config import settings
from app.domain.repositories.document_store import IDocumentStore
from app.infrastructure.external.cloudinary.cloudinary_client import CloudinaryClient


def get_media_client() -> Optional[CloudinaryClient]:
    """
    Dependencia para obtener el cliente de media.

    Returns:
        Optional[CloudinaryClient]: None si faltan credenciales
    """
    if not settings.media_configured:
        return None
    return CloudinaryClient()


async def get_athlete_use_cases(
    store: IDocumentStore = Depends(get_document_store),
    media_client: Optional[CloudinaryClient] = Depends(get_media_client),
) -> AthleteUseCases:
    """
    Dependencia para obtener los casos de uso de atletas.

    Args:
        store: Store de documentos
        media_client: Cliente del proveedor de media

    Returns:
        AthleteUseCases: Instancia de casos de uso de atletas
    """
    return AthleteUseCases(store, media_client=media_client)
