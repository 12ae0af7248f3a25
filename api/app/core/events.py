"""
Eventos de ciclo de vida: abrir el store al arrancar y cancelar todas las
suscripciones en vivo al cerrar.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from loguru import logger

from app.core.config import settings
from app.infrastructure.database.session import init_db, close_db
from app.infrastructure.store.store_manager import StoreManager


def _config_warnings() -> list:
    """Avisos de configuracion que no impiden arrancar."""
    warnings = []
    if not settings.media_configured:
        warnings.append("Credenciales de Cloudinary no configuradas - la subida de media no funcionara")
    if settings.STORE_BACKEND.lower() == "memory":
        warnings.append("STORE_BACKEND=memory - los datos se pierden al reiniciar")
    if settings.STORE_COMPOSITE_INDEXES in ("", "[]"):
        warnings.append("Sin indices compuestos declarados - las consultas filtradas iran por la ruta degradada")
    return warnings


async def _open_store() -> None:
    if settings.STORE_BACKEND.lower() == "sql":
        await init_db()
        logger.info(f"Base de datos lista ({settings.effective_database_url.split('://')[0]})")
    StoreManager.get()


def _add_file_sink() -> None:
    logger.add(
        settings.LOG_FILE,
        rotation="500 MB",
        retention="10 days",
        level=settings.LOG_LEVEL
    )


def _log_urls() -> None:
    access_host = "localhost" if settings.HOST == "0.0.0.0" else settings.HOST
    base_url = f"http://{access_host}:{settings.PORT}"

    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")
    logger.opt(colors=True).info(f"<cyan>  Swagger UI:  {base_url}/docs</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Atletas:     {base_url}/api/v1/athletes</cyan>")
    logger.opt(colors=True).info(f"<cyan>  En vivo:     ws://{access_host}:{settings.PORT}/api/v1/athletes/live</cyan>")
    logger.opt(colors=True).info(f"<cyan>  Health:      {base_url}/health</cyan>")
    logger.opt(colors=True).info("<bold><green>" + "=" * 80 + "</green></bold>")


async def startup() -> None:
    """Abre el store y registra el sink de archivo."""
    try:
        logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
        for warning in _config_warnings():
            logger.warning(f"CONFIG: {warning}")

        await _open_store()
        _add_file_sink()

        logger.success("Aplicacion iniciada correctamente")
        _log_urls()
    except Exception as e:
        logger.exception(f"Error durante startup: {e}")
        raise


async def shutdown() -> None:
    """Cierra los directorios en vivo, los listeners y el engine."""
    from app.api.v1.endpoints.athletes_ws import manager

    logger.info("Cerrando aplicacion...")
    connections = await manager.close_all()
    listeners = StoreManager.close()
    logger.info(f"Directorios en vivo cerrados: {connections}; suscripciones canceladas: {listeners}")

    await close_db()
    logger.success("Aplicacion cerrada correctamente")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Ciclo de vida de la aplicacion.

    Args:
        app: Instancia de FastAPI
    """
    await startup()
    try:
        yield
    finally:
        await shutdown()
