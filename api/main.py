"""
Punto de entrada de la API del directorio de atletas.

Monta el router ``/api/v1``, el WebSocket en vivo, los manejadores de
errores y los eventos de ciclo de vida.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.core.config import settings, get_cors_origins
from app.core.events import lifespan
from app.api.v1.router import api_router
from app.api.v1.endpoints.athletes_ws import manager
from app.api.middlewares.error_handler import ErrorHandlerMiddleware
from app.shared.exceptions.base import AppException


def _register_exception_handlers(application: FastAPI) -> None:
    """Traduce ``AppException`` al formato de error de la API."""

    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        # Los 4xx son errores del cliente; solo se registran los del servidor
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path}: {exc.error_code} - {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    application.add_exception_handler(AppException, app_exception_handler)


def create_application() -> FastAPI:
    """
    Construye la aplicación FastAPI del directorio.

    Returns:
        FastAPI: Aplicación con rutas, middlewares y eventos registrados
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Directorio de atletas: consultas filtradas con degradacion sin indice, "
            "paginacion por cursores, acciones masivas, CSV, media y tiempo real"
        ),
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(ErrorHandlerMiddleware)

    application.include_router(api_router, prefix="/api")
    _register_exception_handlers(application)

    @application.get("/health", tags=["Health"])
    async def health_check():
        """Estado de la aplicación y del store configurado."""
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "store_backend": settings.STORE_BACKEND,
            "media_configured": settings.media_configured,
            "live_connections": manager.get_total_connections(),
        }

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
