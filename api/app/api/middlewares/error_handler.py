"""
Middleware para manejo centralizado de errores no controlados.
"""
import time

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Captura cualquier excepcion que no sea ``AppException`` y responde 500
    con el mismo formato de error que el resto de la API.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        try:
            response = await call_next(request)
        except Exception as exc:
            # Escapar llaves: loguru formatea el mensaje
            error_msg = str(exc).replace("{", "{{").replace("}", "}}")
            logger.opt(exception=exc).error(f"Error no manejado en {route}: {error_msg}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "Ha ocurrido un error interno del servidor",
                    "details": {"path": request.url.path},
                }
            )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"{route} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response
