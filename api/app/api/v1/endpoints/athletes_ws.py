"""
WebSocket del directorio de atletas en vivo.

Cada conexion tiene su propio ``AthleteDirectory`` suscrito al store; el
servidor envia la pagina visible completa en cada cambio.

Mensajes del cliente (JSON):
- {"action": "setFilter", "filters": {"county": "Bong", ...}}
- {"action": "clearFilters"}
- {"action": "goToPage", "page": 2} / {"action": "nextPage"} / {"action": "previousPage"}
- "ping"

Mensajes del servidor:
- type: "snapshot" - atletas visibles y estado de paginacion
- type: "error" - mensaje no valido
- type: "pong"
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger

from app.application.use_cases.athlete_directory import AthleteDirectory
from app.application.use_cases.athlete_use_cases import AthleteUseCases
from app.api.v1.dependencies.use_case_deps import get_athlete_use_cases
from app.shared.exceptions.base import AppException


router = APIRouter(prefix="/athletes", tags=["Athletes"])

# Claves del cliente -> atributos de AthleteFilters
FILTER_KEYS = {
    "search": "search",
    "sport": "sport",
    "level": "level",
    "county": "county",
    "scoutingStatus": "scouting_status",
    "position": "position",
    "minAge": "age_min",
    "maxAge": "age_max",
}


class ConnectionManager:
    """
    Gestor de conexiones WebSocket del directorio.

    Mantiene el directorio de cada conexion para poder cancelar su
    suscripcion al desconectar o al cerrar la aplicacion.
    """

    def __init__(self):
        self._directories: Dict[WebSocket, AthleteDirectory] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, directory: AthleteDirectory) -> None:
        """
        Acepta y registra una nueva conexion.

        Args:
            websocket: Conexion WebSocket
            directory: Directorio propio de la conexion
        """
        await websocket.accept()
        async with self._lock:
            self._directories[websocket] = directory
        logger.debug("WebSocket del directorio conectado")

    async def disconnect(self, websocket: WebSocket) -> None:
        """Elimina la conexion y cancela su suscripcion."""
        async with self._lock:
            directory = self._directories.pop(websocket, None)
        if directory is not None:
            await directory.stop_live()
        logger.debug("WebSocket del directorio desconectado")

    async def close_all(self) -> int:
        """Cancela todas las suscripciones. Retorna cuantas habia."""
        async with self._lock:
            directories = list(self._directories.values())
            self._directories.clear()
        for directory in directories:
            await directory.stop_live()
        return len(directories)

    def get_total_connections(self) -> int:
        return len(self._directories)


# Instancia global del gestor de conexiones
manager = ConnectionManager()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _handle_message(directory: AthleteDirectory, message: Dict[str, Any]) -> None:
    action = message.get("action")
    if action == "setFilter":
        raw = message.get("filters") or {}
        unknown = set(raw) - set(FILTER_KEYS)
        if unknown:
            raise ValueError(f"Filtros desconocidos: {', '.join(sorted(unknown))}")
        await directory.set_filter(**{FILTER_KEYS[key]: value for key, value in raw.items()})
    elif action == "clearFilters":
        await directory.clear_filters()
    elif action == "goToPage":
        await directory.go_to_page(int(message.get("page", 1)))
    elif action == "nextPage":
        await directory.next_page()
    elif action == "previousPage":
        await directory.previous_page()
    elif action == "reload":
        await directory.refresh()
    else:
        raise ValueError(f"Accion desconocida: {action}")


@router.websocket("/live")
async def athletes_live_websocket(
    websocket: WebSocket,
    use_cases: AthleteUseCases = Depends(get_athlete_use_cases)
):
    """
    Directorio en vivo: envia un snapshot tras cada cambio del store o de
    los filtros de la conexion.
    """
    async def push_snapshot(directory: AthleteDirectory) -> None:
        try:
            await websocket.send_json({"type": "snapshot", **directory.to_dict(), "timestamp": _timestamp()})
        except RuntimeError as e:
            # Conexion ya cerrada
            logger.debug(f"Snapshot no enviado: {e}")

    directory = AthleteDirectory(use_cases, on_change=push_snapshot)
    await manager.connect(websocket, directory)

    try:
        await directory.start_live()

        while True:
            data = await websocket.receive_json()
            if data == "ping":
                await websocket.send_json({"type": "pong", "timestamp": _timestamp()})
                continue
            try:
                if not isinstance(data, dict):
                    raise ValueError("Se esperaba un objeto JSON")
                await _handle_message(directory, data)
            except (ValueError, TypeError, AppException) as e:
                message = e.message if isinstance(e, AppException) else str(e)
                await websocket.send_json({"type": "error", "message": message})

    except WebSocketDisconnect:
        logger.debug("Cliente desconectado del directorio en vivo")
    except Exception as e:
        logger.error(f"Error en WebSocket del directorio: {e}")
    finally:
        await manager.disconnect(websocket)
