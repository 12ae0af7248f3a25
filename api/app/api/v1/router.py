"""
Router principal de la API v1.
Agrupa todos los endpoints de la version 1.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import athletes, athletes_ws


# Router principal de la API v1
api_router = APIRouter(prefix="/v1")

# El WebSocket va primero para que /athletes/live no lo capture /{athlete_id}
api_router.include_router(athletes_ws.router)
api_router.include_router(athletes.router)
