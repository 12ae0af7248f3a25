"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
import json
from typing import List, Tuple
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    - STORE_BACKEND: 'sql' (por defecto) o 'memory'
    - DATABASE_URL: URL completa; si esta vacia se usa SQLite local
    - STORE_COMPOSITE_INDEXES: lista JSON de indices, p.ej.
      [["sport", "level", "updatedAt"]] (el ultimo campo es el de orden)
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Directorio de Atletas")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Store de documentos
    STORE_BACKEND: str = Field(default="sql")
    ATHLETES_COLLECTION: str = Field(default="athletes")
    STORE_COMPOSITE_INDEXES: str = Field(default="[]")

    # Directorio
    DEFAULT_PAGE_SIZE: int = Field(default=12)
    MAX_PAGE_SIZE: int = Field(default=100)
    EXPORT_PAGE_SIZE: int = Field(default=10000)

    # Proveedor de media (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = Field(default="")
    CLOUDINARY_API_KEY: str = Field(default="")
    CLOUDINARY_API_SECRET: str = Field(default="")
    MEDIA_REQUEST_TIMEOUT_SECONDS: float = Field(default=15.0)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return "sqlite+aiosqlite:///./athletes.db"

    @property
    def media_configured(self) -> bool:
        """Indica si hay credenciales del proveedor de media."""
        return bool(
            self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET
        )

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


def get_composite_indexes(raw: str, collection: str) -> List[Tuple[str, List[str]]]:
    """
    Parsea los indices compuestos declarados para una coleccion.
    Acepta una lista JSON de listas de campos.
    """
    try:
        parsed = json.loads(raw or "[]")
    except json.JSONDecodeError:
        parsed = []
    return [(collection, list(fields)) for fields in parsed if isinstance(fields, list) and len(fields) >= 2]


# Instancia global de configuración
settings = Settings()
