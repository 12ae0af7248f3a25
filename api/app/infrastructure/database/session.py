"""
Engine y sesiones SQLAlchemy del backend SQL del store de documentos.

Solo se usa con ``STORE_BACKEND=sql``. SQLite (por defecto) sirve para
desarrollo; PostgreSQL (asyncpg) para produccion.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from loguru import logger

from app.core.config import settings


Base = declarative_base()


def build_engine(url: str) -> AsyncEngine:
    """
    Crea el engine async para ``url``.

    SQLite comparte la conexion entre tareas; PostgreSQL usa pool.
    """
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


engine = build_engine(settings.effective_database_url)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Crea la tabla de documentos si no existe."""
    # Registra DocumentModel en Base.metadata
    import app.infrastructure.database  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug(f"Tablas del store: {', '.join(sorted(Base.metadata.tables))}")


async def close_db() -> None:
    await engine.dispose()
