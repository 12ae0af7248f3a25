"""
Configuración de fixtures para pytest.
"""
import itertools
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.infrastructure.database.session import Base
from app.infrastructure.database.models import DocumentModel  # noqa: F401
from app.infrastructure.store import CompositeIndexRegistry, InMemoryDocumentStore, SqlDocumentStore
from app.shared.constants.athlete_constants import EQUALITY_FILTER_FIELDS, ORDER_FIELD


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

COLLECTION = "athletes"


def directory_indexes(collection: str = COLLECTION):
    """Todos los indices compuestos que puede pedir el directorio."""
    return [
        (collection, list(combo) + [ORDER_FIELD])
        for size in range(1, len(EQUALITY_FILTER_FIELDS) + 1)
        for combo in itertools.combinations(EQUALITY_FILTER_FIELDS, size)
    ]


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    """Store sin indices: toda consulta filtrada exige la ruta degradada."""
    return InMemoryDocumentStore()


@pytest.fixture
def indexed_store() -> InMemoryDocumentStore:
    """Store con todos los indices del directorio declarados."""
    return InMemoryDocumentStore(CompositeIndexRegistry(directory_indexes()))


@pytest.fixture
def athlete_doc():
    """
    Fabrica de documentos de atleta.
    Cada documento nuevo tiene un updatedAt posterior al anterior.
    """
    counter = itertools.count(1)

    def factory(name: str = None, **fields):
        n = next(counter)
        stamp = f"2025-01-01T{n // 3600:02d}:{(n // 60) % 60:02d}:{n % 60:02d}.000000Z"
        doc = {
            "name": name or f"Athlete {n:03d}",
            "sport": "football",
            "level": "grassroots",
            "scoutingStatus": "active",
            "status": "active",
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        doc.update(fields)
        return doc

    return factory


@pytest.fixture
def seed():
    """Inserta documentos en un store y retorna sus IDs en orden."""
    async def _seed(store, docs, collection: str = COLLECTION):
        return [await store.add(collection, doc) for doc in docs]

    return _seed


@pytest_asyncio.fixture
async def sql_session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory sobre una base SQLite en memoria compartida
    por todas las conexiones del test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def sql_store(sql_session_factory) -> SqlDocumentStore:
    return SqlDocumentStore(sql_session_factory)
