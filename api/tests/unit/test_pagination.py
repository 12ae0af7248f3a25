"""
Tests de paginacion por cursores.

Propiedades cubiertas:
- Recorrer todas las paginas produce ceil(N/P) paginas sin duplicados
  ni omisiones, en el orden del store.
- count() coincide con la suma de las paginas.
- Las tres rutas (store, degradada y busqueda) cumplen lo anterior.
"""
import math

import pytest

from app.application.services.athlete_query_composer import AthleteQueryComposer
from app.application.services.fallback_filter_engine import FallbackFilterEngine
from app.application.services.pagination import (
    OffsetCursor,
    PaginationCursorManager,
    StoreCursor,
    decode_cursor,
    encode_cursor,
)
from app.domain.entities.athlete import AthleteFilters
from app.domain.repositories.document_store import DocumentSnapshot
from app.shared.exceptions.domain import ValidationException


def _manager(store) -> PaginationCursorManager:
    composer = AthleteQueryComposer("athletes")
    return PaginationCursorManager(FallbackFilterEngine(store, composer), composer)


async def _walk(manager, filters, page_size):
    pages = []
    cursor = None
    while True:
        result = await manager.page(filters, page_size, cursor)
        pages.append(result)
        if not result.has_more:
            return pages
        assert result.next_cursor is not None
        cursor = result.next_cursor


@pytest.mark.asyncio
@pytest.mark.parametrize("total, page_size", [(25, 12), (24, 12), (12, 12), (1, 5), (7, 1)])
async def test_paging_exhausts_collection_exactly(indexed_store, athlete_doc, seed, total, page_size) -> None:
    await seed(indexed_store, [athlete_doc() for _ in range(total)])
    manager = _manager(indexed_store)
    filters = AthleteFilters()

    pages = await _walk(manager, filters, page_size)

    names = [d.get("name") for page in pages for d in page.items]
    expected = sorted(names, reverse=True)  # nombres siguen el orden de updatedAt
    assert len(pages) == math.ceil(total / page_size)
    assert names == expected
    assert len(set(names)) == total
    assert all(page.items for page in pages)
    assert not pages[-1].has_more


@pytest.mark.asyncio
async def test_store_path_uses_store_cursor(indexed_store, athlete_doc, seed) -> None:
    await seed(indexed_store, [athlete_doc() for _ in range(5)])

    first = await _manager(indexed_store).page(AthleteFilters(sport="football"), 2)

    assert isinstance(first.next_cursor, StoreCursor)
    # El cursor es el ultimo documento mostrado, no el primero omitido
    assert first.next_cursor.document.id == first.items[-1].id


@pytest.mark.asyncio
async def test_fallback_path_slices_with_offsets(memory_store, athlete_doc, seed) -> None:
    docs = [athlete_doc(county="Bong" if i % 3 else "Nimba") for i in range(30)]
    await seed(memory_store, docs)
    manager = _manager(memory_store)
    filters = AthleteFilters(county="Bong")

    pages = await _walk(manager, filters, 6)

    assert all(page.used_fallback for page in pages)
    assert isinstance(pages[0].next_cursor, OffsetCursor)
    assert sum(len(p.items) for p in pages) == 20 == await manager.count(filters)
    assert all(d.get("county") == "Bong" for p in pages for d in p.items)


@pytest.mark.asyncio
async def test_fallback_has_more_is_exact_when_many_rows_filtered_out(memory_store, athlete_doc, seed) -> None:
    # Solo 3 de 40 cumplen el filtro: no debe anunciar paginas vacias
    docs = [athlete_doc(county="Bong" if i in (5, 20, 35) else "Nimba") for i in range(40)]
    await seed(memory_store, docs)
    manager = _manager(memory_store)

    first = await manager.page(AthleteFilters(county="Bong"), 3)

    assert len(first.items) == 3
    assert first.has_more is False


@pytest.mark.asyncio
@pytest.mark.parametrize("store_fixture", ["indexed_store", "memory_store"])
async def test_count_equals_sum_of_pages_with_search(request, store_fixture, athlete_doc, seed) -> None:
    store = request.getfixturevalue(store_fixture)
    docs = [
        athlete_doc(name=f"{'Johnson' if i % 4 == 0 else 'Kollie'} {i:02d}", county="Bong" if i % 2 else "Nimba")
        for i in range(40)
    ]
    await seed(store, docs)
    manager = _manager(store)
    filters = AthleteFilters(search="johnson", sport="football")

    pages = await _walk(manager, filters, 4)

    assert sum(len(p.items) for p in pages) == await manager.count(filters) == 10
    assert all("Johnson" in d.get("name") for p in pages for d in p.items)


@pytest.mark.asyncio
async def test_empty_result_has_no_more_pages(indexed_store) -> None:
    result = await _manager(indexed_store).page(AthleteFilters(county="Bong"), 12)

    assert result.items == []
    assert result.has_more is False
    assert result.next_cursor is None


@pytest.mark.asyncio
async def test_page_size_must_be_positive(indexed_store) -> None:
    with pytest.raises(ValidationException):
        await _manager(indexed_store).page(AthleteFilters(), 0)


def test_cursor_tokens_round_trip() -> None:
    store_cursor = StoreCursor(DocumentSnapshot("abc", {"updatedAt": "2025-01-01T00:00:01.000000Z"}))

    decoded = decode_cursor(encode_cursor(store_cursor))
    assert decoded.document.id == "abc"
    assert decoded.document.get("updatedAt") == "2025-01-01T00:00:01.000000Z"

    assert decode_cursor(encode_cursor(OffsetCursor(24))) == OffsetCursor(24)
    assert encode_cursor(None) is None
    assert decode_cursor(None) is None


@pytest.mark.parametrize("token", ["not-base64!!", "eyJrIjoieCJ9", "eyJrIjoibyIsIm4iOi0xfQ"])
def test_invalid_cursor_tokens_are_rejected(token) -> None:
    with pytest.raises(ValidationException):
        decode_cursor(token)
