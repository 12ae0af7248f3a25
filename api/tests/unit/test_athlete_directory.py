"""
Tests del estado del directorio (paginacion, filtros y modo en vivo).
"""
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from app.application.use_cases.athlete_directory import AthleteDirectory
from app.application.use_cases.athlete_use_cases import AthleteUseCases
from app.shared.exceptions.domain import StoreUnavailableException, ValidationException


@pytest.fixture
def use_cases(indexed_store) -> AthleteUseCases:
    return AthleteUseCases(indexed_store, collection="athletes")


@pytest_asyncio.fixture
async def directory(use_cases, indexed_store, athlete_doc, seed) -> AthleteDirectory:
    docs = [athlete_doc(county="Bong" if i % 2 else "Nimba") for i in range(12)]
    docs.append(athlete_doc(sport="basketball"))
    await seed(indexed_store, docs)
    return AthleteDirectory(use_cases, page_size=5)


def _names(directory: AthleteDirectory):
    return [a.name for a in directory.athletes]


@pytest.mark.asyncio
async def test_load_counts_and_shows_first_page_of_football(directory) -> None:
    await directory.load()

    assert directory.pagination.total == 12
    assert directory.pagination.total_pages == 3
    assert _names(directory) == [f"Athlete {n:03d}" for n in range(12, 7, -1)]
    assert directory.error is None


@pytest.mark.asyncio
async def test_go_to_page_walks_unknown_cursors_in_order(directory) -> None:
    await directory.load()

    await directory.go_to_page(3)
    assert _names(directory) == ["Athlete 002", "Athlete 001"]

    await directory.previous_page()
    assert directory.pagination.page == 2
    assert _names(directory) == [f"Athlete {n:03d}" for n in range(7, 2, -1)]

    await directory.next_page()
    await directory.next_page()
    assert directory.pagination.page == 3


@pytest.mark.asyncio
async def test_page_out_of_range_keeps_current_page(directory) -> None:
    await directory.load()

    await directory.go_to_page(9)

    assert directory.pagination.page == 1
    assert len(directory.athletes) == 5
    assert "9" in directory.error


@pytest.mark.asyncio
async def test_set_filter_resets_to_first_page(directory) -> None:
    await directory.load()
    await directory.go_to_page(2)

    await directory.set_filter(county="Bong")

    assert directory.pagination.page == 1
    assert directory.pagination.total == 6
    assert all(a.county == "Bong" for a in directory.athletes)

    await directory.clear_filters()
    assert directory.pagination.total == 12


@pytest.mark.asyncio
async def test_unknown_filter_is_rejected(directory) -> None:
    with pytest.raises(ValidationException):
        await directory.set_filter(colour="red")


@pytest.mark.asyncio
async def test_failed_reload_keeps_last_good_list(directory, use_cases) -> None:
    await directory.load()
    before = _names(directory)
    use_cases.get_athletes_count = AsyncMock(
        side_effect=StoreUnavailableException("get_athletes_count", "backend down")
    )

    await directory.refresh()

    assert _names(directory) == before
    assert directory.error == "Error del store durante 'get_athletes_count'"


@pytest.mark.asyncio
async def test_live_mode_follows_store_changes(directory, use_cases) -> None:
    pushes = []
    directory.on_change = lambda d: pushes.append(d.pagination.total)

    await directory.start_live()
    assert directory.is_live
    assert directory.pagination.total == 12

    await use_cases.create_athlete({"name": "Newest"})
    await use_cases.store.listeners.drain()

    assert _names(directory)[0] == "Newest"
    assert directory.pagination.total == 13
    assert pushes[-1] == 13

    await directory.go_to_page(3)
    assert len(directory.athletes) == 3

    await directory.stop_live()
    await directory.stop_live()
    await use_cases.create_athlete({"name": "Unseen"})
    await use_cases.store.listeners.drain()
    assert directory.is_live is False
    assert directory.pagination.total == 13


@pytest.mark.asyncio
async def test_to_dict_exposes_state(directory) -> None:
    await directory.load()

    view = directory.to_dict()

    assert view["pagination"] == {"page": 1, "pageSize": 5, "total": 12, "totalPages": 3}
    assert view["live"] is False
    assert view["usedFallback"] is False
    assert view["athletes"][0]["name"] == "Athlete 012"
    assert "id" in view["athletes"][0]


@pytest.mark.asyncio
async def test_initial_live_push_reports_live(directory) -> None:
    pushes = []
    directory.on_change = lambda d: pushes.append(d.to_dict()["live"])

    await directory.start_live()

    assert pushes[0] is True
    await directory.stop_live()
