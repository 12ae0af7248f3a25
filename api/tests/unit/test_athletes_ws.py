"""
Tests del WebSocket del directorio en vivo.
"""
import asyncio

from fastapi.testclient import TestClient

from app.api.v1.dependencies.use_case_deps import get_athlete_use_cases
from app.application.use_cases.athlete_use_cases import AthleteUseCases
from app.core.config import settings
from app.infrastructure.store.store_manager import StoreManager


def _client(store) -> TestClient:
    from main import create_application
    app = create_application()
    app.dependency_overrides[get_athlete_use_cases] = lambda: AthleteUseCases(store, collection="athletes")
    return TestClient(app)


def test_live_directory_pushes_snapshots_and_handles_actions(indexed_store, athlete_doc, seed) -> None:
    asyncio.run(seed(indexed_store, [
        athlete_doc(name="John Doe", county="Bong"),
        athlete_doc(name="Mary Kollie", county="Nimba"),
        athlete_doc(name="Hoops", sport="basketball"),
    ]))
    client = _client(indexed_store)

    with client.websocket_connect("/api/v1/athletes/live") as ws:
        initial = ws.receive_json()
        assert initial["type"] == "snapshot"
        assert initial["live"] is True
        assert initial["pagination"]["total"] == 2
        assert [a["name"] for a in initial["athletes"]] == ["Mary Kollie", "John Doe"]

        ws.send_json({"action": "setFilter", "filters": {"county": "Bong"}})
        filtered = ws.receive_json()
        assert filtered["pagination"]["total"] == 1
        assert filtered["athletes"][0]["county"] == "Bong"

        ws.send_json({"action": "goToPage", "page": 9})
        out_of_range = ws.receive_json()
        assert out_of_range["type"] == "snapshot"
        assert "9" in out_of_range["error"]
        assert out_of_range["pagination"]["page"] == 1

        ws.send_json({"action": "reload"})
        reloaded = ws.receive_json()
        assert reloaded["error"] is None
        assert reloaded["live"] is True
        assert reloaded["pagination"]["total"] == 1

        ws.send_json("ping")
        assert ws.receive_json()["type"] == "pong"

        ws.send_json({"action": "fly"})
        assert ws.receive_json() == {"type": "error", "message": "Accion desconocida: fly"}

        ws.send_json({"action": "setFilter", "filters": {"colour": "red"}})
        assert ws.receive_json()["type"] == "error"


def test_live_directory_uses_fallback_without_indexes(memory_store, athlete_doc, seed) -> None:
    asyncio.run(seed(memory_store, [athlete_doc(county="Bong"), athlete_doc(county="Nimba")]))
    client = _client(memory_store)

    with client.websocket_connect("/api/v1/athletes/live") as ws:
        initial = ws.receive_json()
        degraded = ws.receive_json()

    assert initial["pagination"]["total"] == 2
    assert degraded["usedFallback"] is True
    assert degraded["athletes"] == initial["athletes"]


def test_lifespan_opens_store_and_releases_it_on_shutdown(monkeypatch, tmp_path, memory_store) -> None:
    from main import create_application

    monkeypatch.setattr(settings, "STORE_BACKEND", "memory")
    monkeypatch.setattr(settings, "LOG_FILE", str(tmp_path / "app.log"))
    StoreManager.set(memory_store)

    with TestClient(create_application()) as client:
        assert StoreManager.get() is memory_store
        assert client.get("/health").json()["store_backend"] == "memory"

    assert StoreManager._store is None
