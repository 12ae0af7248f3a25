"""
Tests de suscripciones en vivo al directorio.
"""
import asyncio

import pytest

from app.application.services.athlete_query_composer import AthleteQueryComposer
from app.application.services.live_subscription import (
    AthleteListState,
    LiveSubscriptionReconciler,
    Subscription,
)
from app.domain.entities.athlete import AthleteFilters


def _reconciler(store) -> LiveSubscriptionReconciler:
    return LiveSubscriptionReconciler(store, AthleteQueryComposer("athletes"))


class Recorder:
    """Callback que guarda los nombres de cada snapshot recibido."""

    def __init__(self):
        self.snapshots = []

    def __call__(self, docs):
        self.snapshots.append([d.get("name") for d in docs])


@pytest.mark.asyncio
async def test_initial_snapshot_and_updates_are_refiltered(indexed_store, athlete_doc, seed) -> None:
    await seed(indexed_store, [athlete_doc(name="John Doe"), athlete_doc(name="Mary Kollie")])
    recorder = Recorder()

    subscription = await _reconciler(indexed_store).subscribe(
        AthleteFilters(sport="football", search="john"), recorder
    )
    await seed(indexed_store, [athlete_doc(name="Johnny Weah"), athlete_doc(name="Ben Sirleaf")])
    await indexed_store.listeners.drain()
    subscription.unsubscribe()

    assert subscription.used_fallback is False
    assert recorder.snapshots[0] == ["John Doe"]
    assert recorder.snapshots[-1] == ["Johnny Weah", "John Doe"]


@pytest.mark.asyncio
async def test_missing_index_subscribes_to_whole_collection(memory_store, athlete_doc, seed) -> None:
    await seed(memory_store, [athlete_doc(county="Bong", name="A"), athlete_doc(county="Nimba", name="B")])
    recorder = Recorder()

    subscription = await _reconciler(memory_store).subscribe(AthleteFilters(county="Bong"), recorder)
    await seed(memory_store, [athlete_doc(county="Bong", name="C")])
    await memory_store.listeners.drain()
    subscription.unsubscribe()

    assert subscription.used_fallback is True
    assert recorder.snapshots == [["A"], ["C", "A"]]


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent_and_stops_callbacks(indexed_store, athlete_doc, seed) -> None:
    recorder = Recorder()
    subscription = await _reconciler(indexed_store).subscribe(AthleteFilters(), recorder)

    subscription.unsubscribe()
    subscription()
    await seed(indexed_store, [athlete_doc()])

    assert subscription.active is False
    assert recorder.snapshots == [[]]
    assert len(indexed_store.listeners) == 0


@pytest.mark.asyncio
async def test_async_callbacks_are_awaited(indexed_store, athlete_doc, seed) -> None:
    received = []

    async def callback(docs):
        received.append(len(docs))

    subscription = await _reconciler(indexed_store).subscribe(AthleteFilters(), callback)
    await seed(indexed_store, [athlete_doc(), athlete_doc()])
    await indexed_store.listeners.drain()
    subscription.unsubscribe()

    assert received == [0, 1, 2]


def test_subscription_cancelled_before_bind_cancels_store_listener() -> None:
    cancelled = []
    subscription = Subscription()

    subscription.unsubscribe()
    subscription.bind(lambda: cancelled.append(True), used_fallback=False)

    assert cancelled == [True]


def test_list_state_replaces_items_on_each_snapshot() -> None:
    state = AthleteListState()

    state.apply_snapshot(["a", "b"])
    state.apply_snapshot(["c"])

    assert state.items == ("c",)
    assert state.version == 2
    assert len(state) == 1


@pytest.mark.asyncio
async def test_slow_subscriber_does_not_delay_writes(indexed_store, athlete_doc, seed) -> None:
    release = asyncio.Event()
    received = []

    async def callback(docs):
        if received:
            await release.wait()
        received.append(len(docs))

    subscription = await _reconciler(indexed_store).subscribe(AthleteFilters(), callback)
    await asyncio.wait_for(seed(indexed_store, [athlete_doc(), athlete_doc()]), timeout=1)

    assert received == [0]

    release.set()
    await indexed_store.listeners.drain()
    subscription.unsubscribe()

    assert received == [0, 1, 2]


@pytest.mark.asyncio
async def test_failing_initial_delivery_leaves_no_listener(indexed_store, athlete_doc, seed) -> None:
    await seed(indexed_store, [athlete_doc()])

    def callback(docs):
        raise RuntimeError("render failed")

    with pytest.raises(RuntimeError):
        await _reconciler(indexed_store).subscribe(AthleteFilters(), callback)

    assert len(indexed_store.listeners) == 0
    await seed(indexed_store, [athlete_doc()])
