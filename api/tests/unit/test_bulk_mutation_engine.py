import pytest

from app.application.services.bulk_mutation_engine import BulkMutationEngine
from app.shared.constants.athlete_constants import BulkActionType
from app.shared.exceptions.domain import BulkOperationException, ValidationException


@pytest.fixture
def engine(indexed_store) -> BulkMutationEngine:
    return BulkMutationEngine(indexed_store, "athletes")


@pytest.mark.asyncio
async def test_update_status_writes_every_id_and_refreshes_updated_at(
    engine, indexed_store, athlete_doc, seed
) -> None:
    ids = await seed(indexed_store, [athlete_doc() for _ in range(3)])
    before = {i: (await indexed_store.get("athletes", i)).get("updatedAt") for i in ids}

    affected = await engine.apply(BulkActionType.UPDATE_STATUS, ids, {"status": "inactive"})

    assert affected == 3
    for doc_id in ids:
        doc = await indexed_store.get("athletes", doc_id)
        assert doc.get("status") == "inactive"
        assert doc.get("updatedAt") > before[doc_id]


@pytest.mark.asyncio
async def test_update_level_and_assign_program(engine, indexed_store, athlete_doc, seed) -> None:
    [doc_id] = await seed(indexed_store, [athlete_doc()])

    await engine.apply(BulkActionType.UPDATE_LEVEL, [doc_id], {"level": "professional"})
    await engine.apply(BulkActionType.ASSIGN_PROGRAM, [doc_id], {"program": "  U17 Elite  "})

    doc = await indexed_store.get("athletes", doc_id)
    assert doc.get("level") == "professional"
    assert doc.get("trainingProgram") == "U17 Elite"


@pytest.mark.asyncio
async def test_missing_id_fails_whole_batch(engine, indexed_store, athlete_doc, seed) -> None:
    ids = await seed(indexed_store, [athlete_doc(status="active") for _ in range(2)])

    with pytest.raises(BulkOperationException) as exc:
        await engine.apply(BulkActionType.UPDATE_STATUS, ids + ["does-not-exist"], {"status": "suspended"})

    assert exc.value.status_code == 409
    assert exc.value.details["count"] == 3
    for doc_id in ids:
        assert (await indexed_store.get("athletes", doc_id)).get("status") == "active"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action, data",
    [
        (BulkActionType.UPDATE_STATUS, {"status": "retired"}),
        (BulkActionType.UPDATE_LEVEL, {}),
        (BulkActionType.ASSIGN_PROGRAM, {"program": "   "}),
    ],
)
async def test_invalid_action_data_is_rejected(engine, indexed_store, athlete_doc, seed, action, data) -> None:
    ids = await seed(indexed_store, [athlete_doc()])

    with pytest.raises(ValidationException):
        await engine.apply(action, ids, data)


@pytest.mark.asyncio
async def test_empty_selection_is_rejected(engine) -> None:
    with pytest.raises(ValidationException):
        await engine.apply(BulkActionType.DELETE, ["", ""])


@pytest.mark.asyncio
async def test_export_does_not_mutate(engine, indexed_store, athlete_doc, seed) -> None:
    [doc_id] = await seed(indexed_store, [athlete_doc()])
    before = (await indexed_store.get("athletes", doc_id)).data

    assert await engine.apply(BulkActionType.EXPORT, [doc_id]) == 0
    assert (await indexed_store.get("athletes", doc_id)).data == before


@pytest.mark.asyncio
async def test_delete_removes_documents_once_each(engine, indexed_store, athlete_doc, seed) -> None:
    ids = await seed(indexed_store, [athlete_doc() for _ in range(3)])

    affected = await engine.apply("delete", [ids[0], ids[1], ids[0]])

    assert affected == 2
    assert await indexed_store.get("athletes", ids[0]) is None
    assert await indexed_store.get("athletes", ids[1]) is None
    assert await indexed_store.get("athletes", ids[2]) is not None
