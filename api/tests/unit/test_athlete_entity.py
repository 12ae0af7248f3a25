import pytest

from app.domain.entities.athlete import (
    Athlete,
    AthleteContact,
    AthleteFilters,
    AthleteMedia,
    PaginationState,
    strip_none,
)
from app.shared.exceptions.domain import ValidationException


def test_to_document_omits_missing_optional_fields() -> None:
    athlete = Athlete(name="John Doe", county="Montserrado", contact=AthleteContact(email="j@x.lr"))

    doc = athlete.to_document()

    assert doc["name"] == "John Doe"
    assert doc["scoutingStatus"] == "active"
    assert doc["contact"] == {"email": "j@x.lr"}
    assert "position" not in doc
    assert "age" not in doc
    assert "id" not in doc
    assert None not in doc.values()


def test_strip_none_is_recursive() -> None:
    assert strip_none({"a": None, "b": {"c": None, "d": 1}, "e": [None, 2]}) == {"b": {"d": 1}, "e": [2]}


def test_from_document_keeps_unknown_fields() -> None:
    data = {
        "name": "Jane",
        "scoutingStatus": "scouted",
        "stats": {"goals": 4, "tackles": 9},
        "media": [{"id": "athletes/x/photos/1_a.jpg", "url": "https://cdn/a.jpg", "type": "photo"}],
        "favouriteColour": "blue",
    }

    athlete = Athlete.from_document("abc", data)

    assert athlete.id == "abc"
    assert athlete.scouting_status == "scouted"
    assert athlete.stats == {"goals": 4, "tackles": 9}
    assert athlete.media == [AthleteMedia(id="athletes/x/photos/1_a.jpg", url="https://cdn/a.jpg", type="photo")]
    assert athlete.extra == {"favouriteColour": "blue"}
    assert athlete.to_document()["favouriteColour"] == "blue"


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"name": "   "}, "name"),
        ({"name": "A", "level": "amateur"}, "level"),
        ({"name": "A", "scouting_status": "retired"}, "scoutingStatus"),
        ({"name": "A", "status": "deleted"}, "status"),
        ({"name": "A", "stats": {"goals": "many"}}, "stats"),
    ],
)
def test_validate_rejects_invalid_values(kwargs, field) -> None:
    with pytest.raises(ValidationException) as exc:
        Athlete(**kwargs).validate()
    assert exc.value.details["field"] == field


def test_stats_accept_arbitrary_numeric_keys() -> None:
    Athlete(name="A", stats={"goals": 1, "sprintSpeed": 32.5}).validate()


def test_equality_predicates_skip_all_sentinel_and_blank() -> None:
    filters = AthleteFilters(sport="football", level="all", county="Bong", scouting_status="", position="all")

    assert filters.equality_predicates() == [("sport", "football"), ("county", "Bong")]


def test_directory_default_filters_football_only() -> None:
    filters = AthleteFilters.directory_default()

    assert filters.equality_predicates() == [("sport", "football")]
    assert filters.search_term == ""


def test_pagination_recompute_rounds_up() -> None:
    state = PaginationState(page=1, page_size=12)

    state.recompute(25)
    assert (state.total, state.total_pages) == (25, 3)

    state.recompute(0)
    assert state.total_pages == 0
