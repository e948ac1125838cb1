"""Tests for the recipe write workflow against an in-memory store.

Tests cover:
- Validation before any write
- Ordered create with compensating delete on dependent failure
- Partial update with wholesale collection replacement
- Delete with cascade
"""

import logging

import pytest

from recipehub import workflow
from recipehub.assembler import split_recipe_payload
from recipehub.errors import NotFoundError, UpstreamError, ValidationError
from recipehub.models import Ingredient, Recipe, RecipeTag, Step
from recipehub.schemas import RecipeCreate, RecipeUpdate

from conftest import TEST_USER


def _create(store, payload: dict) -> dict:
    return workflow.create_recipe(store, RecipeCreate.model_validate(payload))


def _update(store, recipe_id: str, payload: dict) -> dict:
    return workflow.update_recipe(store, recipe_id, RecipeUpdate.model_validate(payload))


# --- Create ---

def test_create_returns_sorted_aggregate(store, make_payload, tags):
    payload = make_payload(
        ingredients=[
            {"name": "third", "order": 3},
            {"name": "first", "order": 1},
            {"name": "second", "order": 2},
        ],
        steps=[
            {"stepNumber": 2, "description": "Cook"},
            {"stepNumber": 1, "description": "Prep"},
        ],
        images=[{"url": "http://img/pancakes.jpg"}],
        tags=[{"id": 1}, {"id": 2}],
    )
    recipe = _create(store, payload)

    assert recipe["id"]
    assert recipe["name"] == "Pancakes"
    assert recipe["owner_id"] == TEST_USER.id
    assert [i["name"] for i in recipe["ingredients"]] == ["first", "second", "third"]
    assert [s["description"] for s in recipe["steps"]] == ["Prep", "Cook"]
    assert sorted(t["name"] for t in recipe["tags"]) == ["quick", "vegan"]
    assert recipe["images"][0]["url"] == "http://img/pancakes.jpg"
    assert recipe["created_at"] is not None


def test_create_defaults_positions(store, make_payload):
    recipe = _create(store, make_payload())
    assert [i["order"] for i in recipe["ingredients"]] == [1, 2, 3]
    assert [s["step_number"] for s in recipe["steps"]] == [1, 2, 3]
    assert recipe["steps"][1]["tip"] == "Do not overmix"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"prepTime": 0}, "Valid preparation time is required"),
        ({"servings": 0}, "Valid number of servings is required"),
        ({"difficulty": 6}, "Difficulty must be between 1 and 5"),
        ({"difficulty": 0}, "Difficulty must be between 1 and 5"),
        ({"ingredients": []}, "At least one ingredient is required"),
        ({"steps": []}, "At least one step is required"),
        ({"name": "   "}, "Name is required"),
        ({"calories": -5}, "Calories cannot be negative"),
    ],
)
def test_create_validation_leaves_no_rows(store, db_session, make_payload, overrides, message):
    with pytest.raises(ValidationError) as exc_info:
        _create(store, make_payload(**overrides))

    assert exc_info.value.message == message
    assert exc_info.value.status_code == 400
    assert db_session.query(Recipe).count() == 0


def test_create_validation_reports_every_problem(store, make_payload):
    with pytest.raises(ValidationError) as exc_info:
        _create(store, make_payload(prepTime=0, servings=0, ingredients=[{"quantity": "1"}]))

    assert exc_info.value.detail == [
        "Valid preparation time is required",
        "Valid number of servings is required",
        "Ingredient 1 needs a name",
    ]


def test_failed_dependent_insert_removes_recipe(store, db_session, make_payload, tags, caplog):
    # Tag 999 does not exist: the recipe_tags insert violates its foreign key
    payload = make_payload(tags=[{"id": 1}, {"id": 999}])

    with caplog.at_level(logging.WARNING, logger="recipehub.workflow"):
        with pytest.raises(UpstreamError):
            _create(store, payload)

    db_session.expire_all()
    assert db_session.query(Recipe).count() == 0
    assert db_session.query(Ingredient).count() == 0
    assert db_session.query(Step).count() == 0
    assert db_session.query(RecipeTag).count() == 0
    assert "Rolled back recipe" in caplog.text


def test_failed_compensation_is_logged_and_original_error_propagates(
    store, db_session, make_payload, monkeypatch, caplog
):
    original_insert = store.insert

    def flaky_insert(model, rows):
        if model is Step:
            raise UpstreamError("Failed to insert into steps")
        return original_insert(model, rows)

    def broken_delete(model, **filters):
        raise UpstreamError("Failed to delete from recipes")

    monkeypatch.setattr(store, "insert", flaky_insert)
    monkeypatch.setattr(store, "delete", broken_delete)

    with caplog.at_level(logging.ERROR, logger="recipehub.workflow"):
        with pytest.raises(UpstreamError) as exc_info:
            _create(store, make_payload())

    assert exc_info.value.message == "Failed to insert into steps"
    assert "Compensating delete failed" in caplog.text
    # Nothing undid the parent row
    db_session.expire_all()
    assert db_session.query(Recipe).count() == 1
    assert db_session.query(Ingredient).count() == 3


def test_driver_error_in_dependent_insert_removes_recipe(store, db_session, make_payload, caplog):
    record, dependents = split_recipe_payload(RecipeCreate.model_validate(make_payload()))
    # Out of range for an INTEGER column; sqlite3 raises OverflowError
    dependents.ingredients[0]["order"] = 10**20

    with caplog.at_level(logging.WARNING, logger="recipehub.workflow"):
        with pytest.raises(UpstreamError):
            workflow.insert_aggregate(store, record, dependents)

    db_session.expire_all()
    assert db_session.query(Recipe).count() == 0
    assert db_session.query(Ingredient).count() == 0
    assert "Rolled back recipe" in caplog.text
    assert "Compensating delete failed" not in caplog.text


# --- Update ---

def test_update_without_ingredients_keeps_them(store, make_payload):
    recipe = _create(store, make_payload())

    updated = _update(store, recipe["id"], {"name": "Crepes"})

    assert updated["name"] == "Crepes"
    assert [i["name"] for i in updated["ingredients"]] == ["flour", "milk", "egg"]
    assert len(updated["steps"]) == 3


def test_update_with_empty_ingredients_clears_them(store, make_payload):
    recipe = _create(store, make_payload())

    updated = _update(store, recipe["id"], {"ingredients": []})

    assert updated["ingredients"] == []
    assert len(updated["steps"]) == 3


def test_update_replaces_supplied_collections(store, make_payload, tags):
    recipe = _create(store, make_payload(tags=[1]))

    updated = _update(store, recipe["id"], {
        "steps": [{"description": "Just order takeaway"}],
        "tags": [{"id": 3}],
    })

    assert [s["description"] for s in updated["steps"]] == ["Just order takeaway"]
    assert updated["steps"][0]["step_number"] == 1
    assert [t["name"] for t in updated["tags"]] == ["dessert"]


def test_update_can_keep_an_existing_tag(store, make_payload, tags):
    recipe = _create(store, make_payload(tags=[1]))

    updated = _update(store, recipe["id"], {"tags": [1, 2]})

    assert sorted(t["id"] for t in updated["tags"]) == [1, 2]


def test_update_applies_empty_description(store, make_payload):
    recipe = _create(store, make_payload())

    updated = _update(store, recipe["id"], {"description": ""})

    assert updated["description"] == ""
    assert updated["name"] == "Pancakes"


def test_update_validates_present_fields(store, make_payload):
    recipe = _create(store, make_payload())

    with pytest.raises(ValidationError):
        _update(store, recipe["id"], {"prepTime": 0})

    with pytest.raises(ValidationError):
        _update(store, recipe["id"], {"difficulty": None})


def test_update_missing_recipe(store):
    with pytest.raises(NotFoundError):
        _update(store, "does-not-exist", {"name": "Anything"})


def test_update_requires_id(store):
    with pytest.raises(ValidationError):
        _update(store, "", {"name": "Anything"})


# --- Delete ---

def test_delete_cascades_to_dependents(store, db_session, make_payload, tags):
    recipe = _create(store, make_payload(tags=[1]))

    workflow.delete_recipe(store, recipe["id"])

    db_session.expire_all()
    assert db_session.query(Recipe).count() == 0
    assert db_session.query(Ingredient).count() == 0
    assert db_session.query(Step).count() == 0
    assert db_session.query(RecipeTag).count() == 0


def test_delete_missing_recipe(store):
    with pytest.raises(NotFoundError) as exc_info:
        workflow.delete_recipe(store, "does-not-exist")
    assert exc_info.value.status_code == 404
