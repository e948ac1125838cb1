"""Create / update / delete of a recipe aggregate.

The store offers no multi-table transactions, so a create writes the recipe
row first and its dependents afterwards. If any dependent insert fails the
recipe row is deleted again (its partially inserted dependents go with it
through the cascade) and the original error is re-raised. This compensation
is best effort: if the delete fails too, the failure is logged and the
rows stay behind.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from .assembler import RecipeDependents, split_recipe_payload
from .errors import ApiError, ValidationError
from .models import Recipe
from .queries import get_recipe
from .schemas import RecipeCreate, RecipeUpdate
from .store import RecipeStore

logger = logging.getLogger("recipehub.workflow")

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


# --- Validation ---

def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def validate_recipe(payload: RecipeCreate, partial: bool = False) -> None:
    """Check domain rules; raise ValidationError listing every problem.

    Without ``partial`` every required field is checked. With ``partial``
    only fields present in the body are checked, using the same rules.
    """
    present = payload.model_fields_set if partial else None

    def check(field: str) -> bool:
        return present is None or field in present

    problems: list[str] = []

    if check("name") and not (payload.name and payload.name.strip()):
        problems.append("Name is required")
    if check("prep_time") and not _is_positive_int(payload.prep_time):
        problems.append("Valid preparation time is required")
    if check("servings") and not _is_positive_int(payload.servings):
        problems.append("Valid number of servings is required")
    if check("difficulty") and not (
        isinstance(payload.difficulty, int) and MIN_DIFFICULTY <= payload.difficulty <= MAX_DIFFICULTY
    ):
        problems.append(f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}")
    if check("calories") and payload.calories is not None and payload.calories < 0:
        problems.append("Calories cannot be negative")
    if partial and "is_public" in present and payload.is_public is None:
        problems.append("Visibility cannot be null")

    if not partial:
        if not payload.ingredients:
            problems.append("At least one ingredient is required")
        if not payload.steps:
            problems.append("At least one step is required")

    for index, ingredient in enumerate(payload.ingredients or [], start=1):
        if not (ingredient.name and ingredient.name.strip()):
            problems.append(f"Ingredient {index} needs a name")
    for index, step in enumerate(payload.steps or [], start=1):
        if not (step.description and step.description.strip()):
            problems.append(f"Step {index} needs a description")
    for index, image in enumerate(payload.images or [], start=1):
        if not (image.url and image.url.strip()):
            problems.append(f"Image {index} needs a url")
    for index, tag in enumerate(payload.tags or [], start=1):
        if tag.id is None:
            problems.append(f"Tag {index} needs an id")

    if problems:
        raise ValidationError(problems[0], detail=problems)


# --- Writes ---

def _compensate(store: RecipeStore, recipe_id: str) -> bool:
    try:
        store.delete(Recipe, id=recipe_id)
    except ApiError as e:
        logger.error(
            f"Compensating delete failed for recipe {recipe_id}; "
            f"dependent rows may be orphaned: {e.message}"
        )
        return False
    logger.warning(f"Rolled back recipe {recipe_id} after a failed dependent insert")
    return True


def insert_aggregate(store: RecipeStore, record: dict, dependents: RecipeDependents) -> str:
    """Insert the recipe row, then its dependents; undo the recipe on failure.

    Returns the new recipe id.
    """
    recipe = store.insert(Recipe, [record])[0]
    recipe_id = recipe.id
    try:
        for model, rows in dependents.bind(recipe_id):
            if rows:
                store.insert(model, rows)
    except Exception:
        _compensate(store, recipe_id)
        raise
    return recipe_id


def create_recipe(store: RecipeStore, payload: RecipeCreate) -> dict:
    validate_recipe(payload)
    record, dependents = split_recipe_payload(payload)
    record["owner_id"] = store.owner_id

    recipe_id = insert_aggregate(store, record, dependents)
    logger.info(f"Created recipe {recipe_id}")
    return get_recipe(store, recipe_id)


def update_recipe(store: RecipeStore, recipe_id: Optional[str], payload: RecipeUpdate) -> dict:
    """Apply a partial update; supplied collections are replaced wholesale."""
    if not recipe_id:
        raise ValidationError("Recipe ID is required")
    store.select_one(Recipe, id=recipe_id, not_found="Recipe not found")

    validate_recipe(payload, partial=True)
    record, dependents = split_recipe_payload(payload, partial=True)
    record["updated_at"] = datetime.now(timezone.utc)
    store.update(Recipe, record, id=recipe_id)

    for model, rows in dependents.bind(recipe_id):
        store.delete(model, recipe_id=recipe_id)
        if rows:
            store.insert(model, rows)

    logger.info(f"Updated recipe {recipe_id}")
    return get_recipe(store, recipe_id)


def delete_recipe(store: RecipeStore, recipe_id: Optional[str]) -> None:
    if not recipe_id:
        raise ValidationError("Recipe ID is required")
    store.select_one(Recipe, id=recipe_id, not_found="Recipe not found")
    store.delete(Recipe, id=recipe_id)
    logger.info(f"Deleted recipe {recipe_id}")
