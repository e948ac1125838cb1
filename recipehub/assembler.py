"""Conversion between nested recipe aggregates and flat table rows.

Read side: ORM rows -> one nested dict (recipe fields + ingredients, steps,
tags, images), with ingredients and steps put in display order.

Write side: a request body -> one recipe record plus the dependent rows,
which can only be produced once the recipe id is known.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Optional

from .models import Ingredient, Recipe, RecipeImage, RecipeTag, Step, Tag
from .schemas import RecipeCreate

RECIPE_FIELDS = (
    "id",
    "name",
    "description",
    "prep_time",
    "servings",
    "difficulty",
    "calories",
    "main_image_url",
    "owner_id",
    "is_public",
    "created_at",
    "updated_at",
)

# Scalar columns a client may write
WRITABLE_FIELDS = (
    "name",
    "description",
    "prep_time",
    "servings",
    "difficulty",
    "calories",
    "main_image_url",
    "is_public",
)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


# --- Read side ---

def sort_ingredients(rows: list[dict]) -> list[dict]:
    return sorted(rows, key=lambda r: r.get("order") or 0)


def sort_steps(rows: list[dict]) -> list[dict]:
    return sorted(rows, key=lambda r: r.get("step_number") or 0)


def recipe_row(recipe: Recipe) -> dict:
    return {field: _jsonable(getattr(recipe, field)) for field in RECIPE_FIELDS}


def ingredient_row(ingredient: Ingredient) -> dict:
    return {
        "id": ingredient.id,
        "recipe_id": ingredient.recipe_id,
        "name": ingredient.name,
        "quantity": ingredient.quantity,
        "unit": ingredient.unit,
        "optional": ingredient.optional,
        "order": ingredient.order,
    }


def step_row(step: Step) -> dict:
    return {
        "id": step.id,
        "recipe_id": step.recipe_id,
        "step_number": step.step_number,
        "description": step.description,
        "tip": step.tip,
        "image_url": step.image_url,
    }


def image_row(image: RecipeImage) -> dict:
    return {
        "id": image.id,
        "recipe_id": image.recipe_id,
        "url": image.url,
        "alt_text": image.alt_text,
    }


def tag_row(tag: Tag) -> dict:
    return {"id": tag.id, "name": tag.name, "color": tag.color}


def assemble_recipe(
    recipe: dict,
    ingredients: list[dict],
    steps: list[dict],
    tags: list[dict],
    images: list[dict],
) -> dict:
    """Nest flat rows into one aggregate dict."""
    return {
        **recipe,
        "ingredients": sort_ingredients(ingredients),
        "steps": sort_steps(steps),
        "tags": tags,
        "images": images,
    }


def recipe_to_aggregate(recipe: Recipe) -> dict:
    """Assemble an aggregate from a Recipe loaded with its relationships."""
    return assemble_recipe(
        recipe_row(recipe),
        [ingredient_row(i) for i in recipe.ingredients],
        [step_row(s) for s in recipe.steps],
        [tag_row(rt.tag) for rt in recipe.recipe_tags if rt.tag is not None],
        [image_row(img) for img in recipe.images],
    )


# --- Write side ---

@dataclass
class RecipeDependents:
    """Dependent collections split off a request body.

    ``None`` means the collection was not supplied and must not be touched;
    an empty list means it was supplied empty.
    """
    ingredients: Optional[list[dict]] = None
    steps: Optional[list[dict]] = None
    images: Optional[list[dict]] = None
    tag_ids: Optional[list[int]] = None

    def bind(self, recipe_id: str) -> Iterator[tuple[type, list[dict]]]:
        """Yield (model, rows) per supplied collection, stamped with recipe_id.

        Insert order: ingredients, steps, images, recipe tags.
        """
        if self.ingredients is not None:
            yield Ingredient, [
                {
                    "recipe_id": recipe_id,
                    "name": item["name"],
                    "quantity": item.get("quantity"),
                    "unit": item.get("unit"),
                    "optional": bool(item.get("optional")),
                    "order": item["order"] if item.get("order") is not None else index + 1,
                }
                for index, item in enumerate(self.ingredients)
            ]
        if self.steps is not None:
            yield Step, [
                {
                    "recipe_id": recipe_id,
                    "step_number": (
                        item["step_number"] if item.get("step_number") is not None else index + 1
                    ),
                    "description": item["description"],
                    "tip": item.get("tip"),
                    "image_url": item.get("image_url"),
                }
                for index, item in enumerate(self.steps)
            ]
        if self.images is not None:
            yield RecipeImage, [
                {"recipe_id": recipe_id, "url": item["url"], "alt_text": item.get("alt_text")}
                for item in self.images
            ]
        if self.tag_ids is not None:
            # Association rows are keyed by (recipe_id, tag_id)
            unique_ids = list(dict.fromkeys(self.tag_ids))
            yield RecipeTag, [{"recipe_id": recipe_id, "tag_id": tag_id} for tag_id in unique_ids]


def _clean_text(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


def _quantity(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def split_recipe_payload(payload: RecipeCreate, partial: bool = False) -> tuple[dict, RecipeDependents]:
    """Split a request body into the recipe record and its dependents.

    With ``partial`` only fields present in the body end up in the record,
    and only collections present as lists end up in the dependents.
    """
    present = payload.model_fields_set if partial else set(RecipeCreate.model_fields)

    record: dict[str, Any] = {}
    for field in WRITABLE_FIELDS:
        if field not in present:
            continue
        value = getattr(payload, field)
        if field in ("name", "description", "main_image_url"):
            value = _clean_text(value)
        record[field] = value

    if not partial:
        if record.get("description") is None:
            record["description"] = ""
        if record.get("is_public") is None:
            record["is_public"] = True

    def supplied(field: str) -> bool:
        return field in present and getattr(payload, field) is not None

    dependents = RecipeDependents()
    if supplied("ingredients"):
        dependents.ingredients = [
            {
                "name": _clean_text(i.name),
                "quantity": _quantity(i.quantity),
                "unit": i.unit,
                "optional": i.optional,
                "order": i.order,
            }
            for i in payload.ingredients
        ]
    if supplied("steps"):
        dependents.steps = [
            {
                "step_number": s.step_number,
                "description": _clean_text(s.description),
                "tip": s.tip,
                "image_url": s.image_url,
            }
            for s in payload.steps
        ]
    if supplied("images"):
        dependents.images = [{"url": _clean_text(img.url), "alt_text": img.alt_text} for img in payload.images]
    if supplied("tags"):
        dependents.tag_ids = [t.id for t in payload.tags]

    return record, dependents
