"""Recipes CRUD API router.

Endpoints:
- GET /recipes - Paginated recipe aggregates (optional auth)
- GET /recipes/{id} - One recipe with ingredients, steps, tags, images (optional auth)
- POST /recipes - Create recipe with dependents (auth)
- PUT /recipes/{id} - Partial update, supplied collections replaced (auth)
- DELETE /recipes/{id} - Delete recipe and dependents (auth)
"""

from fastapi import APIRouter, Depends, Query

from .. import queries, workflow
from ..deps import get_authed_store, get_store
from ..responses import format_pagination, format_success
from ..schemas import RecipeCreate, RecipeUpdate
from ..store import RecipeStore

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.get("")
def list_recipes(
    store: RecipeStore = Depends(get_store),
    page: int = Query(queries.DEFAULT_PAGE, ge=1),
    limit: int = Query(queries.DEFAULT_LIMIT, ge=1),
):
    result = queries.list_recipes(store, page=page, limit=limit)
    return format_pagination(
        result.items, result.total, result.page, result.limit,
        "Recipes retrieved successfully",
    )


@router.get("/{recipe_id}")
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_store)):
    recipe = queries.get_recipe(store, recipe_id)
    return format_success(recipe, "Recipe retrieved successfully")


@router.post("", status_code=201)
def create_recipe(payload: RecipeCreate, store: RecipeStore = Depends(get_authed_store)):
    recipe = workflow.create_recipe(store, payload)
    return format_success(recipe, "Recipe created successfully", 201)


@router.put("/{recipe_id}")
def update_recipe(
    recipe_id: str,
    payload: RecipeUpdate,
    store: RecipeStore = Depends(get_authed_store),
):
    recipe = workflow.update_recipe(store, recipe_id, payload)
    return format_success(recipe, "Recipe updated successfully")


@router.delete("/{recipe_id}")
def delete_recipe(recipe_id: str, store: RecipeStore = Depends(get_authed_store)):
    workflow.delete_recipe(store, recipe_id)
    return format_success(None, "Recipe deleted successfully")
