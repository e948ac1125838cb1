"""Read queries: paginated recipe lists, single aggregates, tag listings."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import joinedload

from .assembler import recipe_to_aggregate, tag_row
from .errors import ValidationError
from .models import Recipe, RecipeTag, Tag, TagTranslation
from .responses import total_pages
from .store import RecipeStore

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def page_window(page: int, limit: int) -> tuple[int, int]:
    """Zero-based inclusive row window for a 1-based page."""
    if page < 1:
        raise ValidationError("Page must be 1 or greater")
    if limit < 1:
        raise ValidationError("Limit must be 1 or greater")
    start = (page - 1) * limit
    end = page * limit - 1
    return start, end


@dataclass
class RecipePage:
    items: list[dict]
    total: int
    page: int
    limit: int

    @property
    def results(self) -> int:
        return len(self.items)

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.limit)


def aggregate_query():
    """Recipe with every dependent collection joined in the same request."""
    return select(Recipe).options(
        joinedload(Recipe.ingredients),
        joinedload(Recipe.steps),
        joinedload(Recipe.images),
        joinedload(Recipe.recipe_tags).joinedload(RecipeTag.tag),
    ).execution_options(populate_existing=True)


def list_recipes(store: RecipeStore, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> RecipePage:
    """One page of recipe aggregates, newest first.

    ``limit`` is clamped to ``MAX_LIMIT``; the returned page carries the
    limit actually used.
    """
    limit = min(limit, MAX_LIMIT)
    start, end = page_window(page, limit)
    stmt = aggregate_query().order_by(Recipe.created_at.desc(), Recipe.id)
    count_stmt = select(func.count(Recipe.id))
    recipes, total = store.fetch_range(stmt, count_stmt, start, end)
    return RecipePage(
        items=[recipe_to_aggregate(r) for r in recipes],
        total=total,
        page=page,
        limit=limit,
    )


def get_recipe(store: RecipeStore, recipe_id: str) -> dict:
    stmt = aggregate_query().where(Recipe.id == recipe_id)
    recipe = store.fetch_one(stmt, not_found="Recipe not found")
    return recipe_to_aggregate(recipe)


def list_tags(store: RecipeStore) -> list[dict]:
    return [tag_row(t) for t in store.select_ordered(Tag, Tag.name.asc())]


def list_tags_by_language(store: RecipeStore, lang: str) -> list[dict]:
    """Tags translated into ``lang``.

    Only tags with a translation row for ``lang`` are returned; there is no
    fallback to another language, so an unknown code yields ``[]``.
    """
    stmt = (
        select(TagTranslation, Tag)
        .join(Tag, TagTranslation.tag_id == Tag.id)
        .where(TagTranslation.language_code == lang)
        .order_by(TagTranslation.name.asc())
    )
    return [
        {
            "id": tag.id,
            "key": tag.name,
            "name": translation.name,
            "color": tag.color,
        }
        for translation, tag in store.fetch_rows(stmt)
    ]
