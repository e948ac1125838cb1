from fastapi import APIRouter, Depends

from .. import queries
from ..deps import get_public_store
from ..responses import format_success
from ..store import RecipeStore

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("")
def list_tags(store: RecipeStore = Depends(get_public_store)):
    """All tags sorted by name."""
    return format_success(queries.list_tags(store), "Tags retrieved successfully")


@router.get("/{lang}")
def list_tags_by_language(lang: str, store: RecipeStore = Depends(get_public_store)):
    """Tags translated into ``lang``; empty when the language has no translations."""
    response = format_success(queries.list_tags_by_language(store, lang), "Tags retrieved successfully")
    response["language"] = lang
    return response
