import logging

from fastapi import APIRouter, Depends

from ..deps import get_public_store
from ..errors import ApiError
from ..store import RecipeStore

router = APIRouter()
logger = logging.getLogger("recipehub.ready")

ENDPOINTS = [
    {"method": "GET", "path": "/recipes", "description": "Get all recipes"},
    {"method": "GET", "path": "/recipes/:id", "description": "Get recipe by ID"},
    {"method": "POST", "path": "/recipes", "description": "Create new recipe"},
    {"method": "PUT", "path": "/recipes/:id", "description": "Update existing recipe"},
    {"method": "DELETE", "path": "/recipes/:id", "description": "Delete recipe"},
    {"method": "GET", "path": "/tags", "description": "Get all tags"},
    {"method": "GET", "path": "/tags/:lang", "description": "Get tags translated to a language"},
]


@router.get("/")
def index():
    return {
        "info": "Recipe API with FastAPI and Supabase",
        "version": "1.0.0",
        "endpoints": ENDPOINTS,
    }


@router.get("/ready")
def ready(store: RecipeStore = Depends(get_public_store)):
    db_ok = False
    try:
        db_ok = store.ping()
    except ApiError as e:
        logger.warning(f"Readiness check failed: {e.message}")
    return {"ok": True, "db_ok": db_ok}
