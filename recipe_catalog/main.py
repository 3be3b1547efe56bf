from typing import Dict, List, Optional
import logging

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse

from recipe_catalog.catalog.compose import compose_displayed
from recipe_catalog.catalog.repository import RecipeRepository
from recipe_catalog.display.view import RecipeView, build_view
from recipe_catalog.errors import CatalogError, ErrorKind, Unauthenticated
from recipe_catalog.models.dto import Notice
from recipe_catalog.models.recipe_schema import (
    COMMON_UNITS,
    CUISINE_OPTIONS,
    DIETARY_OPTIONS,
    Difficulty,
    FilterCriteria,
    Recipe,
    RecipeForm,
)
from recipe_catalog.settings import reload_settings
from recipe_catalog.store.base import RemoteStore
from recipe_catalog.store.diagnostics import check_connection
from recipe_catalog.store.factory import make_store

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.REMOTE: 502,
}

app = FastAPI(title="Recipe Catalog")

_store: Optional[RemoteStore] = None


def get_store() -> RemoteStore:
    global _store
    if _store is None:
        _store = make_store()
    return _store


def get_current_user(authorization: Optional[str] = Header(None), x_user: Optional[str] = Header(None)) -> Optional[str]:
    """
    Minimal dev-friendly auth: if Authorization header present we treat its value as a token and
    derive a uid; otherwise an X-User header may be used locally. Returns None when neither is
    sent; the repository then refuses writes.
    """
    if x_user:
        return x_user
    if authorization:
        # Authorization: Bearer <token>
        parts = authorization.split()
        if len(parts) == 2:
            token = parts[1]
        else:
            token = parts[0]
        # lightweight uid extraction for dev
        return token[-16:]
    return None


def get_repository(
    store: RemoteStore = Depends(get_store),
    user: Optional[str] = Depends(get_current_user),
) -> RecipeRepository:
    return RecipeRepository(store, lambda: user)


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    status = STATUS_BY_KIND.get(exc.kind, 500)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content={
            "error": exc.kind.value,
            "detail": exc.message,
            "notice": Notice.for_error(exc).to_dict(),
        },
    )


@app.on_event("startup")
def startup():
    load_dotenv()
    reload_settings()


@app.get("/health")
def health(store: RemoteStore = Depends(get_store)) -> Dict:
    result = check_connection(store)
    if not result["success"]:
        return JSONResponse(status_code=503, content=result)
    return result


@app.get("/vocabularies")
def vocabularies() -> Dict[str, List[str]]:
    """Choices offered by recipe forms and filters."""
    return {
        "difficulty": [d.value for d in Difficulty],
        "dietary_restrictions": DIETARY_OPTIONS,
        "cuisine_type": CUISINE_OPTIONS,
        "units": COMMON_UNITS,
    }


@app.get("/recipes", response_model=List[Recipe])
def list_recipes(
    q: Optional[str] = None,
    difficulty: Optional[Difficulty] = None,
    cuisine_type: Optional[str] = None,
    dietary: List[str] = Query(default=[]),
    mine: bool = False,
    user: Optional[str] = Depends(get_current_user),
    repo: RecipeRepository = Depends(get_repository),
):
    owner = None
    if mine:
        if not user:
            raise Unauthenticated()
        owner = user
    cached = repo.list_recipes(owner=owner)
    criteria = FilterCriteria(
        difficulty=difficulty,
        cuisine_type=cuisine_type,
        dietary_restrictions=dietary or None,
    )
    return compose_displayed(cached, q, criteria, repo, owner=owner)


@app.get("/recipes/{recipe_id}", response_model=Recipe)
def get_recipe(recipe_id: str, repo: RecipeRepository = Depends(get_repository)):
    return repo.get_recipe(recipe_id)


@app.get("/recipes/{recipe_id}/view", response_model=RecipeView)
def view_recipe(recipe_id: str, repo: RecipeRepository = Depends(get_repository)):
    return build_view(repo.get_recipe(recipe_id))


@app.post("/recipes", response_model=Recipe, status_code=201)
def create_recipe(form: RecipeForm, repo: RecipeRepository = Depends(get_repository)):
    return repo.create_recipe(form)


@app.put("/recipes/{recipe_id}", response_model=Recipe)
def update_recipe(recipe_id: str, form: RecipeForm, repo: RecipeRepository = Depends(get_repository)):
    return repo.update_recipe(recipe_id, form)


@app.delete("/recipes/{recipe_id}")
def delete_recipe(recipe_id: str, repo: RecipeRepository = Depends(get_repository)):
    repo.delete_recipe(recipe_id)
    return {"deleted": True, "id": recipe_id}
