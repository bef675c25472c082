from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from recipe_flow.config import Settings
from recipe_flow.core.models import Recipe, RecipeUpdate
from recipe_flow.services.exceptions import RepoError
from recipe_flow.services.repo.json_repo import JSONEventRepo, JSONFileStore
from recipe_flow.services.repo.recipe_repo import RecipeRepo

router = APIRouter(tags=["recipes"])

# ---- DI helpers --------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_recipe_repo(settings: Settings = Depends(get_settings)) -> RecipeRepo:
    return RecipeRepo(JSONFileStore(settings), settings.recipes_key, events=JSONEventRepo(settings))

# ---- Routes ------------------------------------------------------------------

@router.get("/api/v1/recipes", response_model=List[Recipe], response_model_exclude_none=True)
def list_recipes(repo: RecipeRepo = Depends(get_recipe_repo)):
    try:
        return repo.get_saved_recipes()
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/api/v1/recipes/{slug}", response_model=Recipe, response_model_exclude_none=True)
def get_recipe(slug: str, repo: RecipeRepo = Depends(get_recipe_repo)):
    try:
        recipe = repo.get_recipe_by_slug(slug)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Recipe '{slug}' not found")
    return recipe


@router.post("/api/v1/recipes", response_model=Recipe, response_model_exclude_none=True)
def save_recipe(recipe: Recipe, repo: RecipeRepo = Depends(get_recipe_repo)):
    try:
        return repo.save_recipe(recipe)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/api/v1/recipes/{slug}", response_model=Recipe, response_model_exclude_none=True)
def update_recipe(slug: str, updates: RecipeUpdate, repo: RecipeRepo = Depends(get_recipe_repo)):
    try:
        recipe = repo.update_recipe(slug, updates)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Recipe '{slug}' not found")
    return recipe


@router.delete("/api/v1/recipes/{slug}")
def delete_recipe(slug: str, repo: RecipeRepo = Depends(get_recipe_repo)):
    try:
        removed = repo.delete_recipe(slug)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not removed:
        raise HTTPException(status_code=404, detail=f"Recipe '{slug}' not found")
    return {"ok": True}
