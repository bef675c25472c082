from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from recipe_flow.config import Settings
from recipe_flow.core.models import Preferences
from recipe_flow.services.exceptions import RepoError
from recipe_flow.services.repo.json_repo import JSONFileStore
from recipe_flow.services.repo.preferences_repo import PreferencesRepo

router = APIRouter(tags=["preferences"])

# ---- Dependencies ------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_preferences_repo(settings: Settings = Depends(get_settings)) -> PreferencesRepo:
    return PreferencesRepo(JSONFileStore(settings))

# ---- Routes ------------------------------------------------------------------

@router.get("/api/v1/preferences", response_model=Preferences)
def get_preferences(repo: PreferencesRepo = Depends(get_preferences_repo)):
    try:
        return repo.load()
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/api/v1/preferences", response_model=Preferences)
def update_preferences(prefs: Preferences, repo: PreferencesRepo = Depends(get_preferences_repo)):
    try:
        repo.save(prefs)
        return repo.load()
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
