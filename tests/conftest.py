from datetime import datetime, timezone

import pytest

from recipe_flow.core.models import Recipe
from recipe_flow.services.repo.base import InMemoryStore
from recipe_flow.services.repo.recipe_repo import RecipeRepo

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
FIXED_NOW_ISO = "2025-03-01T12:00:00.000Z"


def recipe_data(**overrides):
    data = {
        "title": "Test Recipe",
        "slug": "test-recipe",
        "savedAt": "2024-01-15T10:00:00.000Z",
        "flowGroups": [
            {
                "parallel": False,
                "steps": [
                    {
                        "stepNumber": 1,
                        "type": "prep",
                        "instruction": "Test step",
                        "ingredients": [],
                        "timerMinutes": 0,
                    }
                ],
            }
        ],
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


@pytest.fixture
def make_recipe():
    """make_recipe(slug=..., savedAt=None, ...) -> Recipe; a None override drops the key."""
    def _make(**overrides):
        return Recipe.model_validate(recipe_data(**overrides))
    return _make


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repo(store):
    return RecipeRepo(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def now_iso():
    """savedAt stamped by the `repo` fixture's clock."""
    return FIXED_NOW_ISO
