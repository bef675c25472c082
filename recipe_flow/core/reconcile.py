# recipe_flow/core/reconcile.py
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .models import ImportOutcome, ImportResult, Recipe
from .timestamps import EPOCH_ISO


def stamp_import(recipe: Recipe) -> Recipe:
    """
    Resolve the identity and timestamp an incoming recipe is judged by.
    A recipe without savedAt is dated at the epoch, so it loses every conflict
    but is still added when nothing local shares its slug.
    """
    return recipe.model_copy(update={
        "slug": recipe.resolved_slug(),
        "saved_at": recipe.saved_at or EPOCH_ISO,
    })


def find_index(recipes: List[Recipe], slug: str) -> int:
    for i, r in enumerate(recipes):
        if r.slug == slug:
            return i
    return -1


def decide(imported: Recipe, existing: Optional[Recipe]) -> ImportOutcome:
    """Last write wins by savedAt; equal timestamps keep the local copy."""
    if existing is None:
        return "added"
    if imported.saved_at_ms() > existing.saved_at_ms():
        return "updated"
    return "skipped"


def apply_import(recipes: List[Recipe], recipe: Recipe) -> Tuple[ImportOutcome, Recipe, List[Recipe]]:
    """
    Reconcile a single incoming recipe against `recipes`.
    Returns (outcome, stamped recipe, **new** list); the input list is not mutated.
    """
    stamped = stamp_import(recipe)
    idx = find_index(recipes, stamped.slug)
    outcome = decide(stamped, recipes[idx] if idx >= 0 else None)

    out = list(recipes)
    if outcome == "added":
        out.insert(0, stamped)
    elif outcome == "updated":
        out[idx] = stamped
    return outcome, stamped, out


def reconcile(current: Iterable[Recipe], incoming: Iterable[Recipe]) -> Tuple[List[Recipe], ImportResult]:
    """
    Fold `incoming` into `current` in input order.

    Each recipe is judged against the collection as left by the ones before it,
    so a slug repeated within one batch sees its earlier occurrence applied.
    """
    recipes = list(current)
    result = ImportResult()
    for inc in incoming:
        outcome, stamped, recipes = apply_import(recipes, inc)
        result.record(outcome, stamped)
    return recipes, result
