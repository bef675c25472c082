from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

from recipe_flow.core.models import (
    ImportOutcome,
    ImportResult,
    Recipe,
    RecipeEvent,
    RecipeUpdate,
    validate_recipe,
)
from recipe_flow.core.reconcile import apply_import, find_index, reconcile
from recipe_flow.core.timestamps import format_iso, utc_now
from recipe_flow.logging_utils import get_logger
from recipe_flow.services.exceptions import RepoError
from recipe_flow.services.repo.base import EventRepo, KeyValueStore

logger = get_logger(__name__)

DEFAULT_RECIPES_KEY = "recipe-flow-recipes"


class RecipeRepo:
    """
    The saved-recipe collection: one JSON array under `key` in a KeyValueStore,
    identified by slug.

    Reads never fail on bad stored data and never lose it. A value that is not
    a JSON array reads as an empty collection. Array entries without a title
    and a flowGroups list are left out of reads but written back untouched on
    the next save. Both cases are logged and reported as events.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_RECIPES_KEY,
        events: Optional[EventRepo] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.key = key
        self.events = events
        self._clock = clock

    # ---- plumbing -----------------------------------------------------------

    def _now(self) -> str:
        return format_iso(self._clock())

    def _emit(self, type_: str, payload: dict) -> None:
        if self.events is None:
            return
        try:
            self.events.append(RecipeEvent(type=type_, payload=payload))
        except RepoError as e:
            # best-effort; never fail a user operation on event log errors
            logger.warning("event not recorded: %s", e, extra={"event": type_})

    def _read(self) -> Tuple[List[Recipe], List[Any]]:
        """(recipes, held): held are stored entries that are not recipes, kept for write-back."""
        raw = self.store.get(self.key)
        if not raw:
            return [], []
        try:
            data: Any = json.loads(raw)
        except ValueError as e:
            self._report_corrupt(raw, str(e))
            return [], []
        if not isinstance(data, list):
            self._report_corrupt(raw, f"expected a JSON array, got {type(data).__name__}")
            return [], []

        recipes: List[Recipe] = []
        held: List[Any] = []
        for i, entry in enumerate(data):
            check = validate_recipe(entry)
            if check.recipe is not None:
                recipes.append(check.recipe)
                continue
            held.append(entry)
            logger.warning("stored entry is not a recipe, keeping it aside",
                           extra={"index": i, "errors": check.errors})
            self._emit("invalid_entry", {"key": self.key, "index": i, "errors": check.errors})
        recipes.sort(key=lambda r: r.saved_at_ms(), reverse=True)
        return recipes, held

    def _report_corrupt(self, raw: str, reason: str) -> None:
        logger.warning("stored recipe collection unreadable, treating as empty: %s", reason,
                       extra={"key": self.key, "raw_length": len(raw)})
        self._emit("store_corrupt", {"key": self.key, "raw_length": len(raw), "error": reason})

    def _persist(self, recipes: List[Recipe], held: List[Any]) -> None:
        entries = [r.to_json() for r in recipes] + list(held)
        self.store.set(self.key, json.dumps(entries, ensure_ascii=False))

    # ---- CRUD -------------------------------------------------------------------

    def get_saved_recipes(self) -> List[Recipe]:
        """Newest first by savedAt; recipes without one sort as oldest."""
        recipes, _ = self._read()
        return recipes

    def save_recipe(self, recipe: Recipe) -> Recipe:
        """Stamp slug + savedAt, then overwrite the same slug or prepend."""
        recipes, held = self._read()
        saved = recipe.model_copy(update={"slug": recipe.resolved_slug(), "saved_at": self._now()})

        idx = find_index(recipes, saved.slug)
        if idx >= 0:
            recipes[idx] = saved
        else:
            recipes.insert(0, saved)

        self._persist(recipes, held)
        self._emit("save", {"slug": saved.slug, "replaced": idx >= 0})
        return saved

    def get_recipe_by_slug(self, slug: str) -> Optional[Recipe]:
        recipes = self.get_saved_recipes()
        idx = find_index(recipes, slug)
        return recipes[idx] if idx >= 0 else None

    def delete_recipe(self, slug: str) -> bool:
        recipes, held = self._read()
        kept = [r for r in recipes if r.slug != slug]
        self._persist(kept, held)
        removed = len(kept) != len(recipes)
        self._emit("delete", {"slug": slug, "removed": removed})
        return removed

    def update_recipe(self, slug: str, updates: Union[RecipeUpdate, Mapping[str, Any]]) -> Optional[Recipe]:
        """Merge partial fields onto the stored recipe and re-stamp savedAt."""
        recipes, held = self._read()
        idx = find_index(recipes, slug)
        if idx < 0:
            return None

        if not isinstance(updates, RecipeUpdate):
            updates = RecipeUpdate.model_validate(dict(updates))
        merged = {**recipes[idx].to_json(), **updates.to_json(), "savedAt": self._now()}
        updated = Recipe.model_validate(merged)

        recipes[idx] = updated
        self._persist(recipes, held)
        self._emit("update", {"slug": slug, "fields": sorted(updates.to_json())})
        return updated

    def record_export(self, recipes: Iterable[Recipe], filename: str) -> None:
        """Audit an export; storage is not touched."""
        self._emit("export", {"slugs": [r.resolved_slug() for r in recipes], "filename": filename})

    # ---- import -----------------------------------------------------------------

    def _import_one(self, recipe: Recipe) -> Tuple[ImportOutcome, Recipe]:
        current, held = self._read()
        outcome, stamped, recipes = apply_import(current, recipe)
        if outcome != "skipped":
            self._persist(recipes, held)
        logger.info("imported recipe", extra={"slug": stamped.slug, "outcome": outcome})
        self._emit("import", {"slug": stamped.slug, "outcome": outcome, "saved_at": stamped.saved_at})
        return outcome, stamped

    def import_recipe(self, recipe: Recipe) -> ImportOutcome:
        """
        Merge one external recipe: add if its slug is new, replace if strictly
        newer than the local copy, otherwise leave storage untouched.
        """
        outcome, _ = self._import_one(recipe)
        return outcome

    def preview_import(self, recipes: Iterable[Recipe]) -> ImportResult:
        """Dry run of import_recipes against the current collection. Storage is not written."""
        _, result = reconcile(self.get_saved_recipes(), recipes)
        return result

    def import_recipes(self, recipes: Iterable[Recipe]) -> ImportResult:
        """
        Import each recipe in order; each one is persisted on its own, so a
        failure part-way leaves the earlier recipes applied.
        """
        result = ImportResult()
        for recipe in recipes:
            outcome, stamped = self._import_one(recipe)
            result.record(outcome, stamped)
        return result
