# tests/unit/test_recipe_repo.py
import json
from datetime import datetime

from recipe_flow.core.models import RecipeEvent
from recipe_flow.services.exceptions import RepoError
from recipe_flow.services.repo.base import EventRepo
from recipe_flow.services.repo.recipe_repo import DEFAULT_RECIPES_KEY, RecipeRepo


class ListEvents(EventRepo):
    def __init__(self):
        self.events = []

    def append(self, event: RecipeEvent) -> None:
        self.events.append(event)


class BrokenEvents(EventRepo):
    def append(self, event: RecipeEvent) -> None:
        raise RepoError("disk full")


def _put(store, *recipes):
    """Write straight to storage, bypassing save_recipe's re-stamping."""
    store.set(DEFAULT_RECIPES_KEY, json.dumps([r.to_json() for r in recipes]))


# ---- CRUD ----

def test_save_derives_slug_and_delete_removes_it(repo, make_recipe, now_iso):
    saved = repo.save_recipe(make_recipe(slug=None, title="Garlic Butter Pasta"))
    assert saved.slug == "garlic-butter-pasta"
    assert saved.saved_at == now_iso
    assert repo.get_recipe_by_slug("garlic-butter-pasta").title == "Garlic Butter Pasta"

    assert repo.delete_recipe("garlic-butter-pasta") is True
    assert repo.get_saved_recipes() == []


def test_save_overwrites_same_slug(repo, make_recipe):
    repo.save_recipe(make_recipe(slug="pasta", title="v1"))
    repo.save_recipe(make_recipe(slug="pasta", title="v2"))
    recipes = repo.get_saved_recipes()
    assert [r.title for r in recipes] == ["v2"]


def test_save_prepends_new_recipes(store, make_recipe):
    ticks = iter(["2024-01-01T00:00:00Z", "2024-01-02T00:00:00Z"])
    repo = RecipeRepo(store, clock=lambda: datetime.fromisoformat(next(ticks).replace("Z", "+00:00")))
    repo.save_recipe(make_recipe(slug="a"))
    repo.save_recipe(make_recipe(slug="b"))
    assert [r["slug"] for r in json.loads(store.get(DEFAULT_RECIPES_KEY))] == ["b", "a"]


def test_get_saved_recipes_sorts_newest_first(repo, store, make_recipe):
    _put(store,
         make_recipe(slug="old", savedAt="2024-01-01T00:00:00.000Z"),
         make_recipe(slug="undated", savedAt=None),
         make_recipe(slug="new", savedAt="2024-06-01T00:00:00.000Z"))
    assert [r.slug for r in repo.get_saved_recipes()] == ["new", "old", "undated"]


def test_get_missing_slug_returns_none(repo):
    assert repo.get_recipe_by_slug("nope") is None
    assert repo.delete_recipe("nope") is False


def test_update_merges_fields_and_restamps(repo, store, make_recipe, now_iso):
    _put(store, make_recipe(slug="pasta", title="Pasta", servings=2))
    updated = repo.update_recipe("pasta", {"title": "Better Pasta"})
    assert updated.title == "Better Pasta"
    assert updated.servings == 2
    assert updated.saved_at == now_iso
    assert repo.get_recipe_by_slug("pasta").title == "Better Pasta"


def test_update_missing_slug_returns_none(repo):
    assert repo.update_recipe("ghost", {"title": "Boo"}) is None


# ---- corrupt storage ----

def test_corrupt_store_reads_as_empty_and_is_reported(store, caplog):
    events = ListEvents()
    repo = RecipeRepo(store, events=events)
    store.set(DEFAULT_RECIPES_KEY, "{not json")

    assert repo.get_saved_recipes() == []
    assert [e.type for e in events.events] == ["store_corrupt"]
    assert events.events[0].payload["raw_length"] == len("{not json")
    assert "unreadable" in caplog.text


def test_non_array_store_reads_as_empty(repo, store):
    store.set(DEFAULT_RECIPES_KEY, json.dumps({"title": "x"}))
    assert repo.get_saved_recipes() == []


def test_entries_that_are_not_recipes_are_kept_aside_and_reported(store, make_recipe, caplog):
    events = ListEvents()
    repo = RecipeRepo(store, events=events)
    store.set(DEFAULT_RECIPES_KEY, json.dumps([make_recipe(slug="good").to_json(), {"title": ""}]))

    assert [r.slug for r in repo.get_saved_recipes()] == ["good"]
    assert events.events[0].type == "invalid_entry"
    assert events.events[0].payload["index"] == 1
    assert "not a recipe" in caplog.text

    repo.save_recipe(make_recipe(slug="other"))
    stored = json.loads(store.get(DEFAULT_RECIPES_KEY))
    assert {"title": ""} in stored
    assert len(stored) == 3


def test_off_schema_recipe_survives_unrelated_save(repo, store, make_recipe):
    legacy = {"title": "Legacy", "slug": "legacy", "flowGroups": [{"parallel": False, "steps": [
        {"stepNumber": "1", "type": "serve", "instruction": "Plate", "ingredients": [], "timerMinutes": "5"}]}]}
    store.set(DEFAULT_RECIPES_KEY, json.dumps([legacy]))

    repo.save_recipe(make_recipe(slug="new"))

    stored = {r["slug"]: r for r in json.loads(store.get(DEFAULT_RECIPES_KEY))}
    assert sorted(stored) == ["legacy", "new"]
    assert stored["legacy"] == legacy


def test_record_export_logs_when_event_sink_fails(store, make_recipe, caplog):
    repo = RecipeRepo(store, events=BrokenEvents())
    repo.record_export([make_recipe(slug="pie")], "pie.html")
    assert "event not recorded" in caplog.text


def test_record_export_emits_event(store, make_recipe):
    events = ListEvents()
    RecipeRepo(store, events=events).record_export([make_recipe(slug="pie")], "pie.html")
    assert events.events[0].type == "export"
    assert events.events[0].payload == {"slugs": ["pie"], "filename": "pie.html"}


def test_event_sink_failure_does_not_block_save(store, make_recipe):
    repo = RecipeRepo(store, events=BrokenEvents())
    assert repo.save_recipe(make_recipe(slug="ok")).slug == "ok"


# ---- import ----

def test_import_adds_new_recipe_and_keeps_its_timestamp(repo, make_recipe):
    assert repo.import_recipe(make_recipe(slug="new-recipe", savedAt="2023-06-15T08:30:00.000Z")) == "added"
    saved = repo.get_saved_recipes()
    assert [r.slug for r in saved] == ["new-recipe"]
    assert saved[0].saved_at == "2023-06-15T08:30:00.000Z"


def test_import_newer_updates(repo, store, make_recipe):
    _put(store, make_recipe(title="Old Title", savedAt="2024-01-01T00:00:00.000Z"))
    assert repo.import_recipe(make_recipe(title="New Title", savedAt="2024-02-01T00:00:00.000Z")) == "updated"
    assert repo.get_recipe_by_slug("test-recipe").title == "New Title"


def test_import_older_or_equal_skips(repo, store, make_recipe):
    _put(store, make_recipe(title="Local", savedAt="2024-02-01T00:00:00.000Z"))
    assert repo.import_recipe(make_recipe(title="Older", savedAt="2024-01-01T00:00:00.000Z")) == "skipped"
    assert repo.import_recipe(make_recipe(title="Tie", savedAt="2024-02-01T00:00:00.000Z")) == "skipped"
    assert repo.get_recipe_by_slug("test-recipe").title == "Local"


def test_import_without_timestamp(repo, store, make_recipe):
    assert repo.import_recipe(make_recipe(slug="undated", savedAt=None)) == "added"
    assert repo.get_recipe_by_slug("undated").saved_at == "1970-01-01T00:00:00.000Z"

    _put(store, make_recipe(slug="dated", title="Local", savedAt="2024-01-01T00:00:00.000Z"))
    assert repo.import_recipe(make_recipe(slug="dated", title="Imported", savedAt=None)) == "skipped"
    assert repo.get_recipe_by_slug("dated").title == "Local"


def test_import_generates_slug_from_title(repo, make_recipe):
    repo.import_recipe(make_recipe(slug=None, title="My Imported Recipe"))
    assert repo.get_recipe_by_slug("my-imported-recipe") is not None


def test_preview_does_not_touch_storage(repo, store, make_recipe):
    _put(store,
         make_recipe(slug="old-local", savedAt="2024-01-01T00:00:00.000Z"),
         make_recipe(slug="new-local", savedAt="2024-03-01T00:00:00.000Z"))
    before = store.get(DEFAULT_RECIPES_KEY)

    result = repo.preview_import([
        make_recipe(slug="brand-new", savedAt="2024-02-01T00:00:00.000Z"),
        make_recipe(slug="old-local", savedAt="2024-02-01T00:00:00.000Z"),
        make_recipe(slug="new-local", savedAt="2024-02-01T00:00:00.000Z"),
    ])
    assert [r.slug for r in result.added] == ["brand-new"]
    assert [r.slug for r in result.updated] == ["old-local"]
    assert [r.slug for r in result.skipped] == ["new-local"]
    assert store.get(DEFAULT_RECIPES_KEY) == before


def test_import_recipes_mixed_batch(repo, store, make_recipe):
    _put(store,
         make_recipe(slug="b", title="Newer Local", savedAt="2024-03-01T00:00:00.000Z"),
         make_recipe(slug="c", title="Old Version", savedAt="2024-01-01T00:00:00.000Z"))

    result = repo.import_recipes([
        make_recipe(slug="a", title="Brand New", savedAt="2024-02-01T00:00:00.000Z"),
        make_recipe(slug="b", title="Older Import", savedAt="2024-02-01T00:00:00.000Z"),
        make_recipe(slug="c", title="New Version", savedAt="2024-02-01T00:00:00.000Z"),
    ])
    assert result.summary() == {"added": ["a"], "updated": ["c"], "skipped": ["b"]}

    saved = {r.slug: r.title for r in repo.get_saved_recipes()}
    assert saved == {"a": "Brand New", "b": "Newer Local", "c": "New Version"}


def test_import_recipes_sees_earlier_items_of_same_batch(repo, make_recipe):
    result = repo.import_recipes([
        make_recipe(slug="dup", title="First", savedAt="2024-01-01T00:00:00.000Z"),
        make_recipe(slug="dup", title="Second", savedAt="2024-01-01T00:00:00.000Z"),
    ])
    assert result.summary() == {"added": ["dup"], "updated": [], "skipped": ["dup"]}
    assert repo.get_recipe_by_slug("dup").title == "First"


def test_import_preserves_all_data(repo, make_recipe):
    full = make_recipe(slug="full-recipe", title="Full Recipe", servings=6, measureSystem="metric",
                       servingsCount=6, conversationHistory=[{"role": "user", "content": "hi"}])
    repo.import_recipes([full])
    assert repo.get_recipe_by_slug("full-recipe") == full


def test_empty_batches(repo):
    for result in (repo.preview_import([]), repo.import_recipes([])):
        assert result.added == [] and result.updated == [] and result.skipped == []
