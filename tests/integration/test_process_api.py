import pytest
from fastapi.testclient import TestClient
from recipe_flow.api.v1.process import get_generator
from recipe_flow.core.models import RecipeOutput
from recipe_flow.main import create_app
from recipe_flow.services.exceptions import LLMError
from recipe_flow.services.llm import RecipeGenerator


class FakeGenerator(RecipeGenerator):
    def __init__(self, fail=False):
        self.fail = fail
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if self.fail:
            raise LLMError("upstream timeout")
        return RecipeOutput.model_validate({
            "title": "Tomato Soup",
            "servings": request.servings,
            "ingredients": ["🍅 6 tomatoes"],
            "flowGroups": [{"parallel": False, "steps": [
                {"stepNumber": 1, "type": "cook", "instruction": "Simmer", "ingredients": ["🍅 6 tomatoes"], "timerMinutes": 20},
            ]}],
        })


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("STORE_FILE", str(tmp_path / "recipe_store.json"))
    monkeypatch.setenv("EVENTS_FILE", str(tmp_path / "recipe_events.jsonl"))
    return create_app()


def test_process_recipe_returns_unsaved_recipe(app):
    fake = FakeGenerator()
    app.dependency_overrides[get_generator] = lambda: fake
    client = TestClient(app)

    resp = client.post("/api/v1/process-recipe", json={"instructions": "tomato soup", "servings": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["recipe"]["title"] == "Tomato Soup"
    assert body["recipe"]["servingsCount"] == 3
    assert body["recipe"]["measureSystem"] == "metric"
    assert "slug" not in body["recipe"]
    assert fake.requests[0].servings == 3
    assert client.get("/api/v1/recipes").json() == []


def test_process_recipe_reports_llm_failure(app):
    app.dependency_overrides[get_generator] = lambda: FakeGenerator(fail=True)
    client = TestClient(app)

    resp = client.post("/api/v1/process-recipe", json={"instructions": "soup"})
    assert resp.status_code == 502
    assert resp.json() == {"success": False, "error": "upstream timeout"}


def test_process_recipe_needs_input(app):
    app.dependency_overrides[get_generator] = lambda: FakeGenerator()
    client = TestClient(app)
    assert client.post("/api/v1/process-recipe", json={}).status_code == 422


def test_missing_api_key_is_503(app, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = TestClient(app)
    resp = client.post("/api/v1/process-recipe", json={"instructions": "soup"})
    assert resp.status_code == 503
