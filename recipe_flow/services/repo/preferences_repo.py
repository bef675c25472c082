from __future__ import annotations

from typing import Optional

from recipe_flow.core.models import MeasureSystem, ModelId, Preferences
from recipe_flow.services.repo.base import KeyValueStore

MODEL_KEY = "recipe-flow-model"
MEASURE_SYSTEM_KEY = "recipe-flow-measure-system"
SERVINGS_KEY = "recipe-flow-servings"
CLARIFYING_QUESTIONS_KEY = "recipe-flow-allow-clarifying-questions"
PROVIDER_TYPE_KEY = "recipe-flow-provider-type"
API_ENDPOINT_KEY = "recipe-flow-api-endpoint"
CUSTOM_MODEL_KEY = "recipe-flow-custom-model"

DEFAULT_MODEL: ModelId = "opus"
DEFAULT_MEASURE_SYSTEM: MeasureSystem = "metric"
DEFAULT_SERVINGS = 4


class PreferencesRepo:
    """User preferences, one plain string per key. Unknown stored values read as the default."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_model(self) -> ModelId:
        stored = self.store.get(MODEL_KEY)
        if stored in ("haiku", "sonnet", "opus"):
            return stored  # type: ignore[return-value]
        return DEFAULT_MODEL

    def set_model(self, model: ModelId) -> None:
        self.store.set(MODEL_KEY, model)

    def get_measure_system(self) -> MeasureSystem:
        stored = self.store.get(MEASURE_SYSTEM_KEY)
        if stored in ("metric", "american"):
            return stored  # type: ignore[return-value]
        return DEFAULT_MEASURE_SYSTEM

    def set_measure_system(self, system: MeasureSystem) -> None:
        self.store.set(MEASURE_SYSTEM_KEY, system)

    def get_servings(self) -> int:
        stored = self.store.get(SERVINGS_KEY)
        if stored:
            try:
                parsed = int(stored.strip())
            except ValueError:
                return DEFAULT_SERVINGS
            if 1 <= parsed <= 100:
                return parsed
        return DEFAULT_SERVINGS

    def set_servings(self, servings: int) -> None:
        self.store.set(SERVINGS_KEY, str(servings))

    def get_allow_clarifying_questions(self) -> bool:
        # anything but an explicit "false" keeps questions on
        return self.store.get(CLARIFYING_QUESTIONS_KEY) != "false"

    def set_allow_clarifying_questions(self, allow: bool) -> None:
        self.store.set(CLARIFYING_QUESTIONS_KEY, "true" if allow else "false")

    def _get_optional(self, key: str) -> Optional[str]:
        return self.store.get(key) or None

    def _set_optional(self, key: str, value: Optional[str]) -> None:
        if value:
            self.store.set(key, value)
        else:
            self.store.remove(key)

    def load(self) -> Preferences:
        return Preferences(
            model=self.get_model(),
            measure_system=self.get_measure_system(),
            servings=self.get_servings(),
            clarifying_questions=self.get_allow_clarifying_questions(),
            provider_type=self._get_optional(PROVIDER_TYPE_KEY),
            api_endpoint=self._get_optional(API_ENDPOINT_KEY),
            custom_model_name=self._get_optional(CUSTOM_MODEL_KEY),
        )

    def save(self, prefs: Preferences) -> None:
        self.set_model(prefs.model)
        self.set_measure_system(prefs.measure_system)
        self.set_servings(prefs.servings)
        self.set_allow_clarifying_questions(prefs.clarifying_questions)
        self._set_optional(PROVIDER_TYPE_KEY, prefs.provider_type)
        self._set_optional(API_ENDPOINT_KEY, prefs.api_endpoint)
        self._set_optional(CUSTOM_MODEL_KEY, prefs.custom_model_name)
