# recipe_flow/core/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError
from pydantic.alias_generators import to_camel

from .slug import generate_slug
from .timestamps import to_millis


# ---------- Wire base ----------

class CamelModel(BaseModel):
    """
    Stored and exported recipes use camelCase JSON keys (savedAt, flowGroups, ...).
    Python code uses the snake_case attribute names; unknown keys are kept so a
    recipe written by a newer client survives a round trip through this one.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ---------- Recipe shape ----------

StepType = Literal["prep", "cook", "rest"]
ItemField = Literal["ingredients", "equipment"]


class Step(CamelModel):
    step_number: int
    type: StepType
    instruction: str
    ingredients: List[str] = Field(default_factory=list)
    equipment: Optional[List[str]] = None
    timer_minutes: Union[int, float] = Field(0, ge=0, description="0 means no timer")


class FlowGroup(CamelModel):
    """Steps that are cooked side by side (parallel) or one after another."""
    parallel: bool = False
    steps: List[Step] = Field(default_factory=list)


class MessageContent(CamelModel):
    type: Literal["text", "image"]
    text: Optional[str] = None
    image: Optional[str] = None
    mime_type: Optional[str] = None


class Message(CamelModel):
    role: Literal["user", "assistant"]
    content: Union[str, List[MessageContent]]


class RecipeSchema(CamelModel):
    """
    The full recipe shape. It is only ever checked in strict mode to describe
    where a document departs from it; documents are never rejected or
    rewritten because of it.
    """
    title: str = Field(..., min_length=1)
    slug: Optional[str] = None
    saved_at: Optional[str] = None
    servings: Optional[Union[str, int, float]] = None
    measure_system: Optional[str] = None
    servings_count: Optional[Union[int, float]] = None
    ingredients: Optional[List[str]] = None
    equipment: Optional[List[str]] = None
    flow_groups: List[FlowGroup]
    conversation_history: Optional[List[Message]] = None


# ---------- Recipe document ----------

class Recipe(CamelModel):
    """
    A saved or imported recipe.

    Only a non-empty text `title` and a `flowGroups` list are required. Every
    other value, nested steps and messages included, is carried exactly as it
    was read: a recipe is never coerced or trimmed on its way through storage,
    import or export.
    """
    title: StrictStr = Field(..., min_length=1)
    slug: Any = None
    saved_at: Any = Field(None, description="ISO-8601 timestamp of the last local write")
    servings: Any = None
    measure_system: Any = None
    servings_count: Any = None
    ingredients: Any = None
    equipment: Any = None
    flow_groups: List[Any]
    conversation_history: Any = None

    def resolved_slug(self) -> Any:
        return self.slug or generate_slug(self.title)

    def saved_at_ms(self) -> int:
        return to_millis(self.saved_at)

    def unique_items(self, field: ItemField) -> List[str]:
        """
        Mise en place list for `field`.

        Top-level lists are authoritative when present and non-empty. Older
        recipes only carry per-step lists, so those are collected in step order
        and de-duplicated case-insensitively (first spelling wins).
        """
        top_level = self.ingredients if field == "ingredients" else self.equipment
        if isinstance(top_level, list) and top_level:
            return list(top_level)

        seen: Dict[str, str] = {}
        for group in self.flow_groups:
            steps = group.get("steps") if isinstance(group, dict) else None
            for step in steps if isinstance(steps, list) else []:
                items = step.get(field) if isinstance(step, dict) else None
                for item in items if isinstance(items, list) else []:
                    if isinstance(item, str):
                        seen.setdefault(item.lower(), item)
        return list(seen.values())


class RecipeUpdate(CamelModel):
    """Partial fields applied by RecipeRepo.update_recipe; unset fields are left alone."""
    title: Optional[StrictStr] = Field(None, min_length=1)
    slug: Any = None
    servings: Any = None
    measure_system: Any = None
    servings_count: Any = None
    ingredients: Any = None
    equipment: Any = None
    flow_groups: Optional[List[Any]] = None
    conversation_history: Any = None


# ---------- Validation boundary ----------

class RecipeValidation(BaseModel):
    """
    `errors` explain why there is no recipe. `warnings` list departures from
    the full recipe shape in a recipe that was accepted anyway.
    """
    recipe: Optional[Recipe] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.recipe is not None


def _describe(e: ValidationError) -> List[str]:
    out = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        out.append(f"{loc}: {err['msg']}")
    return out


def schema_problems(data: Any) -> List[str]:
    """Where `data` departs from RecipeSchema, checked without type coercion."""
    try:
        RecipeSchema.model_validate(data, strict=True)
    except ValidationError as e:
        return _describe(e)
    return []


def validate_recipe(data: Any) -> RecipeValidation:
    """Check untrusted recipe data; never raises."""
    if not isinstance(data, dict):
        return RecipeValidation(errors=[f"<root>: expected a JSON object, got {type(data).__name__}"])
    try:
        recipe = Recipe.model_validate(data)
    except ValidationError as e:
        return RecipeValidation(errors=_describe(e))
    return RecipeValidation(recipe=recipe, warnings=schema_problems(data))


# ---------- Import reconciliation ----------

ImportOutcome = Literal["added", "updated", "skipped"]


class ImportResult(BaseModel):
    added: List[Recipe] = Field(default_factory=list)
    updated: List[Recipe] = Field(default_factory=list)
    skipped: List[Recipe] = Field(default_factory=list)

    def record(self, outcome: ImportOutcome, recipe: Recipe) -> None:
        getattr(self, outcome).append(recipe)

    def summary(self) -> Dict[str, Any]:
        return {
            outcome: [r.resolved_slug() for r in getattr(self, outcome)]
            for outcome in ("added", "updated", "skipped")
        }


# ---------- Recipe generation (LLM collaborator) ----------

MeasureSystem = Literal["metric", "american"]
ModelId = Literal["haiku", "sonnet", "opus"]


class ImageData(CamelModel):
    base64: str
    media_type: str


class ProcessRecipeRequest(CamelModel):
    images: List[ImageData] = Field(default_factory=list)
    instructions: Optional[str] = None
    conversation_history: List[Message] = Field(default_factory=list)
    measure_system: MeasureSystem = "metric"
    servings: int = Field(4, ge=1, le=100)


class RecipeOutput(CamelModel):
    title: str = Field(..., min_length=1)
    servings: Optional[Any] = None
    ingredients: Optional[List[str]] = None
    equipment: Optional[List[str]] = None
    flow_groups: List[FlowGroup]

    def to_recipe(self) -> Recipe:
        return Recipe.model_validate(self.to_json())


class ProcessRecipeResponse(CamelModel):
    success: bool
    recipe: Optional[Recipe] = None
    error: Optional[str] = None


# ---------- Preferences ----------

class Preferences(CamelModel):
    model: ModelId = "opus"
    measure_system: MeasureSystem = "metric"
    servings: int = Field(4, ge=1, le=100)
    clarifying_questions: bool = True
    provider_type: Optional[str] = None
    api_endpoint: Optional[str] = None
    custom_model_name: Optional[str] = None


# ---------- Auditing / events ----------

class RecipeEvent(BaseModel):
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    type: Literal["save", "update", "delete", "import", "export", "store_corrupt", "invalid_entry"]
    payload: dict
    schema_version: int = 1
