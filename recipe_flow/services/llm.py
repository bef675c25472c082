from __future__ import annotations

import json
from typing import Any, Dict, List

from pydantic import ValidationError

from .exceptions import LLMError
from recipe_flow.config import Settings
from recipe_flow.core.models import ProcessRecipeRequest, RecipeOutput

# OpenAI SDK v1+
try:
    from openai import OpenAI
except Exception as e:  # pragma: no cover
    raise LLMError("Failed to import OpenAI SDK. Install with `pip install openai`") from e


SYSTEM_PROMPT = (
    "You are a recipe assistant that outputs structured JSON recipes. "
    "Extract the recipe when the images show one, otherwise create a sensible recipe from the "
    "ingredients shown. When conversation history exists, make ONLY the requested changes.\n"
    "Schema: {\"title\": str, \"servings\": number?, \"ingredients\": [str], \"equipment\": [str], "
    "\"flowGroups\": [{\"parallel\": bool, \"steps\": [{\"stepNumber\": int, "
    "\"type\": \"prep\"|\"cook\"|\"rest\", \"instruction\": str, \"ingredients\": [str], "
    "\"equipment\": [str], \"timerMinutes\": number}]}]}\n"
    "Step numbers are sequential across all groups; timerMinutes is 0 for untimed steps. "
    "Return ONLY the JSON object."
)


def build_user_prompt(request: ProcessRecipeRequest) -> str:
    units = "metric (g, ml, °C)" if request.measure_system == "metric" else "US (cups, tbsp, oz, °F)"
    if request.images:
        ask = f'\nUser request: "{request.instructions}"' if request.instructions else ""
        return f"Analyze these images and create a recipe.{ask}\nUse {units}, scale to {request.servings} servings."
    return f'Create a recipe: "{request.instructions or ""}"\nUse {units}, scale to {request.servings} servings.'


class RecipeGenerator:
    """Interface-like base; concrete impl below."""
    def generate(self, request: ProcessRecipeRequest) -> RecipeOutput:  # pragma: no cover - interface
        raise NotImplementedError


class OpenAIRecipeGenerator(RecipeGenerator):
    def __init__(self, settings: Settings):
        if not settings.openai_api_key:
            raise LLMError("OPENAI_API_KEY is not configured")
        try:
            self._client = OpenAI(api_key=settings.openai_api_key)
        except Exception as e:
            raise LLMError("Could not initialize OpenAI client") from e
        self._model = settings.openai_model_recipe

    def _messages(self, request: ProcessRecipeRequest) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]
        for m in request.conversation_history:
            if isinstance(m.content, str):
                messages.append({"role": m.role, "content": m.content})
            else:
                # earlier images are not re-sent; their text parts carry the context
                text = "\n".join(part.text for part in m.content if part.type == "text" and part.text)
                messages.append({"role": m.role, "content": text})

        parts: List[Dict[str, Any]] = [{"type": "text", "text": build_user_prompt(request)}]
        for img in request.images:
            parts.append({
                "type": "image_url",
                "image_url": {"url": f"data:{img.media_type};base64,{img.base64}"},
            })
        messages.append({"role": "user", "content": parts})
        return messages

    def generate(self, request: ProcessRecipeRequest) -> RecipeOutput:
        try:
            resp = self._client.chat.completions.create(
                model=self._model,
                messages=self._messages(request),
                response_format={"type": "json_object"},
            )
            content = resp.choices[0].message.content or "{}"
            return RecipeOutput.model_validate(json.loads(content))
        except (ValueError, ValidationError) as e:
            raise LLMError(f"Model returned an unusable recipe: {e}") from e
        except Exception as e:
            # No fallback: bubble details up
            raise LLMError(f"OpenAI recipe generation failed: {e}") from e
