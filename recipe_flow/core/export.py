# recipe_flow/core/export.py
"""
Recipe <-> standalone HTML document.

The exported page is meant to be opened in any browser, so most of it is
decoration. The only machine-readable part is

    <script type="application/json" id="recipe-data"> ... </script>

which holds the pretty-printed recipe JSON. Re-importing reads that element
with a pattern match, never with a DOM, so it also works on a bare server.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import Recipe, RecipeValidation, validate_recipe

IMAGE_PLACEHOLDER = "[image]"

_RECIPE_DATA = re.compile(
    r'<script\s+type="application/json"\s+id="recipe-data">\s*(.*?)\s*</script>',
    re.DOTALL,
)

# Inside <script>, a literal "</script>" or "<!--" in a title would end the block early.
# Escaping these characters keeps the JSON byte-for-byte parseable by json.loads.
_SCRIPT_SAFE = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026"}

TYPE_STYLES: Dict[str, Dict[str, str]] = {
    "prep": {"bg": "#eff6ff", "border": "#bfdbfe", "badge": "#dbeafe", "text": "#1d4ed8"},
    "cook": {"bg": "#fff7ed", "border": "#fed7aa", "badge": "#ffedd5", "text": "#c2410c"},
    "rest": {"bg": "#faf5ff", "border": "#e9d5ff", "badge": "#f3e8ff", "text": "#7c3aed"},
}

_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).resolve().parent.parent / "templates")),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


# ---------- Export ----------

def strip_images_from_conversation(messages: List[Any]) -> List[Any]:
    """Replace every image part with a text placeholder. Returns new objects."""
    out: List[Any] = []
    for message in messages:
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, list):
            out.append(message)
            continue
        stripped = [
            {"type": "image", "text": IMAGE_PLACEHOLDER}
            if isinstance(part, dict) and part.get("type") == "image" else part
            for part in content
        ]
        out.append({**message, "content": stripped})
    return out


def prepare_recipe_for_export(recipe: Recipe) -> Recipe:
    history = recipe.conversation_history
    if not history or not isinstance(history, list):
        return recipe
    return recipe.model_copy(update={
        "conversation_history": strip_images_from_conversation(history),
    })


def recipe_json_for_script(recipe: Recipe) -> str:
    text = json.dumps(recipe.to_json(), indent=2, ensure_ascii=False)
    for ch, esc in _SCRIPT_SAFE.items():
        text = text.replace(ch, esc)
    return text


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _step_view(step: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(step, dict):
        return None
    kind = step.get("type")
    number = step.get("stepNumber")
    timer = step.get("timerMinutes")
    ingredients = step.get("ingredients")
    instruction = step.get("instruction")
    return {
        "number": "" if number is None else number,
        "type": kind if isinstance(kind, str) else "",
        "style": TYPE_STYLES.get(kind, TYPE_STYLES["prep"]) if isinstance(kind, str) else TYPE_STYLES["prep"],
        "timer": timer if _is_number(timer) and timer > 0 else None,
        "instruction": "" if instruction is None else instruction,
        "ingredients": [i for i in ingredients if isinstance(i, str)] if isinstance(ingredients, list) else [],
    }


def flow_view(recipe: Recipe) -> List[Dict[str, Any]]:
    """Groups and steps as the template draws them; entries it cannot draw are left out."""
    groups: List[Dict[str, Any]] = []
    for group in recipe.flow_groups:
        if not isinstance(group, dict):
            continue
        steps = group.get("steps")
        views = [_step_view(s) for s in steps] if isinstance(steps, list) else []
        groups.append({"parallel": bool(group.get("parallel")), "steps": [v for v in views if v]})
    return groups


def generate_recipe_html(recipe: Recipe) -> str:
    """Complete HTML document for `recipe` with the stripped recipe JSON embedded."""
    exportable = prepare_recipe_for_export(recipe)
    template = _env.get_template("recipe_export.html")
    return template.render(
        recipe=exportable,
        recipe_json=recipe_json_for_script(exportable),
        groups=flow_view(exportable),
        ingredients=exportable.unique_items("ingredients"),
        equipment=exportable.unique_items("equipment"),
    )


def generate_export_filename(recipe: Recipe) -> str:
    return f"{recipe.resolved_slug() or 'recipe'}.html"


# ---------- Import ----------

def inspect_recipe_html(html: str) -> RecipeValidation:
    """
    Like parse_recipe_html, but explains itself: `errors` say why a document
    was rejected, `warnings` say where an accepted recipe is malformed.
    """
    if not isinstance(html, str):
        return RecipeValidation(errors=[f"<document>: expected text, got {type(html).__name__}"])

    match = _RECIPE_DATA.search(html)
    if not match or not match.group(1):
        return RecipeValidation(errors=['<document>: no <script type="application/json" id="recipe-data"> element'])

    try:
        data = json.loads(match.group(1))
    except ValueError as e:
        return RecipeValidation(errors=[f"<document>: recipe-data is not valid JSON ({e})"])

    return validate_recipe(data)


def parse_recipe_html(html: str) -> Optional[Recipe]:
    """
    Recipe embedded in an exported HTML file, or None if there isn't one with
    a title and a flowGroups list. Values are returned as written.
    """
    return inspect_recipe_html(html).recipe
