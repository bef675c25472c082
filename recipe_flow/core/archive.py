# recipe_flow/core/archive.py
from __future__ import annotations

import io
import zipfile
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Tuple

from .export import generate_export_filename, generate_recipe_html
from .models import Recipe


def unique_filenames(recipes: Iterable[Recipe]) -> List[str]:
    """
    Export filename per recipe, in order. Later duplicates get -2, -3, ...
    (the first unused number), so no two archive entries share a name.
    """
    used: set[str] = set()
    names: List[str] = []
    for recipe in recipes:
        filename = generate_export_filename(recipe)
        if filename in used:
            base = filename[: -len(".html")]
            counter = 2
            while f"{base}-{counter}.html" in used:
                counter += 1
            filename = f"{base}-{counter}.html"
        used.add(filename)
        names.append(filename)
    return names


def archive_entries(recipes: Iterable[Recipe]) -> List[Tuple[str, str]]:
    recipes = list(recipes)
    return [(name, generate_recipe_html(r)) for name, r in zip(unique_filenames(recipes), recipes)]


def export_recipes_to_zip(recipes: Iterable[Recipe]) -> bytes:
    """Zip archive with one exported HTML file per recipe. No recipes -> empty archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, html in archive_entries(recipes):
            zf.writestr(name, html.encode("utf-8"))
    return buf.getvalue()


def generate_zip_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"recipes-export-{today.isoformat()}.zip"
