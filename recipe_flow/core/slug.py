# recipe_flow/core/slug.py
from __future__ import annotations

import re

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def generate_slug(title: str) -> str:
    """
    Deterministic title -> storage key / filename stem.

    "Garlic Butter Pasta" -> "garlic-butter-pasta"
    "Chef's Special (2024)" -> "chefs-special-2024"
    """
    s = _DISALLOWED.sub("", title.lower())
    s = _WHITESPACE.sub("-", s)
    s = _HYPHENS.sub("-", s)
    return s.strip("-")
