from __future__ import annotations

import re
from typing import List, Tuple
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from pydantic import BaseModel, Field

from recipe_flow.config import Settings
from recipe_flow.core.archive import export_recipes_to_zip, generate_zip_filename
from recipe_flow.core.export import generate_export_filename, generate_recipe_html, inspect_recipe_html
from recipe_flow.core.models import ImportResult, Recipe, RecipeValidation
from recipe_flow.logging_utils import get_logger
from recipe_flow.services.exceptions import ImportFileError, RepoError
from recipe_flow.services.repo.json_repo import JSONEventRepo, JSONFileStore
from recipe_flow.services.repo.recipe_repo import RecipeRepo

router = APIRouter(tags=["transfer"])
logger = get_logger(__name__)

# characters a quoted-string filename parameter cannot carry as-is
_NOT_HEADER_SAFE = re.compile(r'[^\x20-\x7e]|["\\]')

# ---- DI helpers --------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_recipe_repo(settings: Settings = Depends(get_settings)) -> RecipeRepo:
    return RecipeRepo(JSONFileStore(settings), settings.recipes_key, events=JSONEventRepo(settings))

# ---- Models ------------------------------------------------------------------

class FileError(BaseModel):
    filename: str
    errors: List[str]


class ImportResponse(BaseModel):
    added: List[Recipe] = Field(default_factory=list)
    updated: List[Recipe] = Field(default_factory=list)
    skipped: List[Recipe] = Field(default_factory=list)
    errors: List[FileError] = Field(default_factory=list)
    warnings: List[FileError] = Field(default_factory=list, description="Accepted files with malformed recipe data")

    @classmethod
    def build(cls, result: ImportResult, errors: List[FileError], warnings: List[FileError]) -> "ImportResponse":
        return cls(added=result.added, updated=result.updated, skipped=result.skipped,
                   errors=errors, warnings=warnings)

# ---- Helpers -----------------------------------------------------------------

def content_disposition(filename: str) -> str:
    """attachment header; non-ASCII names go in filename* with an ASCII stand-in."""
    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        stem, ext = filename, ""
    fallback = _NOT_HEADER_SAFE.sub("", stem).strip() or "recipe"
    if ext:
        fallback = f"{fallback}.{_NOT_HEADER_SAFE.sub('', ext)}"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": content_disposition(filename)},
    )


def _parse_upload(filename: str, raw: bytes) -> RecipeValidation:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ImportFileError(filename, [f"<document>: not UTF-8 text ({e.reason})"])
    check = inspect_recipe_html(text)
    if check.recipe is None:
        raise ImportFileError(filename, check.errors)
    return check


async def _parse_uploads(files: List[UploadFile]) -> Tuple[List[Recipe], List[FileError], List[FileError]]:
    """Unusable files are reported, never fatal to the batch."""
    recipes: List[Recipe] = []
    errors: List[FileError] = []
    warnings: List[FileError] = []
    for f in files:
        name = f.filename or "<unnamed>"
        try:
            check = _parse_upload(name, await f.read())
        except ImportFileError as e:
            logger.warning("skipping import file", extra={"upload": e.filename, "errors": e.errors})
            errors.append(FileError(filename=e.filename, errors=e.errors))
            continue
        recipes.append(check.recipe)
        if check.warnings:
            logger.info("import file has malformed recipe data", extra={"upload": name, "problems": check.warnings})
            warnings.append(FileError(filename=name, errors=check.warnings))
    return recipes, errors, warnings

# ---- Routes ------------------------------------------------------------------

@router.get("/api/v1/recipes/{slug}/export")
def export_recipe(slug: str, repo: RecipeRepo = Depends(get_recipe_repo)):
    try:
        recipe = repo.get_recipe_by_slug(slug)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Recipe '{slug}' not found")

    filename = generate_export_filename(recipe)
    repo.record_export([recipe], filename)
    return _attachment(generate_recipe_html(recipe).encode("utf-8"), filename, "text/html; charset=utf-8")


@router.get("/api/v1/export")
def export_all(repo: RecipeRepo = Depends(get_recipe_repo)):
    try:
        recipes = repo.get_saved_recipes()
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))

    filename = generate_zip_filename()
    repo.record_export(recipes, filename)
    return _attachment(export_recipes_to_zip(recipes), filename, "application/zip")


@router.post("/api/v1/import/preview", response_model=ImportResponse, response_model_exclude_none=True)
async def preview_import(files: List[UploadFile] = File(..., description="Exported recipe HTML files"),
                         repo: RecipeRepo = Depends(get_recipe_repo)):
    recipes, errors, warnings = await _parse_uploads(files)
    try:
        result = repo.preview_import(recipes)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return ImportResponse.build(result, errors, warnings)


@router.post("/api/v1/import", response_model=ImportResponse, response_model_exclude_none=True)
async def import_files(files: List[UploadFile] = File(..., description="Exported recipe HTML files"),
                       repo: RecipeRepo = Depends(get_recipe_repo)):
    recipes, errors, warnings = await _parse_uploads(files)
    try:
        result = repo.import_recipes(recipes)
    except RepoError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return ImportResponse.build(result, errors, warnings)
