from __future__ import annotations

import time

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from recipe_flow.config import Settings
from recipe_flow.core.models import ProcessRecipeRequest, ProcessRecipeResponse
from recipe_flow.logging_utils import get_logger
from recipe_flow.services.exceptions import LLMError
from recipe_flow.services.llm import OpenAIRecipeGenerator, RecipeGenerator

router = APIRouter(tags=["process"])
logger = get_logger(__name__)

# ---- Dependencies ------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_generator(settings: Settings = Depends(get_settings)) -> RecipeGenerator:
    try:
        return OpenAIRecipeGenerator(settings)
    except LLMError as e:
        raise HTTPException(status_code=503, detail=str(e))

# ---- Route ------------------------------------------------------------------

@router.post("/api/v1/process-recipe", response_model=ProcessRecipeResponse, response_model_exclude_none=True)
def process_recipe(request: ProcessRecipeRequest, generator: RecipeGenerator = Depends(get_generator)):
    """Turn photos and/or instructions into a recipe. Saving is a separate call."""
    if not request.images and not request.instructions:
        raise HTTPException(status_code=422, detail="Provide at least one image or instructions")

    t0 = time.perf_counter()
    try:
        output = generator.generate(request)
    except LLMError as e:
        logger.warning("recipe generation failed: %s", e)
        body = ProcessRecipeResponse(success=False, error=str(e))
        return JSONResponse(status_code=502, content=body.to_json())

    recipe = output.to_recipe().model_copy(update={
        "measure_system": request.measure_system,
        "servings_count": request.servings,
    })
    logger.info("recipe generated", extra={
        "title": recipe.title,
        "images": len(request.images),
        "duration_ms": round((time.perf_counter() - t0) * 1000.0, 1),
    })
    return ProcessRecipeResponse(success=True, recipe=recipe)
