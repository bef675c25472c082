from __future__ import annotations

import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recipe_flow.api.v1.preferences import router as preferences_router
from recipe_flow.api.v1.process import router as process_router
from recipe_flow.api.v1.recipes import router as recipes_router
from recipe_flow.api.v1.transfer import router as transfer_router
from recipe_flow.config import Settings
from recipe_flow.logging_utils import init_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Ensure data dir exists so repos can write
    settings = Settings()
    os.makedirs(settings.data_dir, exist_ok=True)
    yield

def create_app() -> FastAPI:
    settings = Settings()
    init_logging(settings.log_level.upper())
    app = FastAPI(title="Recipe Flow API", version="1.0", lifespan=lifespan)

    # CORS (narrow it down in .env via CORS_ALLOW_ORIGINS if you want)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(recipes_router)
    app.include_router(transfer_router)
    app.include_router(preferences_router)
    app.include_router(process_router)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/readyz")
    def readyz():
        return {"status": "ready"}

    return app

app = create_app()
