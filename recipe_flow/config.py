from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional, List
from dotenv import load_dotenv
load_dotenv()  # populates os.environ from .env


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # LLM (recipe extraction from photos / text)
    openai_api_key: Optional[str] = None
    openai_model_recipe: str = "gpt-4o-mini"

    # Storage
    data_dir: str = "data"
    store_file: str = "data/recipe_store.json"
    events_file: str = "data/recipe_events.jsonl"
    recipes_key: str = "recipe-flow-recipes"

    # Logging
    log_level: str = "INFO"

    cors_allow_origins: List[str] = Field(default_factory=lambda: ["http://127.0.0.1:3000"])
