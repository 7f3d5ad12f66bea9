"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

SQLITE_SCHEME = "sqlite:///"


class Settings(BaseSettings):
    """Ingestion settings loaded from environment variables."""

    database_url: str = f"{SQLITE_SCHEME}prisma/dev.db"
    supabase_service_key: str | None = None
    ingredient_table: str = "Ingredient"
    exercise_table: str = "Exercise"

    data_dir: Path = Path("ingredientData")
    foundation_file: str = "FoodData_Central_foundation_food_json_2025-04-24.json"
    survey_file: str = "surveyDownload.json"
    legacy_file: str = "FoodData_Central_sr_legacy_food_json_2018-04.json"
    branded_file: str = "FoodData_Central_branded_food_json_2025-04-24.json"
    exercise_file: Path = Path("excerciseData/met.csv")

    chunk_size: int = 100
    progress_every: int = 1000

    probe_prefix_bytes: int = 1024 * 1024
    probe_max_depth: int = 4
    probe_report_path: Path = Path("reports/usda-schema-analysis.json")

    portable_db_path: Path = Path("data/health-tracker-data.db")
    dist_dir: Path = Path("dist")
    runtime_db_path: Path = Path("prisma/dev.db")

    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def sqlite_path(database_url: str) -> Path | None:
    """Return the file path of a ``sqlite:///`` URL, or None for other stores."""
    if not database_url.startswith(SQLITE_SCHEME):
        return None
    raw = database_url[len(SQLITE_SCHEME) :]
    return Path(raw) if raw else None
