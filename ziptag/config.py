"""Application configuration."""
from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "california_areas.json"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore"
    )

    # Database
    database_url: str = "sqlite:///./ziptag.db"
    database_echo: bool = False

    # App Settings
    app_name: str = "ZIP Tagger"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Catalog
    catalog_path: Path = DEFAULT_CATALOG_PATH

    # Collected entries
    collection_name: str = "californiaZipData"
    export_file_name: str = "California_Zip_Data.xlsx"
    export_sheet_name: str = "ZipCodeData"
    default_page_size: int = 10
    max_page_size: int = 500

    # API Settings
    cors_origins: list[str] = ["*"]

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
