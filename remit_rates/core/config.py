from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic-settings rules (e.g. APP_NAME,
    DEBUG, DATA_DIR, DB_FILENAME, DB_PATH, SEED_ON_STARTUP).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "Remit Rates API"
    debug: bool = False
    version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "remit_rates.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Load the demo provider rates when the app starts
    seed_on_startup: bool = False

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.api_prefix.startswith("/"):
            raise ValueError(f"api_prefix must start with '/', got '{self.api_prefix}'")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
