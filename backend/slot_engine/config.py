# backend/slot_engine/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/slots.db"
    redis_url: str = "redis://localhost:6379/0"

    slot_hold_minutes: int = 10
    template_cache_size: int = 100
    generation_window_days: int = 7
    generation_workers: int = 8
    generation_retries: int = 2
    sweep_batch_limit: int = 500
    sweep_interval_seconds: int = 0  # 0 = lifespan sweep loop disabled

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative SQLite path is resolved against the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
