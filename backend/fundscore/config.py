from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    app_name: str = "FundScore"
    log_level: str = "INFO"
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Overall score responses carry the contribution breakdown unless the request says otherwise
    include_breakdown_by_default: bool = False

    model_config = {"env_file": ".env", "env_prefix": "FUNDSCORE_"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
