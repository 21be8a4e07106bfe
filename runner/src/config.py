from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Dict, Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DEPLOYX_",
        env_file="deployx.env",
        extra="ignore",
    )

    workspace: str = "."
    log_level: str = "INFO"

    # Source checkout
    repo_url: Optional[str] = None  # None: workspace is already checked out
    branch: str = "main"

    # Docker Compose settings
    compose_file: str = "docker-compose.yml"
    project_name: Optional[str] = None
    env_file: str = ".env"

    # Health check settings
    health_check_url: str = "http://localhost:8080/health"
    health_check_initial_delay: float = 15.0
    health_check_deadline: float = 60.0
    health_check_interval: float = 2.0
    health_check_request_timeout: float = 5.0

    # Command settings
    command_timeout: int = 600  # 10 minutes default

    # Secrets written to the env file: ENV_KEY -> secret id
    secrets: Dict[str, str] = {}
    secrets_dir: Optional[str] = None

    # Status publishing, disabled when unset
    redis_url: Optional[str] = None

@lru_cache()
def get_settings() -> Settings:
    return Settings()
