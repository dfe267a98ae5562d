"""Admin client configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class AdminSettings(BaseSettings):
    api_base_url: str = "http://localhost:5000"
    # Employee directory lives on its own service in production deployments.
    employees_url: str | None = None
    cache_dir: str = "~/.geoadmin"
    request_timeout_seconds: float = 30.0
    session_check_interval_seconds: int = 300
    page_size: int = 3
    log_level: str = "WARNING"

    model_config = {"env_prefix": "GEOADMIN_", "env_file": ".env", "extra": "ignore"}

    @property
    def cache_path(self) -> Path:
        return Path(self.cache_dir).expanduser()

    @property
    def employees_endpoint(self) -> str:
        return self.employees_url or "/api/employees"


settings = AdminSettings()
