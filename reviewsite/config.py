"""Review site configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class SiteSettings(BaseSettings):
    environment: str = "development"
    app_title: str = "English Conversation School Reviews"
    echo_sql: bool = False

    # Empty means "not configured": overrides degrade to none, write endpoints return 500.
    database_url: str = ""
    database_pool_size: int = 5

    # One <school_id>.json per school.
    content_dir: str = "content/schools"

    # Public review form
    review_body_min_length: int = 10
    review_body_max_length: int = 2000
    review_age_max_length: int = 20
    review_rate_limit_per_hour: int = 3
    review_improvement_points_max_length: int = 800
    review_improvement_response_max_length: int = 800

    # Conversion beacon
    conversion_allowed_origins: str = "https://eigoonline.com,https://www.eigoonline.com"
    conversion_default_origin: str = "https://eigoonline.com"
    conversion_ip_rate_per_minute: int = 5
    conversion_future_ts_tolerance_seconds: int = 86400

    # Review notification webhook (best-effort, no retries)
    review_webhook_url: str = ""
    review_webhook_timeout_seconds: float = 10.0
    review_webhook_test_key: str = ""

    # Campaign approval webhook
    webhook_secret: str = ""

    model_config = {"env_prefix": "REVIEWSITE_", "env_file": ".env", "extra": "ignore"}

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent

    @property
    def project_dir(self) -> Path:
        return self.base_dir.parent

    @property
    def content_path(self) -> Path:
        path = Path(self.content_dir)
        if not path.is_absolute():
            path = self.project_dir / path
        return path

    @property
    def templates_dir(self) -> Path:
        return self.base_dir / "templates"

    @property
    def static_dir(self) -> Path:
        return self.base_dir / "static"

    @property
    def db_configured(self) -> bool:
        return bool(self.database_url.strip())

    @property
    def db_env_error(self) -> str | None:
        if self.db_configured:
            return None
        return "Missing REVIEWSITE_DATABASE_URL env var"

    @property
    def allowed_origins_set(self) -> set[str]:
        return {o.strip() for o in self.conversion_allowed_origins.split(",") if o.strip()}

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = SiteSettings()
