"""
Helpdesk Auto-Resolution - Configuration Management
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""

    # Classification capability (external AI service)
    classification_service_url: str = "http://localhost:8100"
    classification_api_key: str = ""
    classification_queue: str = "ticket-processing"
    classification_timeout: float = 30.0
    classification_max_retries: int = Field(3, ge=1)

    # Workflow
    workflow_poll_interval_seconds: float = 1.0
    workflow_max_wait_seconds: float = 60.0
    workflow_progress_audit_every: int = 5  # polls between progress audit entries

    # Agent pool
    agent_pool_role: str = "agent"
    agent_pool_limit: int = 5

    # Confidence thresholds
    auto_resolution_enabled: bool = True
    auto_resolution_categories: str = "account,general,billing"  # Comma-separated
    auto_resolution_max_priority: str = "medium"
    auto_resolve_threshold: float = 0.85
    agent_review_threshold: float = 0.6
    human_review_threshold: float = 0.3

    # Notifications
    notification_webhook_url: str = ""
    notification_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    @property
    def auto_resolution_category_list(self) -> List[str]:
        """Parsed list of categories eligible for auto-resolution"""
        return [
            category.strip().lower()
            for category in self.auto_resolution_categories.split(",")
            if category.strip()
        ]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
