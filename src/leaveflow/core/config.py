"""Application configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="leaveflow", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="CORS allowed origins",
    )

    # Database
    db_host: str = Field(default="localhost", description="PostgreSQL host")
    db_port: int = Field(default=5432, description="PostgreSQL port")
    db_user: str = Field(default="postgres", description="PostgreSQL user")
    db_password: str = Field(default="postgres", description="PostgreSQL password")
    db_name: str = Field(default="leaveflow", description="PostgreSQL database name")

    # Redis
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis database number")
    redis_password: str | None = Field(default=None, description="Redis password")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json", description="Log output format"
    )

    # Workflow policy
    max_resubmissions: int = Field(
        default=3, ge=0, description="Maximum resubmissions of a rejected request"
    )
    rejection_comment_min_length: int = Field(
        default=10, ge=0, description="Minimum length of rejection comments"
    )
    external_clearance_leave_types: list[str] = Field(
        default=[
            "STUDY",
            "STUDY_WITH_PAY",
            "STUDY_WITHOUT_PAY",
            "LEAVE_OF_ABSENCE",
            "SECONDMENT",
        ],
        description="Leave types that need clearance from an external authority",
    )
    hr_validation_exempt_grades: list[str] = Field(
        default=[], description="Grades that skip HR validation for short leave"
    )
    hr_validation_day_threshold: int = Field(
        default=0,
        ge=0,
        description="Exempt grades skip HR validation at or below this day count",
    )
    org_routing_file: str | None = Field(
        default=None, description="JSON file describing unit routing"
    )
    override_roles: list[str] = Field(
        default=["HR_DIRECTOR", "CHIEF_DIRECTOR"],
        description="Roles allowed to override a leave request",
    )
    clearance_roles: list[str] = Field(
        default=["HR_OFFICER", "HR_DIRECTOR", "CHIEF_DIRECTOR"],
        description="Roles allowed to record external clearance",
    )

    # Escalation
    default_escalation_working_days: int = Field(
        default=10, ge=1, description="Working days before a pending step escalates"
    )
    default_escalation_role: str = Field(
        default="HR_DIRECTOR", description="Role that receives escalated steps"
    )
    escalation_sweep_interval_seconds: float = Field(
        default=900.0, gt=0, description="Interval of the periodic escalation sweep"
    )
    delegation_expiry_interval_seconds: float = Field(
        default=3600.0, gt=0, description="Interval of the delegation expiry job"
    )

    # Notifications
    notification_webhook_url: str | None = Field(
        default=None, description="Webhook receiving approval notifications"
    )
    notification_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Notification webhook timeout"
    )

    # Compliance
    compliance_service_url: str | None = Field(
        default=None, description="Leave eligibility service base URL"
    )
    compliance_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Eligibility check timeout"
    )

    @computed_field
    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @computed_field
    @property
    def redis_url(self) -> str:
        """Construct Redis URL from components."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
