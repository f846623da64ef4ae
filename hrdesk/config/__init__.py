"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import Dict, List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="hr-service-desk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Row Store ==========
    row_store_backend: str = Field(
        default="database",
        description="Row store adapter: 'database' (SQLAlchemy) or 'memory'"
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./hrdesk.db",
        description="SQLAlchemy async connection URL"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)
    company_tables: Dict[str, str] = Field(
        default={
            "ITAM": "ITAM Requests",
            "Onward": "Onward Requests",
            "Vertex": "Vertex Requests",
            "Summit": "Summit Requests",
        },
        description="Request table name per business unit"
    )

    # ========== SLA / Lifecycle ==========
    timezone: str = Field(default="Asia/Manila", description="Business timezone for timestamps")
    lifecycle_lock_timeout_seconds: float = Field(
        default=8.0,
        description="Max wait for the store-wide lifecycle lock",
        gt=0,
        le=60
    )
    sla_ceiling_hours: float = Field(
        default=48.0,
        description="TAT ceiling used when a record has no due date",
        gt=0
    )
    reminder_window_hours: float = Field(
        default=24.0,
        description="Open records due within this window are reminder-due",
        gt=0
    )
    compliance_target_percent: float = Field(
        default=95.0,
        description="Target SLA compliance percentage for reporting",
        ge=0,
        le=100
    )

    # ========== Service Catalog ==========
    service_catalog_path: Path = Field(
        default=Path("service_catalog.yaml"),
        description="Path to the service catalog YAML file"
    )

    # ========== Reminder Sweep ==========
    reminder_sweep_interval: int = Field(
        default=900,
        description="Seconds between reminder sweeps (0 disables)",
        ge=0
    )

    # ========== Blob Storage ==========
    blob_storage_dir: Path = Field(
        default=Path("attachments"),
        description="Directory for uploaded attachments"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("row_store_backend")
    @classmethod
    def validate_row_store_backend(cls, v: str) -> str:
        """Ensure the row store adapter is known."""
        allowed = {"database", "memory"}
        if v not in allowed:
            raise ValueError(f"row_store_backend must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class RequestStatus(str):
    """Request lifecycle statuses as written to the row store."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    PAUSED = "Paused"
    RESUMED = "Resumed"
    COMPLETED = "Completed"


class LifecycleAction(str):
    """Actions staff can perform on a request."""
    START = "Start"
    PAUSE = "Pause"
    RESUME = "Resume"
    END = "End"


class UserRole(str):
    """Caller roles that drive unified log visibility."""
    EMPLOYEE = "employee"
    DEPARTMENT_HEAD = "department_head"
    HR_STAFF = "hr_staff"
    ADMIN = "admin"


class SLABucket(str):
    """Reporting buckets for TAT/SLA classification."""
    CLOSED_WITHIN = "closed_within"
    CLOSED_EXCEEDED = "closed_exceeded"
    OPEN_WITHIN = "open_within"
    OPEN_EXCEEDED = "open_exceeded"
    REMINDER_DUE = "reminder_due"


# Request ID prefix -> company
COMPANY_PREFIXES: Dict[str, str] = {
    "ITM": "ITAM",
    "ONW": "Onward",
    "VTX": "Vertex",
    "SMT": "Summit",
}


# ========== Lists for validation ==========

VALID_STATUSES = [
    RequestStatus.OPEN, RequestStatus.IN_PROGRESS, RequestStatus.PAUSED,
    RequestStatus.RESUMED, RequestStatus.COMPLETED
]
VALID_ACTIONS = [
    LifecycleAction.START, LifecycleAction.PAUSE,
    LifecycleAction.RESUME, LifecycleAction.END
]
VALID_ROLES = [
    UserRole.EMPLOYEE, UserRole.DEPARTMENT_HEAD,
    UserRole.HR_STAFF, UserRole.ADMIN
]
VALID_SLA_BUCKETS = [
    SLABucket.CLOSED_WITHIN, SLABucket.CLOSED_EXCEEDED,
    SLABucket.OPEN_WITHIN, SLABucket.OPEN_EXCEEDED,
    SLABucket.REMINDER_DUE
]
VALID_COMPANIES = list(COMPANY_PREFIXES.values())
