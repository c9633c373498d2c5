"""
Configuration Module
====================

Runtime settings read from the environment (or a local ``.env``), plus the
enumerations shared by every layer.

The keyword taxonomy is compiled-in data (see ``cafm.routing.domain``) and
is not configurable here.
"""

from enum import Enum, IntEnum
from functools import lru_cache
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    CAFM service settings.

    Field names map to upper-case environment variables, e.g.
    ``DATABASE_URL`` or ``ASSIGNMENT_STRATEGY``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ========== Service ==========
    app_name: str = "cafm-service"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = Field(default=False, description="Echo SQL and expose error details")
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # ========== Persistence ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/cafm",
        description="Async SQLAlchemy URL; sqlite+aiosqlite URLs work for local runs"
    )
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=10, ge=0)

    # ========== Ticket Workflow ==========
    auto_assign_enabled: bool = Field(
        default=True,
        description="Hand new tickets to an active technician of the routed role"
    )
    assignment_strategy: Literal["random", "round_robin"] = "random"
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


# ========== Domain Enumerations ==========

class TicketCategory(str, Enum):
    """Service categories produced by keyword routing."""
    GENERAL = "General"
    PLUMBING = "Plumbing"
    ELECTRICAL = "Electrical"
    CLEANING = "Cleaning"
    ASSET_MANAGEMENT = "AssetManagement"
    HVAC = "HVAC"
    SECURITY = "Security"
    IT = "IT"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class Priority(IntEnum):
    """Ticket priority levels."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def text(self) -> str:
        return self.name.capitalize()


class UserRole(str, Enum):
    """Roles known to the ticket workflow."""
    ADMIN = "Admin"
    ASSET_MANAGER = "AssetManager"
    PLUMBER = "Plumber"
    ELECTRICIAN = "Electrician"
    CLEANER = "Cleaner"
    END_USER = "EndUser"

    @classmethod
    def parse(cls, value: str) -> "UserRole":
        """Case-insensitive lookup; unknown roles are treated as end users."""
        lowered = value.strip().lower()
        for role in cls:
            if role.value.lower() == lowered:
                return role
        return cls.END_USER


# Roles that see every ticket and may assign, delete and register technicians
MANAGER_ROLES = frozenset({UserRole.ADMIN, UserRole.ASSET_MANAGER})
