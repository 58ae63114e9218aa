"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, kizuna.toml only contains
overrides. An empty (or absent) kizuna.toml is a valid configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    url: str | None = None
    filename: str = "kizuna.db"


class SecurityConfig(BaseModel):
    """[security] section."""

    model_config = {"frozen": True}

    max_login_attempts: int = Field(default=5, ge=1)
    lock_hours: float = Field(default=2.0, gt=0)


class StatsConfig(BaseModel):
    """[stats] section."""

    model_config = {"frozen": True}

    recent_days: int = Field(default=7, ge=1)


class BookingConfig(BaseModel):
    """[booking] section."""

    model_config = {"frozen": True}

    default_payment_method: str = "credit_card"
    default_currency: str = "USD"


class KizunaConfig(BaseModel):
    """Root configuration composing all kizuna.toml sections."""

    model_config = {"frozen": True}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)
    booking: BookingConfig = Field(default_factory=BookingConfig)
