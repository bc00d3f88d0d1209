"""Pydantic schema for configuration validation.

All config values are validated at startup. Typos and invalid values
fail fast with clear error messages.

Usage:
    from src.config_schema import load_validated_config, AppConfig
    config = load_validated_config("config/config.yaml")
    # config is now a validated AppConfig instance
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# BASE MODEL WITH STRICT VALIDATION
# =============================================================================

class StrictModel(BaseModel):
    """Base model that rejects unknown fields (catches typos)."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# COLLECTION MODEL
# =============================================================================

class CollectionConfig(StrictModel):
    """Identity of the collection and its owning principal."""

    name: str = Field(default="Collectibles", description="Collection name")
    symbol: str = Field(default="CLT", description="Collection ticker symbol")
    owner: str = Field(
        default="owner",
        min_length=1,
        description="Owning principal; manages admins and the total/admin limits"
    )
    base_token_uri: str = Field(
        default="https://gateway.pinata.cloud/ipfs",
        description="Prefix joined with each asset's stored URI suffix"
    )
    max_mints_per_holder: int = Field(
        default=5,
        ge=1,
        description="Maximum assets one address may receive through minting"
    )


# =============================================================================
# LIMITS MODEL
# =============================================================================

class LimitsConfig(StrictModel):
    """Initial minting limits.

    The public tier gets whatever the total leaves after the admin and
    whitelist allowances.
    """

    total: int = Field(default=0, ge=0, description="Global mint limit across tiers")
    admin: int = Field(default=0, ge=0, description="Admin tier mint limit")
    whitelist: int = Field(default=0, ge=0, description="Whitelist tier mint limit")

    @model_validator(mode="after")
    def check_tiers_fit_total(self) -> "LimitsConfig":
        """Reject configs whose tier limits alone overrun the total."""
        if self.admin + self.whitelist > self.total:
            raise ValueError(
                f"admin ({self.admin}) + whitelist ({self.whitelist}) limits "
                f"exceed total ({self.total})"
            )
        return self


# =============================================================================
# SALE MODEL
# =============================================================================

class SaleConfig(StrictModel):
    """Initial state of the public sale gate."""

    public_sale_active: bool = Field(
        default=False,
        description="Whether the public tier starts open"
    )


# =============================================================================
# LOGGING MODEL
# =============================================================================

class LoggingConfig(StrictModel):
    """Logging configuration."""

    output_file: str = Field(
        default="mints.jsonl",
        description="JSONL file for collection audit events"
    )
    default_recent: int = Field(
        default=50,
        gt=0,
        description="Default number of recent events to return"
    )
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Level for the package's stdlib loggers"
    )


# =============================================================================
# ROOT CONFIG
# =============================================================================

class AppConfig(StrictModel):
    """Root configuration model.

    All fields have sensible defaults, so an empty config file is valid.
    """

    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    sale: SaleConfig = Field(default_factory=SaleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_validated_config(config_path: str | Path = "config/config.yaml") -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        config_path: Path to config YAML file.

    Returns:
        Validated AppConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        pydantic.ValidationError: If config is invalid (with detailed error message).
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return AppConfig.model_validate(raw_config)


def validate_config_dict(config_dict: dict[str, Any]) -> AppConfig:
    """Validate a configuration dictionary.

    Raises:
        pydantic.ValidationError: If config is invalid.
    """
    return AppConfig.model_validate(config_dict)


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "AppConfig",
    "CollectionConfig",
    "LimitsConfig",
    "SaleConfig",
    "LoggingConfig",
    "StrictModel",
    "load_validated_config",
    "validate_config_dict",
]
