"""
Configuration management for the nested set engine.

Provides configuration schema, validation, loading and saving.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    DEFAULT_LOCK_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_STORE_TYPE,
    LOG_LEVELS,
    STORE_TYPES,
)


class StoreConfig(BaseModel):
    """Backing store configuration."""

    model_config = {"extra": "forbid"}  # Reject unknown fields

    type: str = Field(
        default=DEFAULT_STORE_TYPE, description="Store type: 'memory' or 'sqlite'"
    )
    path: Optional[str] = Field(
        default=None, description="Path to SQLite database file (sqlite only)"
    )
    lock_timeout: float = Field(
        default=DEFAULT_LOCK_TIMEOUT,
        description="Seconds to wait for the write lock before failing (default: 5.0)",
    )

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate store type."""
        v_lower = v.lower()
        if v_lower not in STORE_TYPES:
            raise ValueError(
                f"Store type must be one of {', '.join(STORE_TYPES)}, got: {v}"
            )
        return v_lower

    @field_validator("lock_timeout")
    @classmethod
    def validate_lock_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"lock_timeout must be positive, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_path(self) -> "StoreConfig":
        """SQLite needs a database path."""
        if self.type == "sqlite" and not self.path:
            raise ValueError("SQLite store requires 'path'")
        return self

    def driver_config(self) -> Dict[str, Any]:
        """Configuration dict passed to the store's ``connect``."""
        config: Dict[str, Any] = {"lock_timeout": self.lock_timeout}
        if self.path:
            config["path"] = self.path
        return config


class EngineConfig(BaseModel):
    """Mutation engine behaviour."""

    model_config = {"extra": "forbid"}  # Reject unknown fields

    check_invariants: bool = Field(
        default=False,
        description=(
            "Verify every interval invariant before committing each mutation. "
            "Costs a full forest read per mutation."
        ),
    )


class LoggingConfig(BaseModel):
    """Log output configuration."""

    model_config = {"extra": "forbid"}  # Reject unknown fields

    level: str = Field(default=DEFAULT_LOG_LEVEL, description="Log level")
    file: Optional[str] = Field(default=None, description="Path to log file")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in LOG_LEVELS:
            raise ValueError(f"Log level must be one of {', '.join(LOG_LEVELS)}, got: {v}")
        return v_upper


class NestedSetConfig(BaseModel):
    """Top-level configuration."""

    model_config = {"extra": "forbid"}  # Reject unknown fields

    store: StoreConfig = Field(default_factory=StoreConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def validate_config(
    config_path: Path,
) -> tuple[bool, Optional[str], Optional[NestedSetConfig]]:
    """
    Validate configuration file.

    Args:
        config_path: Path to configuration file

    Returns:
        Tuple of (is_valid, error_message, config_object)
    """
    try:
        if not config_path.exists():
            return False, f"Configuration file not found: {config_path}", None

        with open(config_path, "r", encoding="utf-8") as f:
            config_data = json.load(f)

        return True, None, NestedSetConfig(**config_data)

    except json.JSONDecodeError as e:
        return False, f"Invalid JSON: {str(e)}", None
    except (TypeError, ValueError) as e:
        return False, f"Validation error: {str(e)}", None


def load_config(config_path: Path) -> NestedSetConfig:
    """
    Load and validate configuration.

    Args:
        config_path: Path to configuration file

    Returns:
        NestedSetConfig object

    Raises:
        ValueError: If configuration is invalid
    """
    is_valid, error, config = validate_config(config_path)
    if not is_valid:
        raise ValueError(error or "Invalid configuration")
    if config is None:
        raise ValueError("Failed to load configuration")
    return config


def save_config(config: NestedSetConfig, config_path: Path) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration object
        config_path: Path to save configuration
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(), f, indent=2, ensure_ascii=False)
