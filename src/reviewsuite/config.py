"""Configuration management for reviewsuite.

This module defines the configuration schema using Pydantic settings,
supporting TOML files, environment variables, and programmatic overrides.

Configuration loading priority (highest to lowest):
1. Programmatic overrides (passed to ReviewSuiteConfig constructor)
2. Environment variables (REVIEWSUITE_* prefix)
3. TOML configuration file
4. Default values defined in this module

Example TOML configuration:
    [suite]
    fresh_context = true

    [prompts]
    user_dir = "~/.config/reviewsuite/prompts"

Example environment variable override:
    REVIEWSUITE_SUITE__FRESH_CONTEXT=false
    REVIEWSUITE_AGENT__TIMEOUT_SECONDS=900
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        file: Optional log file path (None for stdout only)
        rotation_size_mb: Log file rotation size in megabytes
        retention_count: Number of rotated log files to keep
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWSUITE_LOGGING__",
        extra="forbid",
    )

    level: str = Field(default="WARNING")
    format: str = Field(default="console")
    file: Path | None = Field(default=None)
    rotation_size_mb: int = Field(default=10, ge=1, le=1000)
    retention_count: int = Field(default=5, ge=1, le=100)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is recognized."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format is recognized."""
        valid_formats = {"json", "console"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return v_lower


class SuiteConfig(BaseSettings):
    """Review suite behaviour.

    Attributes:
        fresh_context: Hide earlier stages from later review stages
        status_key: Key under which the suite publishes its status line
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWSUITE_SUITE__",
        extra="forbid",
    )

    fresh_context: bool = Field(default=True)
    status_key: str = Field(default="review-suite", min_length=1)


class PromptConfig(BaseSettings):
    """Prompt template locations.

    Attributes:
        user_dir: Directory searched first for ``<template>.md`` overrides
        package_dir: Directory holding the packaged default templates
            (None uses the templates shipped with reviewsuite)
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWSUITE_PROMPTS__",
        extra="forbid",
    )

    user_dir: Path = Field(default=Path("~/.config/reviewsuite/prompts"))
    package_dir: Path | None = Field(default=None)

    @field_validator("user_dir")
    @classmethod
    def expand_user_dir(cls, v: Path) -> Path:
        """Expand ``~`` in the override directory."""
        return v.expanduser()


class GitConfig(BaseSettings):
    """Git inspection configuration.

    Attributes:
        picker_limit: Default number of commits offered by the base-commit picker
        picker_min: Lower clamp for ``recent N``
        picker_max: Upper clamp for ``recent N``
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWSUITE_GIT__",
        extra="forbid",
    )

    picker_limit: int = Field(default=50, ge=1, le=1000)
    picker_min: int = Field(default=10, ge=1, le=1000)
    picker_max: int = Field(default=200, ge=1, le=1000)


class AgentConfig(BaseSettings):
    """Agent backend configuration.

    Attributes:
        command: External agent command that reads a transcript on stdin
        timeout_seconds: Maximum time for a single agent turn
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWSUITE_AGENT__",
        extra="forbid",
    )

    command: str | None = Field(default=None)
    timeout_seconds: int = Field(default=600, ge=1, le=86400)


class ReviewSuiteConfig(BaseSettings):
    """Root configuration for reviewsuite.

    Environment variable format for nested config:
        REVIEWSUITE_<SECTION>__<KEY>=value

    Example:
        REVIEWSUITE_LOGGING__LEVEL=DEBUG
        REVIEWSUITE_AGENT__COMMAND="claude -p"
    """

    model_config = SettingsConfigDict(
        env_prefix="REVIEWSUITE_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    suite: SuiteConfig = Field(default_factory=SuiteConfig)
    prompts: PromptConfig = Field(default_factory=PromptConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)


def load_config(config_path: Path | None = None) -> ReviewSuiteConfig:
    """Load configuration from TOML file with environment variable overrides.

    Configuration search order (first found is used):
    1. config_path if explicitly provided
    2. ./reviewsuite.toml (current directory)
    3. ~/.config/reviewsuite/config.toml (user config directory)

    Args:
        config_path: Explicit path to TOML config file. If None, searches
                    default locations.

    Returns:
        ReviewSuiteConfig: Fully resolved configuration instance.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but doesn't exist.
        ValueError: If TOML file contains invalid configuration.
    """
    toml_data: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        selected_path = config_path
    else:
        search_paths = [
            Path.cwd() / "reviewsuite.toml",
            Path.home() / ".config" / "reviewsuite" / "config.toml",
        ]
        selected_path = None
        for path in search_paths:
            if path.exists():
                selected_path = path
                break

    try:
        if selected_path is not None:
            with open(selected_path, "rb") as f:
                toml_data = tomli.load(f)
        return ReviewSuiteConfig(**toml_data)
    except Exception as e:
        if selected_path:
            raise ValueError(
                f"Invalid configuration in {selected_path}: {e}"
            ) from e
        else:
            raise ValueError(f"Invalid configuration: {e}") from e
