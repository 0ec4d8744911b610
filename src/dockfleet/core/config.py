"""
Centralized settings for dockfleet.

Manifesto:
    Fan-out defaults (strategy, retries, error verbosity) and logging
    setup should come from one validated, cached source rather than
    being re-parsed by each caller.  ``FleetSettings`` reads ``DOCKFLEET_*``
    environment variables (and ``.env``) once and hands out a ready
    :class:`~dockfleet.execution.policy.ExecutionPolicy`.

Examples:
    >>> import os
    >>> os.environ["DOCKFLEET_STRATEGY"] = "concurrent"
    >>> clear_settings_cache()
    >>> get_settings().to_policy().is_concurrent
    True

Tags:
    dockfleet, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dockfleet.core.logging import configure_logging
from dockfleet.execution.outcome import ErrorDetailLevel
from dockfleet.execution.policy import ExecutionPolicy, ExecutionStrategy


class FleetSettings(BaseSettings):
    """dockfleet configuration.

    All fields can be set via ``DOCKFLEET_*`` environment variables (e.g.
    ``DOCKFLEET_RETRY_ON_FAILURE=true``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCKFLEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Execution defaults ───────────────────────────────────────
    strategy: ExecutionStrategy = Field(default=ExecutionStrategy.SEQUENTIAL)
    error_detail_level: ErrorDetailLevel = Field(default=ErrorDetailLevel.STANDARD)
    retry_on_failure: bool = Field(default=False)
    max_retries: int = Field(default=3, ge=1)
    retry_delay_ms: int = Field(default=1000, ge=0)
    exponential_backoff: bool = Field(default=True)
    backoff_base_ms: int = Field(default=100, ge=0)
    operation_timeout_seconds: int = Field(default=30, gt=0)
    max_concurrency: int | None = Field(default=None, ge=1)
    run_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Wall-clock budget per run after which no new retries start",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console", description="console or json")

    @field_validator("strategy", mode="before")
    @classmethod
    def _coerce_strategy(cls, value: Any) -> Any:
        # Routes through ExecutionStrategy._missing_ so "parallel" is accepted.
        if isinstance(value, str):
            return ExecutionStrategy(value.lower())
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return value

    def to_policy(self) -> ExecutionPolicy:
        """Build the default execution policy these settings describe."""
        return ExecutionPolicy(
            strategy=self.strategy,
            error_detail_level=self.error_detail_level,
            retry_on_failure=self.retry_on_failure,
            max_retries=self.max_retries,
            retry_delay_ms=self.retry_delay_ms,
            exponential_backoff=self.exponential_backoff,
            backoff_base_ms=self.backoff_base_ms,
            operation_timeout_seconds=self.operation_timeout_seconds,
            max_concurrency=self.max_concurrency,
            run_timeout_seconds=self.run_timeout_seconds,
        )

    def configure_logging(self) -> None:
        """Apply ``log_level`` / ``log_format`` to structlog."""
        configure_logging(level=self.log_level, json_format=self.log_format == "json")


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, FleetSettings] = {}


def get_settings(*, _force_reload: bool = False) -> FleetSettings:
    """Load, validate, and cache a :class:`FleetSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = FleetSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, or after changing the environment)."""
    _settings_cache.clear()


def default_policy() -> ExecutionPolicy:
    """The policy used when a caller supplies none."""
    return get_settings().to_policy()


__all__ = ["FleetSettings", "get_settings", "clear_settings_cache", "default_policy"]
