"""Core configuration - centralized config for the meshledger package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from meshledger.core.config import get_config
    config = get_config()

    threshold = config.full_node_storage_threshold
    log_level = config.log_level
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CoreSettings(BaseSettings):
    """Core configuration settings for MeshLedger.

    Settings can be configured via environment variables with the
    MESHLEDGER_ prefix, or through a local .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # REGISTRY SETTINGS
    # ==========================================================================

    full_node_storage_threshold: int = Field(
        default=1_000_000_000,
        ge=0,
        description="High-water mark a full node's storage capacity must exceed (bytes)",
        validation_alias="MESHLEDGER_FULL_NODE_STORAGE_THRESHOLD",
    )

    # ==========================================================================
    # GOSSIP SETTINGS
    # ==========================================================================

    default_gossip_size: int = Field(
        default=1024,
        ge=0,
        description="Size in bytes charged for a gossip event when none is given",
        validation_alias="MESHLEDGER_DEFAULT_GOSSIP_SIZE",
    )

    # ==========================================================================
    # SIMULATION SETTINGS
    # ==========================================================================

    sim_drop_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability that a scheduled gossip delivery is dropped",
        validation_alias="MESHLEDGER_SIM_DROP_RATE",
    )
    sim_latency: int = Field(
        default=1,
        ge=0,
        description="Logical ticks between send and delivery",
        validation_alias="MESHLEDGER_SIM_LATENCY",
    )
    sim_max_retries: int = Field(
        default=5,
        ge=0,
        description="Retries for a dropped delivery or blocked decision trigger",
        validation_alias="MESHLEDGER_SIM_MAX_RETRIES",
    )
    sim_retry_backoff: int = Field(
        default=2,
        ge=1,
        description="Logical ticks added per retry attempt",
        validation_alias="MESHLEDGER_SIM_RETRY_BACKOFF",
    )
    sim_seed: int = Field(
        default=0,
        description="Seed for the deterministic loss model",
        validation_alias="MESHLEDGER_SIM_SEED",
    )

    # ==========================================================================
    # CLI SETTINGS
    # ==========================================================================

    journal_path: str | None = Field(
        default=None,
        description="Operation journal replayed by the CLI between invocations (unset: cli.toml, then ~/.meshledger/journal.json)",
        validation_alias="MESHLEDGER_JOURNAL",
    )
    cli_output: str | None = Field(
        default=None,
        description="CLI output format, 'text' or 'json'",
        validation_alias="MESHLEDGER_OUTPUT",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="MESHLEDGER_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="MESHLEDGER_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="MESHLEDGER_LOG_FILE",
    )


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: CoreSettings | None = None


def get_config() -> CoreSettings:
    """Get the global configuration instance.

    Returns:
        The singleton CoreSettings instance.
    """
    global _config
    if _config is None:
        _config = CoreSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
