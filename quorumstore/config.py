"""Protocol configuration — env-driven.

Centralized config using pydantic-settings for environment variable
support. Reads from .env file and QUORUMSTORE_* environment variables.
All durations are in blocks.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ProtocolConfig(BaseSettings):
    """Protocol configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export QUORUMSTORE_ENVIRONMENT=staging
        export QUORUMSTORE_LOG_LEVEL=DEBUG
        export QUORUMSTORE_FRAUD_PROOF_INTERVAL=600

    Or via .env file::

        QUORUMSTORE_ENVIRONMENT=production
        QUORUMSTORE_MIN_COLLATERAL=5000
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="QUORUMSTORE_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    journal_path: Path = Path(".quorumstore/journal.db")

    # Confirmation
    default_quorum_bps: int = 6600  # basis points of total stake weight

    # Payments and disputes
    fee_per_byte_block: int = 1
    fraud_proof_interval: int = 7200
    min_collateral: int = 1000

    # Escrow
    withdrawal_delay: int = 100
    max_withdrawal_delay: int = 50400  # about one week of 12-second blocks

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton — import as `from quorumstore.config import config`
config = ProtocolConfig()
