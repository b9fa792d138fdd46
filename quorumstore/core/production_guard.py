"""Production configuration guard — enforces hard constraints in production.

The guard runs once when a Coordinator is constructed and fails hard
(raises ``ProductionConfigError``) if any constraint is violated.  Outside
production, violations are logged as warnings only.
"""

from __future__ import annotations

import logging

from quorumstore.config import ProtocolConfig

logger = logging.getLogger(__name__)


class ProductionConfigError(RuntimeError):
    """Raised when a production configuration constraint is violated."""


def collect_violations(config: ProtocolConfig) -> list[str]:
    """Return every constraint *config* violates (empty means healthy)."""
    violations: list[str] = []
    if config.min_collateral <= 0:
        violations.append(
            "min_collateral must be positive so challenges cannot be spammed. "
            "Set QUORUMSTORE_MIN_COLLATERAL."
        )
    if config.fraud_proof_interval <= 0:
        violations.append(
            "fraud_proof_interval must be positive. "
            "Set QUORUMSTORE_FRAUD_PROOF_INTERVAL."
        )
    if config.withdrawal_delay > config.max_withdrawal_delay:
        violations.append(
            f"withdrawal_delay {config.withdrawal_delay} exceeds "
            f"max_withdrawal_delay {config.max_withdrawal_delay}."
        )
    if config.is_production and config.debug:
        violations.append("debug must be disabled in production.")
    return violations


def enforce_production_constraints(config: ProtocolConfig) -> None:
    """Validate *config*; raise in production, warn elsewhere.

    Raises
    ------
    ProductionConfigError
        If running in production and any constraint is violated.
    """
    violations = collect_violations(config)
    if not violations:
        return

    msg = "Production configuration guard failed.\n" + "\n".join(
        f"  - {v}" for v in violations
    )
    if config.is_production:
        logger.critical(msg)
        raise ProductionConfigError(msg)
    logger.warning(msg)
