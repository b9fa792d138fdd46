"""QuorumStore: stake-weighted data availability attestation.

Staked operators sign the digest of an off-chain data store; the ledger
confirms the store once a stake-weighted quorum, measured against weights
as of the store's dump number, has signed.  Payment claims for confirmed
stores can be disputed within a fixed fraud-proof window, and settled
payments are released through a delayed escrow.
"""

__version__ = "0.1.0"
__description__ = "Stake-weighted data availability attestation with payment disputes"

from quorumstore.core.coordinator import Coordinator

__all__ = ["Coordinator", "__version__"]
