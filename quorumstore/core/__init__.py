"""QuorumStore protocol core: stakes, confirmation, disputes, escrow."""
