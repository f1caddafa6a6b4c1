"""Treasury relay: high-gas ETH withdrawals from a custodial treasury."""

__version__ = "2.2.0"
