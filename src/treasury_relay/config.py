"""Application configuration using pydantic-settings.

Everything the treasury needs at runtime comes from the environment (or a
local ``.env`` file): the signing key, the RPC candidate list and the fee
policy knobs.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RPC_URLS = ",".join(
    [
        "https://ethereum-rpc.publicnode.com",
        "https://eth.drpc.org",
        "https://rpc.ankr.com/eth",
        "https://eth.llamarpc.com",
        "https://1rpc.io/eth",
        "https://cloudflare-eth.com",
    ]
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8080, description="API server port")
    admin_token: str = Field(default="", description="Admin API token for protected endpoints")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    # ======================
    # Treasury signer
    # ======================
    treasury_private_key: Optional[str] = Field(
        default=None, description="Hex private key of the treasury account"
    )

    # ======================
    # Wallets
    # ======================
    coinbase_wallet: str = Field(
        default="0x4024Fd78E2AD5532FBF3ec2B3eC83870FAe45fC7",
        description="Default withdrawal destination",
    )
    treasury_wallet: str = Field(
        default="0x0fF31D4cdCE8B3f7929c04EbD4cd852608DC09f4",
        description="Treasury address reported when no key is configured",
    )

    # ======================
    # Network
    # ======================
    rpc_urls: str = Field(
        default=DEFAULT_RPC_URLS, description="Comma-separated RPC candidates, in priority order"
    )
    chain_id: int = Field(default=1, description="Expected chain ID")
    rpc_probe_timeout: float = Field(default=5.0, description="Liveness probe timeout (seconds)")
    rpc_request_timeout: float = Field(default=30.0, description="JSON-RPC request timeout (seconds)")
    explorer_tx_url: str = Field(
        default="https://etherscan.io/tx/", description="Block explorer transaction URL prefix"
    )

    # ======================
    # Amounts
    # ======================
    eth_price: Decimal = Field(default=Decimal("3450"), description="Fixed ETH/USD conversion rate")
    gas_reserve_eth: Decimal = Field(
        default=Decimal("0.01"), description="Balance held back for fee payment"
    )
    min_gas_eth: Decimal = Field(
        default=Decimal("0.01"), description="Minimum balance reported as able to trade"
    )
    min_status_balance_eth: Decimal = Field(
        default=Decimal("0.005"), description="Minimum balance reported as able to withdraw"
    )

    # ======================
    # Fee policy (gwei)
    # ======================
    priority_fee_multiplier: int = Field(default=3, description="Priority fee multiplier")
    max_fee_multiplier: int = Field(default=2, description="Max fee multiplier")
    min_priority_fee_gwei: int = Field(default=5, description="Priority fee floor")
    min_max_fee_gwei: int = Field(default=50, description="Max fee floor")
    fallback_max_fee_gwei: int = Field(default=30, description="Max fee when the network has no estimate")
    fallback_priority_fee_gwei: int = Field(
        default=2, description="Priority fee when the network has no estimate"
    )
    transfer_gas_limit: int = Field(default=21000, description="Gas limit for a plain transfer")

    # ======================
    # Submission
    # ======================
    confirmation_poll_interval: float = Field(
        default=2.0, description="Seconds between receipt polls"
    )
    confirmation_timeout: float = Field(
        default=600.0, description="Seconds to wait for inclusion before giving up"
    )
    submission_lock_timeout: Optional[float] = Field(
        default=30.0, description="Seconds a withdrawal waits for the signer (None = forever)"
    )

    @property
    def rpc_url_list(self) -> list[str]:
        """Parse the RPC candidates into an ordered list."""
        return [url.strip() for url in self.rpc_urls.split(",") if url.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_signer_key(self) -> bool:
        """Check if a treasury key is configured."""
        return bool(self.treasury_private_key and self.treasury_private_key.strip())

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "port": self.port,
            "treasury_private_key": "***" if self.has_signer_key else "(not set)",
            "admin_token": "***" if self.admin_token else "(not set)",
            "wallets": {
                "coinbase": self.coinbase_wallet,
                "treasury": self.treasury_wallet,
            },
            "network": {
                "chain_id": self.chain_id,
                "rpc_urls": self.rpc_url_list,
                "probe_timeout": self.rpc_probe_timeout,
            },
            "gas": {
                "priority_fee_multiplier": self.priority_fee_multiplier,
                "max_fee_multiplier": self.max_fee_multiplier,
                "min_priority_fee_gwei": self.min_priority_fee_gwei,
                "min_max_fee_gwei": self.min_max_fee_gwei,
                "transfer_gas_limit": self.transfer_gas_limit,
            },
            "amounts": {
                "eth_price": str(self.eth_price),
                "gas_reserve_eth": str(self.gas_reserve_eth),
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
