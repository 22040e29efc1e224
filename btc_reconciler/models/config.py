"""Configuration management using Pydantic settings."""

from typing import Optional
from decimal import Decimal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_NETWORKS = ("mainnet", "testnet", "signet", "regtest")


class ReconcilerConfig(BaseSettings):
    """Configuration for the transfer reconciliation workflow."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bitcoin Core RPC Settings
    bitcoin_rpc_host: str = Field(default="127.0.0.1", description="Bitcoin Core RPC host")
    bitcoin_rpc_port: int = Field(default=18443, description="Bitcoin Core RPC port (regtest default)")
    bitcoin_rpc_user: str = Field(default="alice", description="Bitcoin Core RPC username")
    bitcoin_rpc_password: str = Field(default="password", description="Bitcoin Core RPC password")
    bitcoin_rpc_timeout: int = Field(default=30, description="RPC timeout in seconds")
    network: str = Field(default="regtest", description="Network node addresses must belong to")

    # Wallet Settings
    miner_wallet_name: str = Field(default="Miner", description="Wallet receiving mining rewards")
    trader_wallet_name: str = Field(default="Trader", description="Wallet receiving the payment")
    mining_label: str = Field(default="Mining Reward", description="Label of the mining address")
    receive_label: str = Field(default="Received", description="Label of the receiving address")

    # Workflow Settings
    mining_batch_size: int = Field(default=10, gt=0, description="Blocks generated per funding iteration")
    mining_max_blocks: int = Field(default=110, gt=0, description="Blocks generated before giving up")
    send_amount_btc: Decimal = Field(default=Decimal("20"), gt=0, decimal_places=8,
                                     description="Payment amount in BTC")
    confirmation_blocks: int = Field(default=1, gt=0, description="Blocks mined to confirm the payment")
    output_path: str = Field(default="../out.txt", description="Report output path")

    # Logging Settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json|text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size_mb: int = Field(default=10, description="Max log file size in MB")
    log_backup_count: int = Field(default=3, description="Number of log backups")

    @field_validator("network")
    @classmethod
    def _check_network(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_NETWORKS:
            raise ValueError(f"network must be one of {', '.join(SUPPORTED_NETWORKS)}")
        return value

    @property
    def bitcoin_rpc_url(self) -> str:
        """Generate Bitcoin Core RPC URL."""
        return f"http://{self.bitcoin_rpc_host}:{self.bitcoin_rpc_port}"
