"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from healthguard.config.constants import (
    COMMIT_MAX_ATTEMPTS,
    COMMIT_RETRY_DELAY_BASE,
    DEFAULT_CONFIRMATION_ROUNDS,
    FALLBACK_ATTEMPTS,
    FALLBACK_DELAY_STEP,
    FALLBACK_INITIAL_DELAY,
    FAUCET_SETTLE_DELAY,
    FAUCET_TIMEOUT,
    LEDGER_NODE_TIMEOUT,
    MINIMUM_BALANCE_MICROALGOS,
    PARAMS_MAX_ATTEMPTS,
    VERIFY_FETCH_ATTEMPTS,
    VERIFY_FETCH_DELAY,
)

SUPPORTED_NETWORKS = ("testnet", "mainnet", "betanet")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Ledger network
    network: str = Field(
        default="testnet",
        description="Algorand network: testnet, mainnet or betanet",
    )

    # Algod node (Nodely does not require a token for testnet)
    algod_server: str = "https://testnet-api.4160.nodely.dev"
    algod_port: int = Field(default=443, ge=1, le=65535)
    algod_token: str = ""
    algod_backup_server: str | None = None

    # Funding
    minimum_balance_microalgos: int = Field(
        default=MINIMUM_BALANCE_MICROALGOS,
        ge=0,
        description="Balance below which faucets are asked for funds",
    )
    auto_fund: bool | None = Field(
        default=None,
        description="Request faucet funds before commits (defaults to testnet only)",
    )
    faucet_settle_delay: float = Field(default=FAUCET_SETTLE_DELAY, ge=0)
    faucet_timeout: float = Field(default=FAUCET_TIMEOUT, gt=0)

    # Commitment
    commit_max_attempts: int = Field(default=COMMIT_MAX_ATTEMPTS, ge=1)
    commit_retry_base_delay: float = Field(default=COMMIT_RETRY_DELAY_BASE, ge=0)
    confirmation_rounds: int = Field(default=DEFAULT_CONFIRMATION_ROUNDS, ge=1)
    params_max_attempts: int = Field(default=PARAMS_MAX_ATTEMPTS, ge=1)

    # Verification
    verify_fetch_attempts: int = Field(default=VERIFY_FETCH_ATTEMPTS, ge=1)
    verify_fetch_delay: float = Field(default=VERIFY_FETCH_DELAY, ge=0)
    fallback_attempts: int = Field(default=FALLBACK_ATTEMPTS, ge=0)
    fallback_initial_delay: float = Field(default=FALLBACK_INITIAL_DELAY, ge=0)
    fallback_delay_step: float = Field(default=FALLBACK_DELAY_STEP, ge=0)

    # Node calls
    node_timeout: float = Field(default=LEDGER_NODE_TIMEOUT, gt=0)

    # Explorer (derived from network when not set)
    explorer_base_url: str | None = None

    # Application
    log_level: str = "INFO"
    log_file: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("network")
    @classmethod
    def validate_network(cls, v: str) -> str:
        """Validate ledger network name."""
        network = v.strip().lower()
        if network not in SUPPORTED_NETWORKS:
            raise ValueError(
                f"Invalid network: {v}. "
                f"Expected one of: {', '.join(SUPPORTED_NETWORKS)}"
            )
        return network

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        return v.strip().upper()

    @model_validator(mode="after")
    def resolve_auto_fund(self) -> "Settings":
        """Enable faucet funding by default on testnet only."""
        if self.auto_fund is None:
            self.auto_fund = self.network == "testnet"
        elif self.auto_fund and self.network != "testnet":
            logger.warning(
                f"AUTO_FUND is enabled on {self.network}; "
                "public faucets only dispense testnet ALGO"
            )
        return self

    @property
    def is_testnet(self) -> bool:
        """Whether the configured network is testnet."""
        return self.network == "testnet"


# Global settings instance
settings = Settings()
