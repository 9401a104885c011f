"""
Configuration for the TRON gas-free wallet.
"""

from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .address import is_address
from .tron import TronClient


class Settings(BaseSettings):
    """
    Environment-based settings.

    All settings can be overridden via TRON_GASFREE_* environment variables.
    Defaults target the Nile testnet deployment.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRON_GASFREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # TRON network
    chain_id: int = Field(default=3448148188, description="TRON chain id (Nile testnet)")
    provider: str = Field(default="https://nile.trongrid.io", description="TRON full node HTTP API")

    # Gas-free provider
    gas_free_provider: str = Field(
        default="https://open-test.gasfree.io/nile",
        description="Gas-free provider base URL",
    )
    gas_free_api_key: str = Field(default="", description="Gas-free provider API key")
    gas_free_api_secret: str = Field(default="", description="Gas-free provider API secret")

    # Contracts
    service_provider: str = Field(
        default="TKtWbdzEq5ss9vTS9kwRhBp5mXmBfBns3E",
        description="Service provider address",
    )
    verifying_contract: str = Field(
        default="THQGuFzL87ZqhxkgqYEryRAd7gqFqL5rdc",
        description="GasFreeController contract address",
    )

    # Transfers
    paymaster_token_address: Optional[str] = Field(default=None, description="Paymaster token address")
    transfer_max_fee: Optional[int] = Field(default=None, description="Maximum fee per transfer")

    timeout_seconds: float = Field(default=30.0, description="HTTP timeout")


class PaymasterToken(BaseModel):
    """Token the gas-free fees are paid with."""

    address: str


class GasFreeWalletConfig(BaseModel):
    """Configuration consumed by gas-free wallet managers and accounts."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    chain_id: int
    provider: Optional[Union[str, TronClient]] = None
    gas_free_provider: str
    gas_free_api_key: str
    gas_free_api_secret: str
    service_provider: str
    verifying_contract: str
    paymaster_token: Optional[PaymasterToken] = None
    transfer_max_fee: Optional[int] = Field(default=None, ge=0)
    timeout_seconds: float = 30.0

    @field_validator("service_provider", "verifying_contract")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not is_address(value):
            raise ValueError(f"Invalid TRON address: {value}")
        return value

    @field_validator("gas_free_provider")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "GasFreeWalletConfig":
        """Build a wallet config from environment settings."""
        values: dict[str, Any] = {
            "chain_id": settings.chain_id,
            "provider": settings.provider,
            "gas_free_provider": settings.gas_free_provider,
            "gas_free_api_key": settings.gas_free_api_key,
            "gas_free_api_secret": settings.gas_free_api_secret,
            "service_provider": settings.service_provider,
            "verifying_contract": settings.verifying_contract,
            "transfer_max_fee": settings.transfer_max_fee,
            "timeout_seconds": settings.timeout_seconds,
        }
        if settings.paymaster_token_address:
            values["paymaster_token"] = PaymasterToken(address=settings.paymaster_token_address)
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "GasFreeWalletConfig":
        """Load configuration from environment."""
        settings = Settings(_env_file=env_path) if env_path else Settings()
        return cls.from_settings(settings)
