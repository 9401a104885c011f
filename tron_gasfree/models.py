"""
Gas-free provider wire models and wallet result types.

Wire models use camelCase aliases to match the provider's JSON; they can
be populated by field name as well.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .address import is_address, to_base58_address


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _asset_key(token: Any) -> Any:
    return to_base58_address(token) if is_address(token) else token


# ============================================================================
# Gas-free account
# ============================================================================

class GasFreeAsset(_WireModel):
    """Fee schedule of one token for a gas-free account."""

    token_address: str = Field(..., description="TRC-20 contract address")
    token_symbol: Optional[str] = Field(None, description="Token symbol")
    transfer_fee: int = Field(..., ge=0, description="Fee per transfer (token base unit)")
    activate_fee: int = Field(..., ge=0, description="One-time gas-free address activation fee")
    decimal: Optional[int] = Field(None, description="Token decimals")
    frozen: int = Field(0, description="Amount frozen by pending transfers")


class GasFreeAccount(_WireModel):
    """
    Gas-free account of an owner address, as resolved by the provider.

    ``gas_free_address`` is the provider-managed shadow address that holds
    the tokens; it is distinct from the owner's own address.
    """

    account_address: Optional[str] = Field(None, description="Owner address")
    gas_free_address: str = Field(..., description="Shadow address managed by the provider")
    active: bool = Field(..., description="Whether the shadow address is provisioned on-chain")
    nonce: int = Field(..., ge=0, description="Nonce expected by the next permit")
    allow_submit: bool = Field(True, description="Whether the provider accepts new submissions")
    assets: dict[str, GasFreeAsset] = Field(
        default_factory=dict,
        description="Fee schedule keyed by token contract address",
    )

    @field_validator("assets", mode="before")
    @classmethod
    def _index_assets(cls, value: Any) -> Any:
        # The provider sends a list of assets; index them by base58 token address.
        if value is None:
            return {}
        if isinstance(value, dict):
            return {_asset_key(token): item for token, item in value.items()}
        if not isinstance(value, list):
            return value

        indexed = {}
        for item in value:
            if isinstance(item, GasFreeAsset):
                token = item.token_address
            else:
                token = item.get("tokenAddress") or item.get("token_address")
            indexed[_asset_key(token)] = item
        return indexed

    def get_asset(self, token: str) -> Optional[GasFreeAsset]:
        """Look up the fee schedule of a token given in any address format."""
        return self.assets.get(_asset_key(token))


class GasFreeToken(_WireModel):
    """Token entry of ``GET /api/v1/config/token/all``."""

    token_address: str
    transfer_fee: int = Field(0, ge=0)
    activate_fee: int = Field(0, ge=0)
    symbol: Optional[str] = None
    decimal: Optional[int] = None


# ============================================================================
# Permit transfer
# ============================================================================

class PermitTransferMessage(_WireModel):
    """
    PermitTransfer authorization signed by the owner.

    Single use: ``nonce`` must equal the gas-free account nonce at signing
    time; the provider rejects a reused or stale nonce.
    """

    token: str
    service_provider: str
    user: str
    receiver: str
    value: int = Field(..., gt=0)
    max_fee: int = Field(..., ge=0)
    deadline: int
    version: int
    nonce: int = Field(..., ge=0)

    def to_typed_data(self) -> dict[str, Any]:
        """Message in the camelCase shape used for signing and submission."""
        return self.model_dump(by_alias=True)


class SubmittedTransfer(_WireModel):
    """Response data of ``POST /api/v1/gasfree/submit``."""

    id: str
    estimated_transfer_fee: int = 0
    estimated_activate_fee: int = 0
    state: Optional[str] = None


class GasFreeTransferStatus(_WireModel):
    """
    Response data of ``GET /api/v1/gasfree/{id}``.

    ``txn_hash`` stays empty until the provider has broadcast the transfer.
    """

    id: Optional[str] = None
    state: Optional[str] = None
    txn_hash: Optional[str] = None


# ============================================================================
# Wallet results
# ============================================================================

@dataclass
class TransferOptions:
    """A token transfer request."""

    token: str  # TRC-20 contract address
    recipient: str  # Receiver address
    amount: int  # Amount in the token's base unit


@dataclass
class TransferQuote:
    """Estimated cost of a transfer; no job id."""

    fee: int


@dataclass
class TransferResult:
    """
    Result of a submitted transfer.

    ``hash`` is the provider's job id, not a chain transaction hash; pass it
    to ``get_transaction_receipt`` to follow the transfer on-chain.
    """

    hash: str
    fee: int


@dataclass
class FeeRates:
    """Network fee rates (in sun)."""

    normal: int
    fast: int
