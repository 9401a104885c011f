"""
TRON Gas-Free Wallet

Moves TRC-20 tokens without TRX: the owner signs a TIP-712 PermitTransfer,
a gas-free provider broadcasts it and charges its fee in the transferred
token.

Usage:
    config = GasFreeWalletConfig.from_env()
    manager = WalletManagerTronGasfree(seed_phrase, config)

    account = await manager.get_account(0)
    quote = await account.quote_transfer(TransferOptions(token, recipient, amount))
    result = await account.transfer(TransferOptions(token, recipient, amount))
    receipt = await account.get_transaction_receipt(result.hash)
"""

__version__ = "0.1.0"

from .config import GasFreeWalletConfig, PaymasterToken, Settings
from .errors import (
    ConfigurationError,
    InvalidAddressError,
    TransferMaxFeeExceededError,
    TronGasfreeError,
    TypedDataError,
    UnsupportedOperationError,
    UnsupportedTokenError,
    WalletDisposedError,
)
from .models import (
    FeeRates,
    GasFreeAccount,
    GasFreeAsset,
    GasFreeToken,
    GasFreeTransferStatus,
    PermitTransferMessage,
    TransferOptions,
    TransferQuote,
    TransferResult,
)
from .typed_data import hash_typed_data, sign_typed_data
from .tron import TronClient, TronRPCError
from .provider import GasFreeProviderClient, GasFreeProviderError
from .keys import WalletAccountTron
from .account import WalletAccountReadOnlyTronGasfree, WalletAccountTronGasfree
from .manager import WalletManagerTronGasfree

__all__ = [
    "__version__",
    "GasFreeWalletConfig",
    "PaymasterToken",
    "Settings",
    "TronGasfreeError",
    "InvalidAddressError",
    "TypedDataError",
    "UnsupportedTokenError",
    "TransferMaxFeeExceededError",
    "UnsupportedOperationError",
    "WalletDisposedError",
    "ConfigurationError",
    "FeeRates",
    "GasFreeAccount",
    "GasFreeAsset",
    "GasFreeToken",
    "GasFreeTransferStatus",
    "PermitTransferMessage",
    "TransferOptions",
    "TransferQuote",
    "TransferResult",
    "hash_typed_data",
    "sign_typed_data",
    "TronClient",
    "TronRPCError",
    "GasFreeProviderClient",
    "GasFreeProviderError",
    "WalletAccountTron",
    "WalletAccountReadOnlyTronGasfree",
    "WalletAccountTronGasfree",
    "WalletManagerTronGasfree",
]
