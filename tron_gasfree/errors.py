"""
Exception hierarchy for the TRON gas-free wallet.

    TronGasfreeError (root)
    ├── InvalidAddressError
    ├── TypedDataError
    ├── UnsupportedTokenError
    ├── TransferMaxFeeExceededError
    ├── UnsupportedOperationError
    ├── WalletDisposedError
    ├── ConfigurationError
    ├── GasFreeProviderError   (provider.py)
    └── TronRPCError           (tron.py)
"""


class TronGasfreeError(Exception):
    """Root exception for every error raised by this package."""


class InvalidAddressError(TronGasfreeError, ValueError):
    """Address does not decode to a TRON (0x41-prefixed) address."""

    def __init__(self, address: object):
        self.address = address
        super().__init__(f"Invalid TRON address format for {address}")


class TypedDataError(TronGasfreeError, ValueError):
    """Typed data could not be encoded (missing field, malformed type map)."""


class UnsupportedTokenError(TronGasfreeError):
    """Token is not part of the gas-free account's fee schedule."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Token {token} is not supported by the gas free provider.")


class TransferMaxFeeExceededError(TronGasfreeError):
    """Quoted fee reaches or exceeds the caller's maximum fee."""

    def __init__(self, fee: int, max_fee: int):
        self.fee = fee
        self.max_fee = max_fee
        super().__init__("The transfer operation exceeds the transfer max fee.")


class UnsupportedOperationError(TronGasfreeError, NotImplementedError):
    """Operation is not available on gas-free accounts."""


class WalletDisposedError(TronGasfreeError):
    """Key material was already erased."""


class ConfigurationError(TronGasfreeError, ValueError):
    """A configuration value required by the operation is missing or invalid."""
