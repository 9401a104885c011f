"""
TRON gas-free wallet accounts.

A gas-free account moves TRC-20 tokens without TRX: the owner signs a
TIP-712 PermitTransfer off-chain, the gas-free provider broadcasts it and
takes its fee out of the transferred token.

Flow:
1. Resolve the owner's gas-free account (shadow address, nonce, fees)
2. Quote the fee (transfer fee + activation fee while inactive)
3. Sign a PermitTransfer (nonce, 5 minute deadline) with the owner key
4. Submit it to the provider, which returns a job id
5. Poll the job id until the provider reports a chain transaction hash
"""

import time
from typing import Any, Awaitable, Callable, Optional, Union

import structlog

from .address import decode_tron_address, to_base58_address
from .config import GasFreeWalletConfig
from .errors import (
    ConfigurationError,
    TransferMaxFeeExceededError,
    UnsupportedOperationError,
    UnsupportedTokenError,
)
from .keys import KeyPair, WalletAccountTron
from .models import (
    GasFreeAccount,
    GasFreeToken,
    GasFreeTransferStatus,
    PermitTransferMessage,
    TransferOptions,
    TransferQuote,
    TransferResult,
)
from .provider import GasFreeProviderClient
from .tron import TronClient
from .typed_data import sign_typed_data

logger = structlog.get_logger()


PERMIT_TRANSFER_TYPES = {
    "PermitTransfer": [
        {"name": "token", "type": "address"},
        {"name": "serviceProvider", "type": "address"},
        {"name": "user", "type": "address"},
        {"name": "receiver", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "maxFee", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
        {"name": "version", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
    ]
}

PERMIT_DOMAIN_NAME = "GasFreeController"
PERMIT_DOMAIN_VERSION = "V1.0.0"

TOKEN_TRANSFER_DEADLINE = 300  # seconds

TOKEN_TRANSFER_SIGNATURE_VERSION = 1


def create_permit_domain(chain_id: int, verifying_contract: str) -> dict[str, Any]:
    """Create the TIP-712 domain of the GasFreeController contract."""
    return {
        "name": PERMIT_DOMAIN_NAME,
        "version": PERMIT_DOMAIN_VERSION,
        "chainId": int(chain_id),
        "verifyingContract": verifying_contract,
    }


class GasFreeAccountCache:
    """
    One-shot cache cell for a resolved gas-free account.

    Filled on first ``get``; only ``refresh`` or ``clear`` replace the value.
    A failed load leaves the cell empty.
    """

    def __init__(self) -> None:
        self._value: Optional[GasFreeAccount] = None

    @property
    def value(self) -> Optional[GasFreeAccount]:
        return self._value

    async def get(self, load: Callable[[], Awaitable[GasFreeAccount]]) -> GasFreeAccount:
        if self._value is None:
            self._value = await load()
        return self._value

    async def refresh(self, load: Callable[[], Awaitable[GasFreeAccount]]) -> GasFreeAccount:
        self._value = await load()
        return self._value

    def clear(self) -> None:
        self._value = None


def _make_tron_client(config: GasFreeWalletConfig) -> Optional[TronClient]:
    if isinstance(config.provider, TronClient):
        return config.provider
    if config.provider:
        return TronClient(config.provider, timeout=config.timeout_seconds)
    return None


def _make_provider_client(config: GasFreeWalletConfig) -> GasFreeProviderClient:
    return GasFreeProviderClient(
        config.gas_free_provider,
        config.gas_free_api_key,
        config.gas_free_api_secret,
        timeout=config.timeout_seconds,
    )


class WalletAccountReadOnlyTronGasfree:
    """
    Read-only view of an owner's gas-free account.

    Queries balances, quotes transfers and follows submitted transfers;
    holds no key material.
    """

    def __init__(
        self,
        address: str,
        config: GasFreeWalletConfig,
        provider_client: Optional[GasFreeProviderClient] = None,
        tron_client: Optional[TronClient] = None,
    ):
        decode_tron_address(address)

        self._config = config
        self._owner_address = address
        self._cache = GasFreeAccountCache()

        self._owns_provider = provider_client is None
        self.provider = provider_client or _make_provider_client(config)
        self._owns_tron = tron_client is None and not isinstance(config.provider, TronClient)
        self._tron = tron_client or _make_tron_client(config)

    @property
    def config(self) -> GasFreeWalletConfig:
        return self._config

    @property
    def owner_address(self) -> str:
        """The owner's own TRON address."""
        return self._owner_address

    @property
    def tron_client(self) -> Optional[TronClient]:
        """The chain client, or None when no TRON node provider is configured."""
        return self._tron

    @property
    def tron(self) -> TronClient:
        if self._tron is None:
            raise ConfigurationError("The wallet must be connected to a TRON node provider.")
        return self._tron

    # ------------------------------------------------------------------
    # Gas-free account
    # ------------------------------------------------------------------

    async def _load_gasfree_account(self) -> GasFreeAccount:
        account = await self.provider.get_account(self._owner_address)

        logger.info(
            "gasfree_account_resolved",
            owner=self._owner_address,
            gas_free_address=account.gas_free_address,
            active=account.active,
            nonce=account.nonce,
        )

        return account

    async def get_gasfree_account(self) -> GasFreeAccount:
        """Return the gas-free account, resolving it on first use."""
        return await self._cache.get(self._load_gasfree_account)

    async def refresh_gasfree_account(self) -> GasFreeAccount:
        """Re-resolve the gas-free account (fresh nonce and activation state)."""
        return await self._cache.refresh(self._load_gasfree_account)

    async def get_address(self) -> str:
        """The gas-free (shadow) address holding the account's tokens."""
        account = await self.get_gasfree_account()
        return account.gas_free_address

    async def get_supported_tokens(self) -> list[GasFreeToken]:
        """Tokens the gas-free provider can transfer."""
        return await self.provider.get_tokens()

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_balance(self) -> int:
        """TRX balance of the gas-free address (in sun)."""
        return await self.tron.get_balance(await self.get_address())

    async def get_token_balance(self, token_address: str) -> int:
        """Token balance of the gas-free address (in base unit)."""
        return await self.tron.get_token_balance(await self.get_address(), token_address)

    async def get_paymaster_token_balance(self) -> int:
        """Balance of the configured paymaster token (in base unit)."""
        if self._config.paymaster_token is None:
            raise ConfigurationError("No paymaster token configured.")
        return await self.get_token_balance(self._config.paymaster_token.address)

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    async def quote_send_transaction(self, tx: Any) -> TransferQuote:
        raise UnsupportedOperationError("Method 'quote_send_transaction(tx)' not supported on tron gasfree.")

    async def quote_transfer(self, options: TransferOptions) -> TransferQuote:
        """
        Quote the fee of a transfer.

        fee = transfer fee + activation fee (only while the gas-free
        address is not active yet)

        Raises:
            InvalidAddressError: If the token or recipient address is malformed
            UnsupportedTokenError: If the provider does not support the token
        """
        token = to_base58_address(options.token)
        decode_tron_address(options.recipient)

        account = await self.get_gasfree_account()

        asset = account.get_asset(token)
        if asset is None:
            raise UnsupportedTokenError(token)

        fee = asset.transfer_fee + (0 if account.active else asset.activate_fee)
        return TransferQuote(fee=fee)

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------

    async def get_transfer_status(self, transfer_id: str) -> GasFreeTransferStatus:
        """Provider-side status of a submitted transfer."""
        return await self.provider.get_transfer(transfer_id)

    async def get_transaction_receipt(self, hash: str) -> Optional[dict[str, Any]]:
        """
        Return the on-chain receipt of a gas-free transfer.

        Args:
            hash: Job id returned by ``transfer``

        Returns:
            The chain receipt, or None while the provider has not broadcast
            the transfer yet (or the transaction is not in a block yet)
        """
        status = await self.get_transfer_status(hash)

        if not status.txn_hash:
            logger.debug("gasfree_transfer_pending", id=hash, state=status.state)
            return None

        return await self.tron.get_transaction_receipt(status.txn_hash)

    async def aclose(self) -> None:
        """Close the HTTP clients created by this account."""
        if self._owns_provider:
            await self.provider.aclose()
        if self._owns_tron and self._tron is not None:
            await self._tron.aclose()


class WalletAccountTronGasfree:
    """
    Gas-free account with signing capability.

    Composes an owner key (``WalletAccountTron``) with a read-only
    gas-free view of the owner's address.

    Example:
        async with WalletAccountTronGasfree(seed, "0'/0/0", config) as account:
            quote = await account.quote_transfer(TransferOptions(token, recipient, 1_000_000))
            result = await account.transfer(TransferOptions(token, recipient, 1_000_000))
            receipt = await account.get_transaction_receipt(result.hash)
    """

    def __init__(
        self,
        seed: Union[str, bytes],
        path: str,
        config: GasFreeWalletConfig,
        provider_client: Optional[GasFreeProviderClient] = None,
        tron_client: Optional[TronClient] = None,
    ):
        self._config = config
        self._owner = WalletAccountTron(seed, path)
        self._read_only = WalletAccountReadOnlyTronGasfree(
            self._owner.address,
            config,
            provider_client=provider_client,
            tron_client=tron_client,
        )

    def __enter__(self) -> "WalletAccountTronGasfree":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    async def __aenter__(self) -> "WalletAccountTronGasfree":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.dispose()
        await self.aclose()

    # ------------------------------------------------------------------
    # Key material
    # ------------------------------------------------------------------

    @property
    def path(self) -> str:
        return self._owner.path

    @property
    def index(self) -> int:
        return self._owner.index

    @property
    def key_pair(self) -> KeyPair:
        return self._owner.key_pair

    @property
    def owner_address(self) -> str:
        return self._owner.address

    async def sign(self, message: Union[str, bytes]) -> str:
        return await self._owner.sign(message)

    async def verify(self, message: Union[str, bytes], signature: str) -> bool:
        return await self._owner.verify(message, signature)

    def dispose(self) -> None:
        """Erase the private key from memory. Safe to call more than once."""
        self._owner.dispose()

    async def aclose(self) -> None:
        await self._read_only.aclose()

    # ------------------------------------------------------------------
    # Read-only operations
    # ------------------------------------------------------------------

    async def get_address(self) -> str:
        return await self._read_only.get_address()

    async def get_gasfree_account(self) -> GasFreeAccount:
        return await self._read_only.get_gasfree_account()

    async def refresh_gasfree_account(self) -> GasFreeAccount:
        return await self._read_only.refresh_gasfree_account()

    async def get_supported_tokens(self) -> list[GasFreeToken]:
        return await self._read_only.get_supported_tokens()

    async def get_balance(self) -> int:
        return await self._read_only.get_balance()

    async def get_token_balance(self, token_address: str) -> int:
        return await self._read_only.get_token_balance(token_address)

    async def get_paymaster_token_balance(self) -> int:
        return await self._read_only.get_paymaster_token_balance()

    async def quote_send_transaction(self, tx: Any) -> TransferQuote:
        return await self._read_only.quote_send_transaction(tx)

    async def quote_transfer(self, options: TransferOptions) -> TransferQuote:
        return await self._read_only.quote_transfer(options)

    async def get_transfer_status(self, transfer_id: str) -> GasFreeTransferStatus:
        return await self._read_only.get_transfer_status(transfer_id)

    async def get_transaction_receipt(self, hash: str) -> Optional[dict[str, Any]]:
        return await self._read_only.get_transaction_receipt(hash)

    async def to_read_only_account(self) -> WalletAccountReadOnlyTronGasfree:
        """
        A read-only copy of this account with its own account cache.

        The copy shares this account's HTTP clients and does not own them;
        it stops working once this account is closed with ``aclose()``.
        """
        return WalletAccountReadOnlyTronGasfree(
            self._owner.address,
            self._config,
            provider_client=self._read_only.provider,
            tron_client=self._read_only.tron_client,
        )

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def send_transaction(self, tx: Any) -> TransferResult:
        raise UnsupportedOperationError("Method 'send_transaction(tx)' not supported on tron gasfree.")

    async def transfer(
        self,
        options: TransferOptions,
        transfer_max_fee: Optional[int] = None,
    ) -> TransferResult:
        """
        Transfer a token through the gas-free provider.

        Args:
            options: Token, recipient and amount (base unit)
            transfer_max_fee: Fee ceiling for this transfer; defaults to the
                configured ``transfer_max_fee``

        Returns:
            TransferResult whose ``hash`` is the provider's job id

        Raises:
            TransferMaxFeeExceededError: If the quoted fee reaches the ceiling
            UnsupportedTokenError: If the provider does not support the token
            GasFreeProviderError: If the provider rejects a request
        """
        if options.amount <= 0:
            raise ValueError(f"Invalid transfer amount: {options.amount}")

        user = self._owner.address
        token = to_base58_address(options.token)
        receiver = to_base58_address(options.recipient)

        quote = await self._read_only.quote_transfer(options)
        account = await self._read_only.get_gasfree_account()

        max_fee = transfer_max_fee if transfer_max_fee is not None else self._config.transfer_max_fee
        if max_fee is not None and quote.fee >= max_fee:
            raise TransferMaxFeeExceededError(quote.fee, max_fee)

        message = PermitTransferMessage(
            token=token,
            service_provider=to_base58_address(self._config.service_provider),
            user=user,
            receiver=receiver,
            value=options.amount,
            max_fee=quote.fee,
            deadline=int(time.time()) + TOKEN_TRANSFER_DEADLINE,
            version=TOKEN_TRANSFER_SIGNATURE_VERSION,
            nonce=account.nonce,
        )

        domain = create_permit_domain(self._config.chain_id, self._config.verifying_contract)
        signature = sign_typed_data(
            self._owner.private_key_bytes(),
            domain,
            PERMIT_TRANSFER_TYPES,
            "PermitTransfer",
            message.to_typed_data(),
        )

        submitted = await self._read_only.provider.submit_transfer(message, signature)
        fee = submitted.estimated_transfer_fee + submitted.estimated_activate_fee

        logger.info(
            "gasfree_transfer_submitted",
            id=submitted.id,
            user=user,
            token=token,
            receiver=receiver,
            value=options.amount,
            nonce=message.nonce,
            fee=fee,
        )

        return TransferResult(hash=submitted.id, fee=fee)
