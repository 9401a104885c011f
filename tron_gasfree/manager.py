"""
Gas-free wallet manager: one seed, many gas-free accounts.
"""

from typing import Optional, Union

import structlog

from .account import WalletAccountTronGasfree
from .config import GasFreeWalletConfig
from .errors import ConfigurationError, WalletDisposedError
from .keys import seed_from_mnemonic
from .models import FeeRates
from .provider import GasFreeProviderClient
from .tron import TronClient

logger = structlog.get_logger()


FEE_RATE_NORMAL_MULTIPLIER = 110
FEE_RATE_FAST_MULTIPLIER = 200


class WalletManagerTronGasfree:
    """
    Derives gas-free accounts from a seed and shares the HTTP clients
    between them.

    Example:
        manager = WalletManagerTronGasfree(seed_phrase, GasFreeWalletConfig.from_env())
        account = await manager.get_account(0)
        ...
        manager.dispose()
        await manager.aclose()
    """

    def __init__(self, seed: Union[str, bytes], config: GasFreeWalletConfig):
        self._seed: Optional[bytearray] = bytearray(seed_from_mnemonic(seed))
        self.config = config

        self._owns_tron = not isinstance(config.provider, TronClient)
        if isinstance(config.provider, TronClient):
            self.tron: Optional[TronClient] = config.provider
        elif config.provider:
            self.tron = TronClient(config.provider, timeout=config.timeout_seconds)
        else:
            self.tron = None

        self.provider = GasFreeProviderClient(
            config.gas_free_provider,
            config.gas_free_api_key,
            config.gas_free_api_secret,
            timeout=config.timeout_seconds,
        )

        self._accounts: dict[str, WalletAccountTronGasfree] = {}

    def _require_seed(self) -> bytes:
        if self._seed is None:
            raise WalletDisposedError("The wallet manager has been disposed.")
        return bytes(self._seed)

    async def get_account(self, index: int = 0) -> WalletAccountTronGasfree:
        """Account at m/44'/195'/0'/0/{index}."""
        return await self.get_account_by_path(f"0'/0/{index}")

    async def get_account_by_path(self, path: str) -> WalletAccountTronGasfree:
        """Account at m/44'/195'/{path}; accounts are created once per path."""
        seed = self._require_seed()

        if path not in self._accounts:
            self._accounts[path] = WalletAccountTronGasfree(
                seed,
                path,
                self.config,
                provider_client=self.provider,
                tron_client=self.tron,
            )
            logger.debug("gasfree_account_created", path=path)

        return self._accounts[path]

    async def get_fee_rates(self) -> FeeRates:
        """Normal and fast fee rates (in sun) derived from the chain's transaction fee."""
        self._require_seed()
        if self.tron is None:
            raise ConfigurationError("The wallet must be connected to a TRON node provider.")

        fee = await self.tron.get_chain_parameter("getTransactionFee")

        return FeeRates(
            normal=fee * FEE_RATE_NORMAL_MULTIPLIER // 100,
            fast=fee * FEE_RATE_FAST_MULTIPLIER // 100,
        )

    def dispose(self) -> None:
        """Dispose every derived account and erase the seed. Safe to call more than once."""
        for account in self._accounts.values():
            account.dispose()
        self._accounts.clear()

        if self._seed is not None:
            for i in range(len(self._seed)):
                self._seed[i] = 0
            self._seed = None
            logger.debug("gasfree_manager_disposed")

    async def aclose(self) -> None:
        """Close the shared HTTP clients."""
        await self.provider.aclose()
        if self.tron is not None and self._owns_tron:
            await self.tron.aclose()
