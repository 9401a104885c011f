"""
TRON full node HTTP API client.

Covers the chain queries the gas-free wallet delegates to the network:
balances, TRC-20 balances, transaction info and chain parameters.
"""

from typing import Any, Optional

from eth_abi import encode
import httpx
import structlog

from .address import address_to_bytes20, to_base58_address
from .errors import TronGasfreeError

logger = structlog.get_logger()


class TronRPCError(TronGasfreeError):
    """Error reported by the TRON node."""

    def __init__(self, method: str, message: str):
        self.method = method
        self.message = message
        super().__init__(f"TRON node error ({method}): {message}")


class TronClient:
    """
    Async client for the TRON full node HTTP API (/wallet/*).

    Example:
        client = TronClient("https://nile.trongrid.io")
        balance = await client.get_balance("T...")
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["TRON-PRO-API-KEY"] = api_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def _call(self, method: str, payload: Optional[dict[str, Any]] = None) -> Any:
        """POST to a /wallet endpoint and return the decoded body."""
        url = f"{self.base_url}/wallet/{method}"
        logger.debug("tron_request", method=method)
        response = await self.client.post(url, json=payload or {}, headers=self._headers)
        response.raise_for_status()
        result = response.json()

        if isinstance(result, dict) and result.get("Error"):
            raise TronRPCError(method, str(result["Error"]))

        return result

    async def get_balance(self, address: str) -> int:
        """Get the TRX balance of an address (in sun)."""
        account = await self._call(
            "getaccount",
            {"address": to_base58_address(address), "visible": True},
        )
        return int(account.get("balance", 0))

    async def get_token_balance(self, address: str, token: str) -> int:
        """Get the TRC-20 balance of an address (in the token's base unit)."""
        parameter = encode(["address"], [address_to_bytes20(address)]).hex()

        result = await self._call(
            "triggerconstantcontract",
            {
                "owner_address": to_base58_address(address),
                "contract_address": to_base58_address(token),
                "function_selector": "balanceOf(address)",
                "parameter": parameter,
                "visible": True,
            },
        )

        status = result.get("result", {})
        if not status.get("result", False):
            raise TronRPCError("triggerconstantcontract", str(status.get("message", "call failed")))

        constant_result = result.get("constant_result") or []
        if not constant_result or not constant_result[0]:
            return 0
        return int(constant_result[0], 16)

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        """
        Get the info (receipt) of a transaction.

        Returns:
            The transaction info, or None if it is not in a block yet
        """
        tx_id = tx_hash[2:] if tx_hash.startswith("0x") else tx_hash
        info = await self._call("gettransactioninfobyid", {"value": tx_id})
        return info or None

    async def get_chain_parameters(self) -> list[dict[str, Any]]:
        """Get the network's chain parameters."""
        result = await self._call("getchainparameters")
        return result.get("chainParameter", [])

    async def get_chain_parameter(self, key: str) -> int:
        """Get a single chain parameter value."""
        for param in await self.get_chain_parameters():
            if param.get("key") == key:
                return int(param.get("value", 0))
        raise TronRPCError("getchainparameters", f"Chain parameter {key} not found")

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
