"""
Gas-free provider HTTP client.

Every request is authenticated with an API key and an HMAC-SHA256
signature over ``method + path + timestamp``:

    Timestamp: 1700000000
    Authorization: ApiKey <key>:<base64(hmac_sha256(secret, "GET/api/v1/...1700000000"))>

Responses are wrapped in an envelope (``{"code", "data", "reason",
"message"}``); failures raise ``GasFreeProviderError`` and are never
retried here.
"""

import base64
import hashlib
import hmac
import time
from typing import Any, Optional

import httpx
import structlog

from .errors import TronGasfreeError
from .models import (
    GasFreeAccount,
    GasFreeToken,
    GasFreeTransferStatus,
    PermitTransferMessage,
    SubmittedTransfer,
)

logger = structlog.get_logger()


class GasFreeProviderError(TronGasfreeError):
    """Error reported by the gas-free provider."""

    def __init__(self, reason: str, message: str, status_code: Optional[int] = None):
        self.reason = reason
        self.message = message
        self.status_code = status_code
        super().__init__(f"Gas free provider error ({reason}): {message}.")


def sign_request(secret: str, method: str, path: str, timestamp: int) -> str:
    """Base64 HMAC-SHA256 of ``method + path + timestamp``."""
    message = f"{method}{path}{timestamp}"
    mac = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(mac).decode("ascii")


class GasFreeProviderClient:
    """Async client for the gas-free provider REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._api_secret = api_secret
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, method: str, path: str) -> dict[str, str]:
        timestamp = int(time.time())
        signature = sign_request(self._api_secret, method, path, timestamp)
        return {
            "Timestamp": str(timestamp),
            "Authorization": f"ApiKey {self.api_key}:{signature}",
            "Content-Type": "application/json",
        }

    async def request(self, method: str, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        """
        Send an authenticated request and return the envelope's ``data``.

        Raises:
            GasFreeProviderError: On a non-2xx status or an error envelope
        """
        method = method.upper()
        url = f"{self.base_url}{path}"

        logger.debug("gasfree_request", method=method, path=path)

        response = await self.client.request(
            method,
            url,
            headers=self._headers(method, path),
            json=body,
        )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            raise self._error_from(payload, response)

        if not isinstance(payload, dict):
            raise GasFreeProviderError("invalid_response", "Response is not a JSON object", response.status_code)

        code = payload.get("code")
        if code is not None and code != 200:
            raise self._error_from(payload, response)

        return payload.get("data")

    @staticmethod
    def _error_from(payload: Any, response: httpx.Response) -> GasFreeProviderError:
        if isinstance(payload, dict):
            reason = payload.get("reason") or str(payload.get("code") or response.status_code)
            message = payload.get("message") or response.reason_phrase
        else:
            reason = str(response.status_code)
            message = response.text or response.reason_phrase

        logger.warning(
            "gasfree_request_failed",
            status_code=response.status_code,
            reason=reason,
        )

        return GasFreeProviderError(reason, message, response.status_code)

    async def get_account(self, owner_address: str) -> GasFreeAccount:
        """Resolve the gas-free account of an owner address."""
        data = await self.request("GET", f"/api/v1/address/{owner_address}")
        return GasFreeAccount.model_validate(data)

    async def get_tokens(self) -> list[GasFreeToken]:
        """List the tokens supported by the provider."""
        data = await self.request("GET", "/api/v1/config/token/all")
        return [GasFreeToken.model_validate(token) for token in (data or {}).get("tokens", [])]

    async def submit_transfer(self, message: PermitTransferMessage, signature: str) -> SubmittedTransfer:
        """
        Submit a signed PermitTransfer.

        Args:
            message: The signed authorization
            signature: 65-byte hex signature (0x prefix is stripped)
        """
        sig = signature[2:] if signature.startswith("0x") else signature
        data = await self.request(
            "POST",
            "/api/v1/gasfree/submit",
            {**message.to_typed_data(), "sig": sig},
        )
        return SubmittedTransfer.model_validate(data)

    async def get_transfer(self, transfer_id: str) -> GasFreeTransferStatus:
        """Get the status of a submitted transfer."""
        data = await self.request("GET", f"/api/v1/gasfree/{transfer_id}")
        return GasFreeTransferStatus.model_validate(data or {})

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
