import json

from eth_abi import encode
import httpx
import pytest

from tron_gasfree.address import address_to_bytes20
from tron_gasfree.tron import TronClient, TronRPCError


USDT_NILE = "TXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf"
OWNER = "TKtWbdzEq5ss9vTS9kwRhBp5mXmBfBns3E"


def _client(handler) -> TronClient:  # type: ignore[no-untyped-def]
    return TronClient("https://tron.test", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_get_token_balance() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/wallet/triggerconstantcontract"
        assert body["function_selector"] == "balanceOf(address)"
        assert body["parameter"] == encode(["address"], [address_to_bytes20(OWNER)]).hex()
        return httpx.Response(200, json={"result": {"result": True}, "constant_result": [f"{1234:064x}"]})

    assert await _client(handler).get_token_balance(OWNER, USDT_NILE) == 1234


@pytest.mark.asyncio
async def test_receipt_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content) == {"value": "ab" * 32}
        return httpx.Response(200, json={})

    assert await _client(handler).get_transaction_receipt("0x" + "ab" * 32) is None


@pytest.mark.asyncio
async def test_node_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"Error": "class org.tron.core.exception.BadItemException"})

    with pytest.raises(TronRPCError):
        await _client(handler).get_balance(OWNER)


@pytest.mark.asyncio
async def test_missing_chain_parameter() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"chainParameter": []})

    with pytest.raises(TronRPCError):
        await _client(handler).get_chain_parameter("getTransactionFee")
