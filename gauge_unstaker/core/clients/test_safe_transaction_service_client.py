import json

import httpx
import pytest

import gauge_unstaker.core.config as config
from gauge_unstaker.core.clients.SafeTransactionServiceClient import (
    SafeTransactionServiceClient,
)

SAFE = "0xb81D12E9D9f9cB044046b6d5830DA536e3205049"


def test_base_url_falls_back_to_known_chain(restore_global_config):
    config.set_config({})
    client = SafeTransactionServiceClient()
    assert client.base_url == "https://safe-transaction-optimism.safe.global"


def test_base_url_from_config(restore_global_config):
    config.set_config({"safe": {"tx_service_url": "https://safe.example/"}})
    assert SafeTransactionServiceClient().base_url == "https://safe.example"


def test_unknown_chain_without_url_raises(restore_global_config):
    config.set_config({})
    with pytest.raises(ValueError, match="No Safe transaction service"):
        SafeTransactionServiceClient(chain_id=424242)


@pytest.mark.asyncio
async def test_propose_posts_to_multisig_transactions():
    seen: dict = {}

    async def _handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(201)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as http:
        client = SafeTransactionServiceClient(base_url="https://safe.example", client=http)
        await client.propose_transaction(SAFE.lower(), {"nonce": 3})

    assert seen["method"] == "POST"
    assert seen["url"] == f"https://safe.example/api/v1/safes/{SAFE}/multisig-transactions/"
    assert seen["body"] == {"nonce": 3}


@pytest.mark.asyncio
async def test_rejected_proposal_raises_status_error():
    async def _handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"nonFieldErrors": ["Signer is not an owner"]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as http:
        client = SafeTransactionServiceClient(base_url="https://safe.example", client=http)
        with pytest.raises(httpx.HTTPStatusError):
            await client.propose_transaction(SAFE, {})


@pytest.mark.asyncio
async def test_get_safe_info():
    async def _handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/api/v1/safes/{SAFE}/"
        return httpx.Response(200, json={"address": SAFE, "threshold": 2, "nonce": 7})

    async with httpx.AsyncClient(transport=httpx.MockTransport(_handler)) as http:
        client = SafeTransactionServiceClient(base_url="https://safe.example", client=http)
        info = await client.get_safe_info(SAFE)

    assert info["threshold"] == 2
