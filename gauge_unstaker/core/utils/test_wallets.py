import pytest
from eth_account import Account
from eth_utils import keccak

from gauge_unstaker.core.utils.wallets import make_local_signer

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


def test_signer_address_matches_key():
    signer = make_local_signer(PRIVATE_KEY)
    assert signer.address == Account.from_key(PRIVATE_KEY).address


@pytest.mark.asyncio
async def test_sign_hash_recovers_to_owner():
    signer = make_local_signer(PRIVATE_KEY)
    message_hash = keccak(b"safe tx")

    signature = await signer.sign_hash(message_hash)

    assert len(signature) == 65
    assert signature[-1] in (27, 28)
    recovered = Account._recover_hash(message_hash, signature=signature)
    assert recovered == signer.address


@pytest.mark.asyncio
async def test_sign_transaction_returns_raw_bytes():
    signer = make_local_signer(PRIVATE_KEY)
    raw = await signer.sign_transaction(
        {
            "chainId": 10,
            "nonce": 0,
            "to": signer.address,
            "value": 0,
            "data": "0x",
            "gas": 21_000,
            "maxFeePerGas": 1_000_000,
            "maxPriorityFeePerGas": 1_000,
        }
    )
    assert isinstance(raw, bytes)
    assert raw[0] == 2  # EIP-1559 envelope
