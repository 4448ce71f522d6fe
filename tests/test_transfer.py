"""Burn and mint calldata, built without a node."""

import pytest
from web3 import Web3

from cctp_bridge.chains import resolve_chain
from cctp_bridge.constants import MESSAGE_TRANSMITTER_TESTNET, TOKEN_MESSENGER_TESTNET, USDC_BASE_SEPOLIA
from cctp_bridge.errors import InvalidRecipient
from cctp_bridge.receive import prepare_receive_message
from cctp_bridge.transfer import encode_mint_recipient, prepare_approve_for_burn, prepare_deposit_for_burn
from tests.fakes import RECIPIENT


@pytest.fixture(scope="module")
def web3() -> Web3:
    """Web3 without a provider, enough to encode calls."""
    return Web3()


def test_encode_mint_recipient():
    encoded = encode_mint_recipient("0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0")
    assert len(encoded) == 32
    assert encoded[0:12] == b"\x00" * 12
    assert encoded[12:] == bytes.fromhex("742d35cc6634c0532925a3b844bc9e7595f0beb0")


def test_encode_short_mint_recipient():
    """Hex shorter than an address is left-padded."""
    encoded = encode_mint_recipient(RECIPIENT)
    assert len(encoded) == 32
    assert encoded.hex() == "0" * 25 + RECIPIENT[2:].lower()


@pytest.mark.parametrize("address", ["", "0x", "742d35cc6634c0532925a3b844bc9e7595f0beb0", "0x" + "f" * 41, "0xZZ", "0x" + "0" * 40])
def test_encode_invalid_mint_recipient(address):
    with pytest.raises(InvalidRecipient):
        encode_mint_recipient(address)


def test_prepare_approve_for_burn(web3):
    chain = resolve_chain("base-sepolia")
    fn = prepare_approve_for_burn(web3, chain, 10_000_000)
    assert fn.fn_name == "approve"
    assert fn.address == USDC_BASE_SEPOLIA
    assert tuple(fn.args) == (TOKEN_MESSENGER_TESTNET, 10_000_000)


def test_prepare_deposit_for_burn(web3):
    source = resolve_chain("base-sepolia")
    destination = resolve_chain("eth-sepolia")

    fn = prepare_deposit_for_burn(web3, source, 10_000_000, destination.domain, RECIPIENT)

    assert fn.fn_name == "depositForBurn"
    assert fn.address == TOKEN_MESSENGER_TESTNET
    amount, destination_domain, mint_recipient, burn_token = fn.args
    assert amount == 10_000_000
    assert destination_domain == 0
    assert mint_recipient == encode_mint_recipient(RECIPIENT)
    assert burn_token == USDC_BASE_SEPOLIA


def test_prepare_receive_message(web3):
    chain = resolve_chain("eth-sepolia")
    message = b"\x01" * 248
    attestation = b"\x02" * 65

    fn = prepare_receive_message(web3, chain, message, attestation)

    assert fn.fn_name == "receiveMessage"
    assert fn.address == MESSAGE_TRANSMITTER_TESTNET
    assert tuple(fn.args) == (message, attestation)
