"""CCTP V1 test helpers.

Build CCTP messages and burn receipts without a chain, so the bridge
can be tested against fake chain connections.

Example::

    from cctp_bridge.testing import craft_cctp_message, craft_burn_receipt

    message = craft_cctp_message(
        source_domain=6,  # Base
        destination_domain=0,  # Ethereum
        nonce=1,
        mint_recipient="0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
        amount=10 * 10**6,  # 10 USDC
        burn_token=USDC_BASE_SEPOLIA,
    )
    receipt = craft_burn_receipt(message, MESSAGE_TRANSMITTER_TESTNET)
"""

import struct

from eth_abi import encode
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

from cctp_bridge.constants import TOKEN_MESSENGER_TESTNET
from cctp_bridge.message import MESSAGE_HEADER_LENGTH, MESSAGE_SENT_TOPIC
from cctp_bridge.transfer import encode_mint_recipient

#: CCTP V1 message version
CCTP_MESSAGE_VERSION = 0

#: Burn message body version
BURN_MESSAGE_VERSION = 0

#: Header plus burn message body
BURN_MESSAGE_LENGTH = MESSAGE_HEADER_LENGTH + 132


def craft_cctp_message(
    source_domain: int,
    destination_domain: int,
    nonce: int,
    mint_recipient: HexAddress | str,
    amount: int,
    burn_token: HexAddress | str,
    message_sender: HexAddress | str = TOKEN_MESSENGER_TESTNET,
) -> bytes:
    """Craft a CCTP V1 burn message as the MessageTransmitter emits it.

    Burn message body (132 bytes):

    - ``uint32 version``
    - ``bytes32 burnToken``
    - ``bytes32 mintRecipient``
    - ``uint256 amount``
    - ``bytes32 messageSender``

    :param burn_token:
        USDC address on the **source** chain

    :return:
        Packed message bytes (248 bytes)
    """
    token_messenger_bytes32 = encode_mint_recipient(TOKEN_MESSENGER_TESTNET)

    body = struct.pack(">I", BURN_MESSAGE_VERSION)
    body += encode_mint_recipient(burn_token)
    body += encode_mint_recipient(mint_recipient)
    body += amount.to_bytes(32, byteorder="big")
    body += encode_mint_recipient(message_sender)

    header = struct.pack(">IIIQ", CCTP_MESSAGE_VERSION, source_domain, destination_domain, nonce)
    header += token_messenger_bytes32  # sender
    header += token_messenger_bytes32  # recipient
    header += b"\x00" * 32  # destinationCaller, anyone can relay

    message = header + body
    assert len(message) == BURN_MESSAGE_LENGTH, f"Expected {BURN_MESSAGE_LENGTH} bytes, got {len(message)}"
    return message


def craft_message_sent_log(message: bytes, message_transmitter: HexAddress | str) -> dict:
    """Create a ``MessageSent`` log entry as found in a receipt."""
    return {
        "address": Web3.to_checksum_address(message_transmitter),
        "topics": [MESSAGE_SENT_TOPIC],
        "data": HexBytes(encode(["bytes"], [message])),
    }


def craft_burn_receipt(
    message: bytes,
    message_transmitter: HexAddress | str,
    tx_hash: bytes = b"\xbb" * 32,
    extra_logs: list[dict] | None = None,
) -> dict:
    """Create a successful ``depositForBurn()`` receipt carrying ``message``.

    :param extra_logs:
        Logs placed before ``MessageSent``, like the USDC burn ``Transfer``
    """
    logs = list(extra_logs or [])
    logs.append(craft_message_sent_log(message, message_transmitter))
    return {
        "transactionHash": HexBytes(tx_hash),
        "status": 1,
        "blockNumber": 1,
        "logs": logs,
    }


def forge_attestation(message: bytes, attester: LocalAccount) -> bytes:
    """Sign a CCTP message with a test attester.

    :return:
        65-byte ``r + s + v`` signature over ``keccak256(message)``
    """
    signed = attester.unsafe_sign_hash(Web3.keccak(message))
    attestation = signed.r.to_bytes(32, byteorder="big") + signed.s.to_bytes(32, byteorder="big") + signed.v.to_bytes(1, byteorder="big")
    assert len(attestation) == 65, f"Expected 65 bytes, got {len(attestation)}"
    return attestation
