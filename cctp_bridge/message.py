"""CCTP V1 message extraction and decoding.

``depositForBurn()`` makes the source chain MessageTransmitter emit
``MessageSent(bytes message)``. The message bytes are relayed to the destination chain
as-is, and the attestation service indexes them by ``keccak256(message)``.

Message header layout (116 bytes, ``abi.encodePacked``):

- ``uint32 version``
- ``uint32 sourceDomain``
- ``uint32 destinationDomain``
- ``uint64 nonce``
- ``bytes32 sender``
- ``bytes32 recipient``
- ``bytes32 destinationCaller``

followed by the message body. For USDC transfers the body is a burn message.
"""

import struct
from dataclasses import dataclass

from eth_abi import decode
from hexbytes import HexBytes
from web3 import Web3
from web3.types import TxReceipt

#: Length of the fixed part of a CCTP V1 message
MESSAGE_HEADER_LENGTH = 116

#: ``MessageSent(bytes)`` event topic
MESSAGE_SENT_TOPIC = Web3.keccak(text="MessageSent(bytes)")

_HEADER_PREFIX = struct.Struct(">IIIQ")


@dataclass(slots=True, frozen=True)
class CCTPMessageHeader:
    """Decoded CCTP V1 message header."""

    version: int
    source_domain: int
    destination_domain: int
    nonce: int

    #: TokenMessenger on the source chain, as bytes32
    sender: bytes

    #: TokenMessenger on the destination chain, as bytes32
    recipient: bytes

    #: bytes32 zero if anyone can relay
    destination_caller: bytes

    body: bytes


def extract_message_sent(receipt: TxReceipt, message_transmitter: str) -> bytes:
    """Find the CCTP message in a burn transaction receipt.

    :param receipt:
        Receipt of a confirmed ``depositForBurn()`` transaction

    :param message_transmitter:
        MessageTransmitter address on the source chain.
        Logs from other contracts are ignored.

    :raise ValueError:
        The receipt has no ``MessageSent`` event from the transmitter
    """
    transmitter = message_transmitter.lower()
    for log in receipt["logs"]:
        topics = log["topics"]
        if not topics or HexBytes(topics[0]) != MESSAGE_SENT_TOPIC:
            continue
        if log["address"].lower() != transmitter:
            continue
        (message,) = decode(["bytes"], HexBytes(log["data"]))
        return message

    raise ValueError(f"No MessageSent event from {message_transmitter} in {len(receipt['logs'])} logs")


def get_message_hash(message: bytes) -> HexBytes:
    """Attestation lookup key of a message."""
    return Web3.keccak(message)


def decode_message_header(message: bytes) -> CCTPMessageHeader:
    """Split a CCTP V1 message into its header fields and body.

    :raise ValueError:
        Message is shorter than the header
    """
    if len(message) < MESSAGE_HEADER_LENGTH:
        raise ValueError(f"CCTP message too short: {len(message)} bytes, header needs {MESSAGE_HEADER_LENGTH}")

    version, source_domain, destination_domain, nonce = _HEADER_PREFIX.unpack_from(message, 0)
    offset = _HEADER_PREFIX.size
    sender = message[offset : offset + 32]
    recipient = message[offset + 32 : offset + 64]
    destination_caller = message[offset + 64 : offset + 96]

    return CCTPMessageHeader(
        version=version,
        source_domain=source_domain,
        destination_domain=destination_domain,
        nonce=nonce,
        sender=bytes(sender),
        recipient=bytes(recipient),
        destination_caller=bytes(destination_caller),
        body=bytes(message[MESSAGE_HEADER_LENGTH:]),
    )
