"""Circle CCTP cross-chain USDC burns.

Build the source chain side of a transfer: USDC ``approve()`` and
TokenMessenger ``depositForBurn()``.

Example:

.. code-block:: python

    from cctp_bridge.chains import resolve_chain
    from cctp_bridge.transfer import prepare_approve_for_burn, prepare_deposit_for_burn

    source = resolve_chain("base-sepolia")
    destination = resolve_chain("eth-sepolia")

    approve_fn = prepare_approve_for_burn(web3, source, amount=1_000_000)  # 1 USDC
    burn_fn = prepare_deposit_for_burn(
        web3,
        source,
        amount=1_000_000,
        destination_domain=destination.domain,
        mint_recipient="0x...",
    )

The functions return bound contract calls that are signed and broadcast
with :py:class:`cctp_bridge.hotwallet.HotWallet`.
"""

import logging
import re

from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractFunction

from cctp_bridge.abi import get_deployed_contract
from cctp_bridge.chains import ChainConfig
from cctp_bridge.errors import InvalidRecipient
from cctp_bridge.token import get_usdc_contract

logger = logging.getLogger(__name__)

#: 0x followed by up to 40 hex digits
RECIPIENT_PATTERN = re.compile(r"0x[0-9a-fA-F]{1,40}")

ZERO_BYTES32 = b"\x00" * 32


def get_token_messenger(web3: Web3, chain: ChainConfig) -> Contract:
    """Load the TokenMessenger contract of a chain."""
    return get_deployed_contract(web3, "cctp/TokenMessenger.json", chain.token_messenger)


def get_message_transmitter(web3: Web3, chain: ChainConfig) -> Contract:
    """Load the MessageTransmitter contract of a chain."""
    return get_deployed_contract(web3, "cctp/MessageTransmitter.json", chain.message_transmitter)


def encode_mint_recipient(address: HexAddress | str) -> bytes:
    """Convert an Ethereum address to bytes32 format for the ``mintRecipient`` parameter.

    CCTP uses bytes32 for recipient addresses to support non-EVM chains.
    For EVM chains, the address is left-padded with zeros to 32 bytes.

    Hex strings shorter than 20 bytes are accepted and padded as well.
    The EIP-55 checksum is not verified.

    :param address:
        Ethereum address (0x-prefixed hex string)

    :return:
        32-byte representation of the address

    :raise InvalidRecipient:
        Not a 0x-prefixed hex string of at most 20 bytes, or the zero address
    """
    if not isinstance(address, str) or not RECIPIENT_PATTERN.fullmatch(address):
        raise InvalidRecipient(f"Not an EVM address: {address!r}")

    encoded = bytes.fromhex(address[2:].lower().zfill(64))
    if encoded == ZERO_BYTES32:
        raise InvalidRecipient("Cannot mint to the zero address")

    if len(address) != 42:
        logger.warning("Recipient %s is shorter than 20 bytes, it is left-padded with zeros", address)

    return encoded


def prepare_approve_for_burn(
    web3: Web3,
    chain: ChainConfig,
    amount: int,
) -> ContractFunction:
    """Build a USDC ``approve()`` call letting TokenMessenger burn ``amount``.

    Must be confirmed before :func:`prepare_deposit_for_burn` is broadcast,
    as the burn gas estimation fails without the allowance.

    :param amount:
        Amount of USDC to approve in raw token units (6 decimals)
    """
    usdc = get_usdc_contract(web3, chain.usdc)
    return usdc.functions.approve(
        Web3.to_checksum_address(chain.token_messenger),
        amount,
    )


def prepare_deposit_for_burn(
    web3: Web3,
    chain: ChainConfig,
    amount: int,
    destination_domain: int,
    mint_recipient: HexAddress | str,
) -> ContractFunction:
    """Build a bound ``depositForBurn()`` call on TokenMessenger.

    Burns the source chain native USDC, to be minted to ``mint_recipient``
    on the chain identified by ``destination_domain``.

    :param chain:
        Source chain

    :param amount:
        Amount of USDC to transfer in raw token units (6 decimals).
        E.g. 1_000_000 for 1 USDC.

    :param destination_domain:
        CCTP domain id of the destination chain

    :param mint_recipient:
        Address to receive USDC on the destination chain.

    :return:
        Bound contract function ready to be transacted
    """
    token_messenger = get_token_messenger(web3, chain)

    logger.info(
        "Preparing CCTP depositForBurn on %s: amount=%s, destination_domain=%s, recipient=%s",
        chain.name,
        amount,
        destination_domain,
        mint_recipient,
    )

    return token_messenger.functions.depositForBurn(
        amount,
        destination_domain,
        encode_mint_recipient(mint_recipient),
        Web3.to_checksum_address(chain.usdc),
    )
