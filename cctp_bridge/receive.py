"""Circle CCTP message receiving.

Complete a transfer by relaying the message and its attestation to
the destination chain's MessageTransmitter, which mints USDC to the recipient.

Example::

    from cctp_bridge.receive import prepare_receive_message

    receive_fn = prepare_receive_message(
        web3_destination,
        destination_chain,
        message=message,
        attestation=attestation,
    )
    tx_hash = hot_wallet.transact_and_broadcast_with_contract(receive_fn)
"""

import logging

from web3 import Web3
from web3.contract.contract import ContractFunction

from cctp_bridge.chains import ChainConfig
from cctp_bridge.transfer import get_message_transmitter

logger = logging.getLogger(__name__)


def prepare_receive_message(
    web3: Web3,
    chain: ChainConfig,
    message: bytes,
    attestation: bytes,
) -> ContractFunction:
    """Build a bound ``receiveMessage()`` call on MessageTransmitter.

    Anyone can relay the message unless ``destinationCaller`` was set in the burn.

    :param web3:
        Web3 connection to the **destination** chain

    :param chain:
        Destination chain

    :param message:
        Message bytes emitted in ``MessageSent`` on the source chain

    :param attestation:
        The signed attestation bytes from the attestation service
    """
    message_transmitter = get_message_transmitter(web3, chain)

    logger.info(
        "Preparing CCTP receiveMessage on %s: message_len=%d, attestation_len=%d",
        chain.name,
        len(message),
        len(attestation),
    )

    return message_transmitter.functions.receiveMessage(
        message,
        attestation,
    )
