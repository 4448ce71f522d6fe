"""Transaction confirmation.

Wait for a broadcast transaction to be mined and raise
:py:class:`cctp_bridge.errors.TransactionFailure` with the best revert reason
we can find if it did not succeed.
"""

import logging

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.types import TxReceipt

from cctp_bridge.constants import DEFAULT_CONFIRMATION_TIMEOUT
from cctp_bridge.errors import TransactionFailure

logger = logging.getLogger(__name__)


def fetch_transaction_revert_reason(
    web3: Web3,
    tx_hash: HexBytes,
    unknown_error_message="<could not extract the revert reason>",
) -> str:
    """Gets a transaction revert reason.

    Ethereum nodes do not store the transaction failure reason, so we replay
    the transaction against the current state. No archive node is needed,
    but the revert reason might be wrong if the state has moved on.

    :return:
        The revert reason or the placeholder message if we could not extract it
    """
    tx = web3.eth.get_transaction(tx_hash)

    replay_tx = {
        "to": tx["to"],
        "from": tx["from"],
        "value": tx["value"],
        "data": tx["input"],
        "gas": tx["gas"],
    }

    try:
        web3.eth.call(replay_tx)
    except ContractLogicError as e:
        return e.args[0]
    except (Web3Exception, ValueError) as e:
        logger.debug("Revert reason replay for %s failed: %s", Web3.to_hex(tx_hash), e)
        return str(e)

    logger.warning("Transaction %s reverted, but replaying it succeeded", Web3.to_hex(tx_hash))
    return unknown_error_message


def wait_transaction_success(
    web3: Web3,
    tx_hash: HexBytes,
    description: str = "Transaction",
    timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
) -> TxReceipt:
    """Wait until a transaction is included in a block and check it succeeded.

    :param description:
        Human-readable name for error messages, like ``USDC approve``

    :param timeout:
        Seconds to wait for the receipt

    :raise TransactionFailure:
        Receipt did not appear in time or the transaction reverted

    :return:
        Transaction receipt
    """
    try:
        receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    except TimeExhausted as e:
        raise TransactionFailure(f"{description} {Web3.to_hex(tx_hash)} not confirmed after {timeout}s", tx_hash=tx_hash) from e

    if receipt["status"] == 0:
        revert_reason = fetch_transaction_revert_reason(web3, tx_hash)
        raise TransactionFailure(
            f"{description} {Web3.to_hex(tx_hash)} reverted: {revert_reason}",
            tx_hash=tx_hash,
            revert_reason=revert_reason,
        )

    logger.info("%s confirmed in block %d: %s", description, receipt["blockNumber"], Web3.to_hex(tx_hash))
    return receipt
