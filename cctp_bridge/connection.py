"""Per-chain contract call site for the bridge.

:py:class:`ChainConnection` pairs a Web3 connection with a :py:class:`cctp_bridge.hotwallet.HotWallet`
and performs the reads and transactions the bridge needs. Every web3.py, JSON-RPC and HTTP
error raised here is converted to :py:class:`cctp_bridge.errors.TransactionFailure`
or :py:class:`cctp_bridge.errors.ChainConnectionError`.

The bridge orchestrator only talks to chains through this class, so tests can
substitute it with a fake.
"""

import logging
from typing import Callable

import requests
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction
from web3.exceptions import Web3Exception
from web3.types import TxReceipt

from cctp_bridge.chains import ChainConfig
from cctp_bridge.confirmation import wait_transaction_success
from cctp_bridge.constants import DEFAULT_CONFIRMATION_TIMEOUT
from cctp_bridge.errors import ChainConnectionError, TransactionFailure
from cctp_bridge.hotwallet import HotWallet
from cctp_bridge.provider import create_chain_web3
from cctp_bridge.receive import prepare_receive_message
from cctp_bridge.token import fetch_raw_balance_of
from cctp_bridge.transfer import prepare_approve_for_burn, prepare_deposit_for_burn

logger = logging.getLogger(__name__)

#: Errors from web3.py, the node or the HTTP transport.
#:
#: web3.py 6 reports JSON-RPC errors as ``ValueError``.
RPC_ERRORS = (Web3Exception, ValueError, requests.RequestException)


class ChainConnection:
    """Bridge operations on one chain, signed by one wallet."""

    def __init__(
        self,
        chain: ChainConfig,
        web3: Web3,
        hot_wallet: HotWallet,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
    ):
        self.chain = chain
        self.web3 = web3
        self.hot_wallet = hot_wallet
        self.confirmation_timeout = confirmation_timeout

    def __repr__(self):
        return f"<ChainConnection {self.chain.slug} {self.hot_wallet.address}>"

    @property
    def address(self) -> HexAddress:
        """Sender address."""
        return self.hot_wallet.address

    def fetch_usdc_balance(self) -> int:
        """USDC balance of the sender in raw units."""
        try:
            return fetch_raw_balance_of(self.web3, self.chain.usdc, self.address)
        except RPC_ERRORS as e:
            raise ChainConnectionError(f"Could not read USDC balance of {self.address} on {self.chain.name}: {e}") from e

    def approve_for_burn(self, amount: int) -> TxReceipt:
        """Approve TokenMessenger to burn ``amount`` and wait for confirmation."""
        func = prepare_approve_for_burn(self.web3, self.chain, amount)
        tx_hash = self.broadcast(func, "USDC approve")
        return self.wait_success(tx_hash, "USDC approve")

    def deposit_for_burn(self, amount: int, destination_domain: int, mint_recipient: HexAddress | str) -> TxReceipt:
        """Burn USDC for the destination domain and wait for confirmation."""
        func = prepare_deposit_for_burn(self.web3, self.chain, amount, destination_domain, mint_recipient)
        tx_hash = self.broadcast(func, "depositForBurn")
        return self.wait_success(tx_hash, "depositForBurn")

    def receive_message(self, message: bytes, attestation: bytes) -> HexBytes:
        """Relay a message to mint USDC.

        Does not wait for confirmation.

        :return:
            Transaction hash
        """
        func = prepare_receive_message(self.web3, self.chain, message, attestation)
        return self.broadcast(func, "receiveMessage")

    def broadcast(self, func: ContractFunction, description: str) -> HexBytes:
        """Sign and send a contract call.

        :raise TransactionFailure:
            Gas estimation reverted or the node rejected the transaction
        """
        try:
            return self.hot_wallet.transact_and_broadcast_with_contract(func)
        except RPC_ERRORS as e:
            raise TransactionFailure(f"{description} on {self.chain.name} rejected: {e}") from e

    def wait_success(self, tx_hash: HexBytes, description: str) -> TxReceipt:
        """Wait for a transaction receipt.

        :raise TransactionFailure:
            Transaction reverted, timed out or the node failed
        """
        try:
            return wait_transaction_success(self.web3, tx_hash, f"{description} on {self.chain.name}", timeout=self.confirmation_timeout)
        except RPC_ERRORS as e:
            raise TransactionFailure(f"{description} on {self.chain.name} could not be confirmed: {e}", tx_hash=tx_hash) from e


#: ``(chain, private_key) -> ChainConnection``
ConnectionFactory = Callable[[ChainConfig, str], ChainConnection]


def create_chain_connection(
    chain: ChainConfig,
    private_key: str,
    json_rpc_url: str | None = None,
    confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
) -> ChainConnection:
    """Connect to a chain and prepare the wallet for signing.

    - Checks the node serves the expected chain id
    - Syncs the wallet nonce

    :raise ChainConnectionError:
        The node could not be reached or is on a different chain
    """
    web3 = create_chain_web3(chain, json_rpc_url)
    hot_wallet = HotWallet.from_private_key(private_key)

    try:
        chain_id = web3.eth.chain_id
        if chain_id != chain.chain_id:
            raise ChainConnectionError(f"JSON-RPC for {chain.name} is on chain {chain_id}, expected {chain.chain_id}")
        hot_wallet.sync_nonce(web3)
    except RPC_ERRORS as e:
        raise ChainConnectionError(f"Could not connect to {chain.name}: {e}") from e

    return ChainConnection(chain, web3, hot_wallet, confirmation_timeout=confirmation_timeout)
