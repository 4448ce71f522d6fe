"""Local signing of bridge transactions.

- Create a wallet from the ``PRIVATE_KEY`` hex string
- Sign contract calls with a locally managed nonce and broadcast them

One :py:class:`HotWallet` instance is created per chain connection,
as nonces are tracked per chain.
"""

import logging
from pprint import pformat
from typing import NamedTuple, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.contract.contract import ContractFunction

from cctp_bridge.gas import apply_gas, estimate_gas_price

logger = logging.getLogger(__name__)


class SignedTransactionWithNonce(NamedTuple):
    """A signed transaction with the nonce and source data used to create it.

    Retains more information about the transaction source,
    to allow us to diagnose broadcasting failures better.
    """

    #: Bytes for ``eth_sendRawTransaction``
    raw_transaction: HexBytes

    #: Transaction hash
    hash: HexBytes

    #: Nonce allocated from the wallet
    nonce: int

    #: Unsigned transaction data
    source: dict

    #: Signer
    address: HexAddress

    def __repr__(self):
        return f"<SignedTransactionWithNonce hash:{Web3.to_hex(self.hash)} nonce:{self.nonce} from:{self.address}>"


class HotWallet:
    """Hot wallet for signing transactions.

    - Keeps a plain text private key in the process memory
      using :py:class:`eth_account.signers.local.LocalAccount` and a nonce counter.

    - Call :py:meth:`sync_nonce` before signing anything

    Example:

    .. code-block:: python

        wallet = HotWallet.from_private_key(os.environ["PRIVATE_KEY"])
        wallet.sync_nonce(web3)
        tx_hash = wallet.transact_and_broadcast_with_contract(usdc.functions.approve(spender, amount))

    .. note ::

        This class is not thread safe.
    """

    def __init__(self, account: LocalAccount):
        """Create a hot wallet from a local account."""
        self.account = account
        self.current_nonce: Optional[int] = None

    def __repr__(self):
        return f"<Hot wallet {self.account.address}>"

    @property
    def address(self) -> HexAddress:
        """Ethereum address of the wallet."""
        return self.account.address

    def sync_nonce(self, web3: Web3):
        """Initialise the current nonce from the on-chain data."""
        new_nonce = web3.eth.get_transaction_count(self.account.address)
        if self.current_nonce and new_nonce < self.current_nonce:
            logger.warning("Nonce sync failed, read onchain nonce %d that is older than our current nonce %d", new_nonce, self.current_nonce)
            return
        self.current_nonce = new_nonce
        logger.info("Synced nonce for %s to %d", self.account.address, self.current_nonce)

    def allocate_nonce(self) -> int:
        """Get the next free available nonce to be used with a transaction."""
        assert self.current_nonce is not None, f"Nonce is not yet synced from the blockchain: {self}"
        nonce = self.current_nonce
        self.current_nonce += 1
        return nonce

    def sign_transaction_with_new_nonce(self, tx: dict) -> SignedTransactionWithNonce:
        """Signs a transaction and allocates a nonce for it.

        :param tx:
            Ethereum transaction data as a dict.
            This is modified in-place to include nonce.
        """
        assert type(tx) == dict
        assert "nonce" not in tx
        tx["nonce"] = self.allocate_nonce()
        _signed = self.account.sign_transaction(tx)
        return SignedTransactionWithNonce(
            raw_transaction=HexBytes(_signed.raw_transaction),
            hash=HexBytes(_signed.hash),
            nonce=tx["nonce"],
            source=tx,
            address=self.address,
        )

    def transact_and_broadcast_with_contract(
        self,
        func: ContractFunction,
        gas_limit: int | None = None,
    ) -> HexBytes:
        """Build, sign and broadcast a bound contract call.

        - Gas limit is estimated by the node unless given
        - Gas price is filled with :py:func:`cctp_bridge.gas.estimate_gas_price`

        :return:
            Transaction hash
        """
        assert isinstance(func, ContractFunction), f"Got: {type(func)}"
        assert func.args is not None, f"Unbound contract function? {func}"
        web3 = func.w3

        tx_params = {"from": self.address}
        if gas_limit is not None:
            tx_params["gas"] = gas_limit

        tx_data = func.build_transaction(tx_params)
        apply_gas(tx_data, estimate_gas_price(web3))

        try:
            signed_tx = self.sign_transaction_with_new_nonce(tx_data)
        except Exception as e:
            # Probably mismatch between network expected gas parameter format and what we give
            raise RuntimeError(f"Could not sign:\n{pformat(tx_data)}") from e

        logger.info("Broadcasting %s.%s() nonce %d: %s", func.address, func.fn_name, signed_tx.nonce, Web3.to_hex(signed_tx.hash))
        return web3.eth.send_raw_transaction(signed_tx.raw_transaction)

    @staticmethod
    def from_private_key(key: str) -> "HotWallet":
        """Create a hot wallet from a private key that is passed in as a hex string.

        :param key: 0x prefixed hex string
        :return: Ready to go hot wallet account
        """
        assert type(key) == str, f"Expected private key as string, got {type(key)}"
        assert key.startswith("0x"), f"This system assumes private keys are prefixed with 0x. Please add 0x prefix to your private key hex string"
        account = Account.from_key(key)
        return HotWallet(account)
