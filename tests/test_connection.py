"""Chain connection error handling, transaction confirmation and gas pricing with a mocked node."""

from unittest.mock import Mock

import pytest
import requests
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

import cctp_bridge.connection
from cctp_bridge.chains import resolve_chain
from cctp_bridge.confirmation import wait_transaction_success
from cctp_bridge.connection import ChainConnection, create_chain_connection
from cctp_bridge.errors import ChainConnectionError, TransactionFailure
from cctp_bridge.gas import GasPriceMethod, apply_gas, estimate_gas_price
from cctp_bridge.hotwallet import HotWallet
from tests.fakes import RECIPIENT, TEST_PRIVATE_KEY

TX_HASH = HexBytes(b"\x01" * 32)


@pytest.fixture()
def chain():
    return resolve_chain("base-sepolia")


@pytest.fixture()
def connection(chain) -> ChainConnection:
    hot_wallet = Mock(spec=HotWallet)
    hot_wallet.address = HotWallet.from_private_key(TEST_PRIVATE_KEY).address
    return ChainConnection(chain, Web3(), hot_wallet, confirmation_timeout=5)


def test_balance_rpc_failure(connection, monkeypatch):
    def broken(*args, **kwargs):
        raise requests.ConnectionError("Connection refused")

    monkeypatch.setattr(cctp_bridge.connection, "fetch_raw_balance_of", broken)
    with pytest.raises(ChainConnectionError, match="Could not read USDC balance"):
        connection.fetch_usdc_balance()


def test_broadcast_rejected(connection):
    """Gas estimation revert is reported as a transaction failure."""
    connection.hot_wallet.transact_and_broadcast_with_contract.side_effect = ContractLogicError("execution reverted: ERC20: transfer amount exceeds balance")
    with pytest.raises(TransactionFailure, match="depositForBurn on Base Sepolia rejected"):
        connection.deposit_for_burn(10_000_000, 0, RECIPIENT)


def test_receive_message_does_not_wait(connection, monkeypatch):
    connection.hot_wallet.transact_and_broadcast_with_contract.return_value = TX_HASH
    wait = Mock()
    monkeypatch.setattr(cctp_bridge.connection, "wait_transaction_success", wait)

    assert connection.receive_message(b"\x01" * 248, b"\x02" * 65) == TX_HASH
    wait.assert_not_called()


def test_approve_waits(connection, monkeypatch):
    connection.hot_wallet.transact_and_broadcast_with_contract.return_value = TX_HASH
    receipt = {"transactionHash": TX_HASH, "status": 1}
    wait = Mock(return_value=receipt)
    monkeypatch.setattr(cctp_bridge.connection, "wait_transaction_success", wait)

    assert connection.approve_for_burn(1) == receipt
    wait.assert_called_once_with(connection.web3, TX_HASH, "USDC approve on Base Sepolia", timeout=5)


def test_create_connection_wrong_chain(chain, monkeypatch):
    web3 = Mock()
    web3.eth.chain_id = 1
    monkeypatch.setattr(cctp_bridge.connection, "create_chain_web3", lambda chain, json_rpc_url=None: web3)
    with pytest.raises(ChainConnectionError, match="is on chain 1, expected 84532"):
        create_chain_connection(chain, TEST_PRIVATE_KEY)


def test_create_connection(chain, monkeypatch):
    web3 = Mock()
    web3.eth.chain_id = 84532
    web3.eth.get_transaction_count.return_value = 7
    monkeypatch.setattr(cctp_bridge.connection, "create_chain_web3", lambda chain, json_rpc_url=None: web3)

    connection = create_chain_connection(chain, TEST_PRIVATE_KEY)

    assert connection.address == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
    assert connection.hot_wallet.current_nonce == 7


def test_wait_success():
    web3 = Mock()
    web3.eth.wait_for_transaction_receipt.return_value = {"status": 1, "blockNumber": 100}
    assert wait_transaction_success(web3, TX_HASH)["blockNumber"] == 100


def test_wait_reverted_with_reason():
    web3 = Mock()
    web3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 100}
    web3.eth.get_transaction.return_value = {"to": RECIPIENT, "from": RECIPIENT, "value": 0, "input": b"", "gas": 100_000}
    web3.eth.call.side_effect = ContractLogicError("execution reverted: Nonce already used")

    with pytest.raises(TransactionFailure) as exc_info:
        wait_transaction_success(web3, TX_HASH, "receiveMessage")

    assert exc_info.value.revert_reason == "execution reverted: Nonce already used"
    assert exc_info.value.tx_hash == TX_HASH
    assert str(exc_info.value).startswith("receiveMessage 0x0101")


def test_wait_timeout():
    web3 = Mock()
    web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("Timed out")
    with pytest.raises(TransactionFailure, match="not confirmed after 180"):
        wait_transaction_success(web3, TX_HASH)


def test_gas_london():
    web3 = Mock()
    web3.eth.chain_id = 84532
    web3.eth.get_block.return_value = {"baseFeePerGas": 100}
    web3.eth.max_priority_fee = 5
    suggestion = estimate_gas_price(web3)
    assert suggestion.method == GasPriceMethod.london
    assert suggestion.max_fee_per_gas == 205

    tx = apply_gas({"gasPrice": 1}, suggestion)
    assert tx == {"maxFeePerGas": 205, "maxPriorityFeePerGas": 5}


def test_gas_legacy():
    web3 = Mock()
    web3.eth.get_block.return_value = {}
    web3.eth.gas_price = 42
    suggestion = estimate_gas_price(web3)
    assert suggestion.method == GasPriceMethod.legacy
    assert apply_gas({}, suggestion) == {"gasPrice": 42}
