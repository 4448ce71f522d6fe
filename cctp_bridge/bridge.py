"""Cross-chain USDC transfers with Circle CCTP.

Drive one transfer through its stages, each gated on the success of the previous one:

1. Resolve the source and destination chains
2. Scale the decimal amount to raw USDC units
3. Check the sender USDC balance on the source chain
4. Approve TokenMessenger and wait for confirmation
5. ``depositForBurn()`` and wait for confirmation, read the ``MessageSent`` message
6. Poll Circle's attestation service for the message attestation
7. ``receiveMessage()`` on the destination chain

Only the attestation wait is retried. Any failure ends the transfer and
:py:meth:`CCTPBridge.bridge_transfer` returns a :py:class:`TransferFailure`
instead of raising.

.. warning ::

    A failure after the burn leaves the USDC burnt on the source chain without a mint.
    :py:attr:`TransferFailure.burn_tx_hash` and :py:attr:`TransferFailure.message_hash`
    tell where to resume: poll the attestation and call ``receiveMessage()`` manually.

Example:

.. code-block:: python

    import os

    from cctp_bridge.bridge import TransferRequest, bridge_usdc

    outcome = bridge_usdc(
        TransferRequest(
            amount="10",
            source_chain="base-sepolia",
            destination_chain="eth-sepolia",
            recipient="0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb",
            private_key=os.environ["PRIVATE_KEY"],
        )
    )
    if outcome.success:
        print("Minted in", outcome.mint_tx_hash)
"""

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import Protocol

from eth_typing import HexAddress
from web3 import Web3

from cctp_bridge.attestation import BackoffPolicy, StatusFetcher, poll_attestation
from cctp_bridge.chains import DEFAULT_CHAIN_REGISTRY, ChainRegistry
from cctp_bridge.connection import ConnectionFactory, create_chain_connection
from cctp_bridge.constants import IRIS_API_SANDBOX_URL
from cctp_bridge.errors import CCTPBridgeError, InsufficientBalance, TransactionFailure
from cctp_bridge.message import decode_message_header, extract_message_sent, get_message_hash
from cctp_bridge.token import format_usdc_amount, parse_usdc_amount
from cctp_bridge.transfer import encode_mint_recipient

logger = logging.getLogger(__name__)


class BridgeStage(enum.Enum):
    """Where a transfer is, or where it stopped."""

    resolve_chains = "resolve_chains"
    scale_amount = "scale_amount"
    balance_check = "balance_check"
    approve = "approve"
    burn = "burn"
    attestation = "attestation"
    mint = "mint"


@dataclass(slots=True, frozen=True)
class TransferRequest:
    """Caller input for one transfer."""

    #: Human decimal amount, e.g. ``"10.5"``
    amount: str

    #: Source chain slug
    source_chain: str

    #: Destination chain slug
    destination_chain: str

    #: Receiver of the minted USDC on the destination chain
    recipient: HexAddress | str

    #: 0x prefixed hex private key of the sender
    private_key: str = field(repr=False)


@dataclass(slots=True, frozen=True)
class TransferSuccess:
    """USDC was burnt and the mint transaction was submitted."""

    #: ``keccak256`` of the CCTP message, 0x prefixed
    message_hash: str

    #: CCTP nonce from the message header
    nonce: int

    burn_tx_hash: str

    mint_tx_hash: str

    attestation: bytes

    #: The CCTP message relayed to the destination chain
    message: bytes = field(repr=False, default=b"")

    success = True


@dataclass(slots=True, frozen=True)
class TransferFailure:
    """Transfer stopped at ``stage``."""

    #: Human-readable error
    reason: str

    stage: BridgeStage

    #: Set when the burn was confirmed before the failure
    burn_tx_hash: str | None = None

    #: Set when the burn was confirmed before the failure
    message_hash: str | None = None

    success = False


#: Result of :py:meth:`CCTPBridge.bridge_transfer`
TransferOutcome = TransferSuccess | TransferFailure


@dataclass(slots=True, frozen=True)
class BridgeStatus:
    """Result of :py:func:`get_bridge_status`."""

    status: str

    can_mint: bool


class BridgeObserver(Protocol):
    """Progress notifications from :py:class:`CCTPBridge`."""

    def on_stage(self, stage: BridgeStage, detail: str) -> None:
        """A stage completed, or started for the long running ones."""

    def on_attestation_attempt(self, attempt: int, max_attempts: int) -> None:
        """An attestation status request is about to be made."""

    def on_failure(self, failure: TransferFailure) -> None:
        """The transfer failed."""


class LoggingBridgeObserver:
    """Write bridge progress to the Python logger."""

    def __init__(self, logger: logging.Logger = logger):
        self.logger = logger

    def on_stage(self, stage: BridgeStage, detail: str) -> None:
        self.logger.info("[%s] %s", stage.value, detail)

    def on_attestation_attempt(self, attempt: int, max_attempts: int) -> None:
        self.logger.debug("Attestation attempt %d/%d", attempt, max_attempts)

    def on_failure(self, failure: TransferFailure) -> None:
        self.logger.error("Bridge failed at %s: %s", failure.stage.value, failure.reason)


class CCTPBridge:
    """Burn-and-mint USDC transfer orchestrator.

    Holds no per-transfer state, so one instance can run transfers sequentially
    or from several threads.

    :param registry:
        Chains that can be bridged

    :param connection_factory:
        Creates a :py:class:`cctp_bridge.connection.ChainConnection` for a chain and a private key

    :param attestation_api:
        Attestation endpoint base URL

    :param policy:
        Attestation polling schedule

    :param fetch_status:
        Replace the attestation HTTP lookup

    :param observer:
        Progress notifications, logged by default

    :param stop_event:
        Set to abort the attestation wait
    """

    def __init__(
        self,
        registry: ChainRegistry = DEFAULT_CHAIN_REGISTRY,
        connection_factory: ConnectionFactory = create_chain_connection,
        attestation_api: str = IRIS_API_SANDBOX_URL,
        policy: BackoffPolicy | None = None,
        fetch_status: StatusFetcher | None = None,
        observer: BridgeObserver | None = None,
        stop_event: threading.Event | None = None,
    ):
        self.registry = registry
        self.connection_factory = connection_factory
        self.attestation_api = attestation_api
        self.policy = policy or BackoffPolicy()
        self.fetch_status = fetch_status
        self.observer = observer or LoggingBridgeObserver()
        self.stop_event = stop_event

    def bridge_transfer(self, request: TransferRequest) -> TransferOutcome:
        """Run a transfer to completion or failure.

        Never raises.
        """
        stage = BridgeStage.resolve_chains
        burn_tx_hash = None
        message_hash = None

        try:
            source = self.registry.resolve(request.source_chain)
            destination = self.registry.resolve(request.destination_chain)

            encode_mint_recipient(request.recipient)

            stage = BridgeStage.scale_amount
            amount = parse_usdc_amount(request.amount)
            self.observer.on_stage(stage, f"Bridging {request.amount} USDC ({amount} raw) from {source.name} to {destination.name}, recipient {request.recipient}")

            stage = BridgeStage.balance_check
            source_connection = self.connection_factory(source, request.private_key)
            balance = source_connection.fetch_usdc_balance()
            if balance < amount:
                raise InsufficientBalance(have=balance, need=amount)
            self.observer.on_stage(stage, f"Balance check passed: {format_usdc_amount(balance)} USDC on {source_connection.address}")

            stage = BridgeStage.approve
            approve_receipt = source_connection.approve_for_burn(amount)
            self.observer.on_stage(stage, f"Approved: {Web3.to_hex(approve_receipt['transactionHash'])}")

            stage = BridgeStage.burn
            burn_receipt = source_connection.deposit_for_burn(amount, destination.domain, request.recipient)
            burn_tx_hash = Web3.to_hex(burn_receipt["transactionHash"])
            try:
                message = extract_message_sent(burn_receipt, source.message_transmitter)
                header = decode_message_header(message)
            except ValueError as e:
                raise TransactionFailure(f"Could not read the CCTP message of burn {burn_tx_hash}: {e}") from e
            message_hash = Web3.to_hex(get_message_hash(message))
            self.observer.on_stage(stage, f"Burnt in {burn_tx_hash}, nonce {header.nonce}, message hash {message_hash}")

            stage = BridgeStage.attestation
            self.observer.on_stage(stage, f"Waiting for attestation of {message_hash}")
            attestation = poll_attestation(
                message_hash,
                policy=self.policy,
                api_base_url=self.attestation_api,
                fetch_status=self.fetch_status,
                stop_event=self.stop_event,
                on_attempt=self.observer.on_attestation_attempt,
            )

            stage = BridgeStage.mint
            destination_connection = self.connection_factory(destination, request.private_key)
            mint_tx_hash = Web3.to_hex(destination_connection.receive_message(message, attestation))
            self.observer.on_stage(stage, f"Mint submitted on {destination.name}: {mint_tx_hash}")

            return TransferSuccess(
                message_hash=message_hash,
                nonce=header.nonce,
                burn_tx_hash=burn_tx_hash,
                mint_tx_hash=mint_tx_hash,
                attestation=attestation,
                message=message,
            )
        except CCTPBridgeError as e:
            failure = TransferFailure(reason=str(e), stage=stage, burn_tx_hash=burn_tx_hash, message_hash=message_hash)
        except Exception as e:
            logger.exception("Unexpected error at bridge stage %s", stage.value)
            failure = TransferFailure(reason=f"Unexpected error: {e}", stage=stage, burn_tx_hash=burn_tx_hash, message_hash=message_hash)

        self.observer.on_failure(failure)
        return failure


def bridge_usdc(
    request: TransferRequest,
    registry: ChainRegistry = DEFAULT_CHAIN_REGISTRY,
    attestation_api: str = IRIS_API_SANDBOX_URL,
    policy: BackoffPolicy | None = None,
) -> TransferOutcome:
    """Bridge USDC with the default chain connections.

    See :py:class:`CCTPBridge`.
    """
    bridge = CCTPBridge(registry=registry, attestation_api=attestation_api, policy=policy)
    return bridge.bridge_transfer(request)


def get_bridge_status(
    message_hash: str,
    destination_chain: str,
    registry: ChainRegistry = DEFAULT_CHAIN_REGISTRY,
) -> BridgeStatus:
    """Placeholder for checking whether a transfer can still be minted.

    Not implemented: always reports ``pending`` and ``can_mint=False``
    without querying the attestation service or the destination chain.
    Use :py:func:`cctp_bridge.attestation.check_attestation_status` for the attestation state.

    :raise UnknownChain:
        Destination chain slug is not registered
    """
    chain = registry.resolve(destination_chain)
    logger.warning("get_bridge_status() is not implemented, not checking %s on %s", message_hash, chain.name)
    return BridgeStatus(status="pending", can_mint=False)
