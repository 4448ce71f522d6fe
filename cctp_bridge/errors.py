"""Exceptions raised while bridging USDC.

All of these are caught by :py:meth:`cctp_bridge.bridge.CCTPBridge.bridge_transfer`
and turned into a :py:class:`cctp_bridge.bridge.TransferFailure`.
"""

from decimal import Context, Decimal

from hexbytes import HexBytes

from cctp_bridge.constants import USDC_DECIMALS


class CCTPBridgeError(Exception):
    """Base class for all bridge failures."""


class UnknownChain(CCTPBridgeError):
    """Chain slug is not in the registry."""

    def __init__(self, slug: str, supported: list[str]):
        super().__init__(f"Unknown chain: {slug}. Supported: {', '.join(supported)}")
        self.slug = slug
        self.supported = supported


class InvalidAmount(CCTPBridgeError):
    """Amount string cannot be converted to USDC raw units."""


class InvalidRecipient(CCTPBridgeError):
    """Recipient is not an EVM address."""


class InsufficientBalance(CCTPBridgeError):
    """Sender does not hold enough USDC on the source chain.

    Amounts are raw token units (6 decimals).
    """

    def __init__(self, have: int, need: int):
        have_usdc = Decimal(have).scaleb(-USDC_DECIMALS, Context(prec=len(str(have))))
        need_usdc = Decimal(need).scaleb(-USDC_DECIMALS, Context(prec=len(str(need))))
        super().__init__(f"Insufficient USDC balance. Have: {have_usdc:,.6f}, Need: {need_usdc:,.6f}")
        self.have = have
        self.need = need


class TransactionFailure(CCTPBridgeError):
    """Approve, burn or mint transaction was rejected by the node or reverted."""

    def __init__(self, message: str, tx_hash: HexBytes | None = None, revert_reason: str = ""):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.revert_reason = revert_reason


class AttestationFetchError(CCTPBridgeError):
    """A single attestation status request failed.

    HTTP 404 is not an error, see :py:func:`cctp_bridge.attestation.fetch_attestation_status`.
    """


class PollTimeout(CCTPBridgeError):
    """Attestation was not complete after all polling attempts."""

    def __init__(self, message_hash: str, attempts: int, message: str | None = None):
        if message is None:
            message = f"Attestation polling timeout after {attempts} attempts for message {message_hash}"
        super().__init__(message)
        self.message_hash = message_hash
        self.attempts = attempts


class PollCancelled(PollTimeout):
    """Attestation polling was stopped from outside before it completed."""

    def __init__(self, message_hash: str, attempts: int):
        super().__init__(message_hash, attempts, f"Attestation polling cancelled after {attempts} attempts for message {message_hash}")


class ChainConnectionError(CCTPBridgeError):
    """JSON-RPC node could not be used: unreachable, wrong chain or a failed read."""
