"""Fake chain connections and attestation services for bridge tests.

The bridge talks to chains only through :py:class:`cctp_bridge.connection.ChainConnection`,
so we substitute it with :py:class:`FakeChainConnection` that records calls
and returns crafted receipts.
"""

from eth_account import Account
from hexbytes import HexBytes

from cctp_bridge.attestation import AttestationRecord, AttestationStatus
from cctp_bridge.chains import DEFAULT_CHAIN_REGISTRY, ChainConfig
from cctp_bridge.testing import craft_burn_receipt, craft_cctp_message

#: Receiver used in examples
RECIPIENT = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb"

#: Well known Anvil account #0, never funded on testnets
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"

APPROVE_TX_HASH = HexBytes(b"\xaa" * 32)
BURN_TX_HASH = HexBytes(b"\xbb" * 32)
MINT_TX_HASH = HexBytes(b"\xcc" * 32)


class FakeChainConnection:
    """Records bridge calls made on one chain."""

    def __init__(self, chain: ChainConfig, balance: int = 0, nonce: int = 1):
        self.chain = chain
        self.balance = balance
        self.nonce = nonce
        self.address = Account.from_key(TEST_PRIVATE_KEY).address
        self.approve_calls = []
        self.burn_calls = []
        self.receive_calls = []
        #: Replace to simulate a receipt without MessageSent
        self.burn_receipt = None
        #: Raise this from the named operation
        self.fail = {}

    def _maybe_fail(self, name: str):
        if name in self.fail:
            raise self.fail[name]

    def fetch_usdc_balance(self) -> int:
        self._maybe_fail("balance")
        return self.balance

    def approve_for_burn(self, amount: int) -> dict:
        self._maybe_fail("approve")
        self.approve_calls.append(amount)
        return {"transactionHash": APPROVE_TX_HASH, "status": 1, "logs": []}

    def deposit_for_burn(self, amount: int, destination_domain: int, mint_recipient: str) -> dict:
        self._maybe_fail("burn")
        self.burn_calls.append((amount, destination_domain, mint_recipient))
        if self.burn_receipt is not None:
            return self.burn_receipt
        message = craft_cctp_message(
            source_domain=self.chain.domain,
            destination_domain=destination_domain,
            nonce=self.nonce,
            mint_recipient=mint_recipient,
            amount=amount,
            burn_token=self.chain.usdc,
        )
        return craft_burn_receipt(message, self.chain.message_transmitter, tx_hash=BURN_TX_HASH)

    def receive_message(self, message: bytes, attestation: bytes) -> HexBytes:
        self._maybe_fail("mint")
        self.receive_calls.append((message, attestation))
        return MINT_TX_HASH


class FakeNetwork:
    """Connection factory handing out one :py:class:`FakeChainConnection` per chain."""

    def __init__(self):
        self.connections = {chain.slug: FakeChainConnection(chain) for chain in DEFAULT_CHAIN_REGISTRY}
        self.private_keys = []

    def __getitem__(self, slug: str) -> FakeChainConnection:
        return self.connections[slug]

    def __call__(self, chain: ChainConfig, private_key: str) -> FakeChainConnection:
        self.private_keys.append(private_key)
        return self.connections[chain.slug]


class ScriptedAttestationService:
    """Status fetcher answering pending ``pending_count`` times, then complete."""

    def __init__(self, pending_count: int = 0, attestation: bytes = b"\x11" * 65):
        self.pending_count = pending_count
        self.attestation = attestation
        self.requests = []

    def __call__(self, message_hash: str) -> AttestationRecord:
        self.requests.append(message_hash)
        if len(self.requests) <= self.pending_count:
            return AttestationRecord(message_hash=message_hash, status=AttestationStatus.pending)
        return AttestationRecord(message_hash=message_hash, status=AttestationStatus.complete, attestation=self.attestation)
