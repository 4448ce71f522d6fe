"""Circle CCTP V1 testnet constants.

Cross-Chain Transfer Protocol deployment addresses and domain mappings
for the Sepolia testnets.

CCTP enables burn-and-mint USDC transfers across chains:

1. Source chain: call ``depositForBurn()`` on TokenMessenger to burn USDC
2. Circle's Iris attestation service signs the emitted ``MessageSent`` message
3. Destination chain: call ``receiveMessage()`` on MessageTransmitter to mint USDC

The testnet TokenMessenger and MessageTransmitter share the same address on all
supported chains. USDC addresses differ per chain.

- `Supported domains <https://developers.circle.com/stablecoins/supported-domains>`_
- `Circle CCTP GitHub <https://github.com/circlefin/evm-cctp-contracts>`_
"""

from eth_typing import HexAddress


#: CCTP TokenMessenger on Sepolia testnets - entry point for ``depositForBurn()``
TOKEN_MESSENGER_TESTNET: HexAddress = HexAddress("0x9f3B8679c73C2Fef8b59B4f3444d4e156fb70AA5")

#: CCTP MessageTransmitter on Sepolia testnets - emits ``MessageSent`` and handles ``receiveMessage()``
MESSAGE_TRANSMITTER_TESTNET: HexAddress = HexAddress("0x7865fAfC2db2093669d92c0F33AeEF291086BEFD")

#: Circle testnet USDC on Ethereum Sepolia
USDC_ETHEREUM_SEPOLIA: HexAddress = HexAddress("0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238")

#: Circle testnet USDC on Arbitrum Sepolia
USDC_ARBITRUM_SEPOLIA: HexAddress = HexAddress("0x75faf114eafb1BDbe2F0316DF893fd58CE46AA4d")

#: Circle testnet USDC on Base Sepolia
USDC_BASE_SEPOLIA: HexAddress = HexAddress("0x036CbD53842c5426634e7929541eC2318f3dCF7e")

#: CCTP domain ID for Ethereum
CCTP_DOMAIN_ETHEREUM = 0

#: CCTP domain ID for Arbitrum
CCTP_DOMAIN_ARBITRUM = 3

#: CCTP domain ID for Base
CCTP_DOMAIN_BASE = 6

#: USDC has 6 decimals on every CCTP chain
USDC_DECIMALS = 6

#: Circle Iris attestation API for testnets.
#:
#: Attestations are looked up by the keccak256 hash of the ``MessageSent`` message.
IRIS_API_SANDBOX_URL = "https://iris-api-sandbox.circle.com/v1/attestations"

#: Seconds before a single attestation HTTP request is abandoned
ATTESTATION_REQUEST_TIMEOUT = 10.0

#: Seconds to wait for a transaction receipt before giving up
DEFAULT_CONFIRMATION_TIMEOUT = 180.0
