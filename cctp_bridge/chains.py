"""Supported CCTP chains.

A static, immutable table of testnets keyed by a lower-cased slug.

Example:

.. code-block:: python

    from cctp_bridge.chains import resolve_chain

    chain = resolve_chain("Base-Sepolia")
    assert chain.domain == 6

Build your own :py:class:`ChainRegistry` when you need to bridge on other networks
and pass it to :py:class:`cctp_bridge.bridge.CCTPBridge`.
"""

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from eth_typing import HexAddress

from cctp_bridge.constants import (
    CCTP_DOMAIN_ARBITRUM,
    CCTP_DOMAIN_BASE,
    CCTP_DOMAIN_ETHEREUM,
    MESSAGE_TRANSMITTER_TESTNET,
    TOKEN_MESSENGER_TESTNET,
    USDC_ARBITRUM_SEPOLIA,
    USDC_BASE_SEPOLIA,
    USDC_ETHEREUM_SEPOLIA,
)
from cctp_bridge.errors import UnknownChain


@dataclass(slots=True, frozen=True)
class ChainConfig:
    """Network parameters needed to bridge on one chain."""

    #: Registry key, e.g. ``base-sepolia``
    slug: str

    #: Human-readable name
    name: str

    #: EVM chain id
    chain_id: int

    #: Public JSON-RPC endpoint.
    #:
    #: Can be overridden with ``JSON_RPC_<SLUG>`` environment variable,
    #: see :py:func:`read_json_rpc_url`.
    rpc_url: str

    #: CCTP TokenMessenger, spender for the USDC approval
    token_messenger: HexAddress

    #: CCTP MessageTransmitter
    message_transmitter: HexAddress

    #: Native USDC on this chain
    usdc: HexAddress

    #: CCTP domain id, not the same as the chain id
    domain: int


class ChainRegistry:
    """Read-only lookup of :py:class:`ChainConfig` by slug.

    - Slugs are lower-cased both when stored and when looked up
    - Unknown slugs raise :py:class:`cctp_bridge.errors.UnknownChain`, there is no default chain
    """

    def __init__(self, chains: Iterable[ChainConfig]):
        table = {}
        for chain in chains:
            key = chain.slug.lower()
            assert key not in table, f"Duplicate chain slug: {key}"
            table[key] = chain
        self._chains: Mapping[str, ChainConfig] = MappingProxyType(table)

    def __repr__(self):
        return f"<ChainRegistry {', '.join(self._chains)}>"

    def __contains__(self, slug: str) -> bool:
        return slug.lower() in self._chains

    def __iter__(self) -> Iterator[ChainConfig]:
        return iter(self._chains.values())

    def __len__(self) -> int:
        return len(self._chains)

    @property
    def slugs(self) -> list[str]:
        return list(self._chains.keys())

    def resolve(self, slug: str) -> ChainConfig:
        """Look up a chain.

        :param slug:
            Chain slug, case-insensitive

        :raise UnknownChain:
            The slug is not registered
        """
        chain = self._chains.get(slug.lower())
        if chain is None:
            raise UnknownChain(slug, self.slugs)
        return chain


#: Testnets supported out of the box
DEFAULT_CHAIN_REGISTRY = ChainRegistry(
    [
        ChainConfig(
            slug="base-sepolia",
            name="Base Sepolia",
            chain_id=84532,
            rpc_url="https://sepolia.base.org",
            token_messenger=TOKEN_MESSENGER_TESTNET,
            message_transmitter=MESSAGE_TRANSMITTER_TESTNET,
            usdc=USDC_BASE_SEPOLIA,
            domain=CCTP_DOMAIN_BASE,
        ),
        ChainConfig(
            slug="eth-sepolia",
            name="Ethereum Sepolia",
            chain_id=11155111,
            rpc_url="https://rpc.sepolia.org",
            token_messenger=TOKEN_MESSENGER_TESTNET,
            message_transmitter=MESSAGE_TRANSMITTER_TESTNET,
            usdc=USDC_ETHEREUM_SEPOLIA,
            domain=CCTP_DOMAIN_ETHEREUM,
        ),
        ChainConfig(
            slug="arb-sepolia",
            name="Arbitrum Sepolia",
            chain_id=421614,
            rpc_url="https://sepolia-rollup.arbitrum.io/rpc",
            token_messenger=TOKEN_MESSENGER_TESTNET,
            message_transmitter=MESSAGE_TRANSMITTER_TESTNET,
            usdc=USDC_ARBITRUM_SEPOLIA,
            domain=CCTP_DOMAIN_ARBITRUM,
        ),
    ]
)


def resolve_chain(slug: str, registry: ChainRegistry = DEFAULT_CHAIN_REGISTRY) -> ChainConfig:
    """Get a chain configuration by its slug.

    :raise UnknownChain:
        The slug is not registered
    """
    return registry.resolve(slug)


def get_supported_chains(registry: ChainRegistry = DEFAULT_CHAIN_REGISTRY) -> list[str]:
    """List registered chain slugs."""
    return registry.slugs


def get_json_rpc_env(chain: ChainConfig) -> str:
    """Get the JSON-RPC URL environment variable name for a chain.

    E.g. ``base-sepolia`` -> ``JSON_RPC_BASE_SEPOLIA``.
    """
    return f"JSON_RPC_{chain.slug.upper().replace('-', '_')}"


def read_json_rpc_url(chain: ChainConfig) -> str:
    """Read JSON-RPC URL from the environment, or fall back to the public endpoint."""
    return os.environ.get(get_json_rpc_env(chain)) or chain.rpc_url
