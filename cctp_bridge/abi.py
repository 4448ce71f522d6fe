"""ABI loading from the bundled JSON files.

Provides functions to load ABI files and construct :py:class:`web3.contract.Contract` types.
The results are cached for the speedup.

Bundled files live in ``cctp_bridge/abi/`` and contain only the functions and events
the bridge uses:

- ``ERC20.json``
- ``cctp/TokenMessenger.json``
- ``cctp/MessageTransmitter.json``
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Type, Union

from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract

# How big are our ABI and contract caches
_CACHE_SIZE = 64


@lru_cache(maxsize=_CACHE_SIZE)
def get_abi_by_filename(fname: str) -> dict:
    """Reads a embedded ABI file and returns it.

    Example::

        abi = get_abi_by_filename("cctp/MessageTransmitter.json")

    Any results are cached.

    :param fname:
        Path relative to the bundled ``abi`` folder.

    :return:
        Contract interface dict with ``abi`` key
    """

    here = Path(__file__).resolve().parent
    abi_path = here / "abi" / Path(fname)
    with open(abi_path, "rt", encoding="utf-8") as f:
        abi = json.load(f)
    return abi


@lru_cache(maxsize=_CACHE_SIZE)
def get_contract(web3: Web3, fname: str | Path) -> Type[Contract]:
    """Get Contract proxy class from ABI JSON file.

    Web3 connection is part of the cache key.

    :param web3:
        Web3 instance

    :param fname:
        Bundled ABI file name, see :py:func:`get_abi_by_filename`.

    :return:
        Contract proxy class
    """
    contract_interface = get_abi_by_filename(str(fname))
    return web3.eth.contract(abi=contract_interface["abi"])


def get_deployed_contract(
    web3: Web3,
    fname: str | Path,
    address: Union[HexAddress, str],
) -> Contract:
    """Get a Contract proxy object for a contract deployed at a specific address.

    `See Web3.py documentation on Contract instances <https://web3py.readthedocs.io/en/stable/contracts.html#contract-deployment-example>`_.

    :param web3:
        Web3 instance

    :param fname:
        Bundled ABI file name

    :param address:
        Ethereum address of the deployed contract

    :return:
        `web3.contract.Contract` proxy
    """
    assert isinstance(web3, Web3), f"Got {type(web3)} instead of Web3"
    assert address, f"get_deployed_contract() address was None"

    address = Web3.to_checksum_address(address)

    Contract = get_contract(web3, fname)
    return Contract(address)
