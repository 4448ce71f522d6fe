"""USDC amount conversion and balance reads.

USDC uses 6 decimals on all CCTP chains, so we do not query ``decimals()``
before converting.
"""

from decimal import MAX_EMAX, Context, Decimal, Inexact, InvalidOperation, localcontext

from eth_typing import HexAddress
from web3 import Web3
from web3.contract import Contract

from cctp_bridge.abi import get_deployed_contract
from cctp_bridge.constants import USDC_DECIMALS
from cctp_bridge.errors import InvalidAmount


def parse_usdc_amount(amount: str | Decimal) -> int:
    """Convert a human decimal amount to raw USDC units.

    Example:

    .. code-block:: python

        assert parse_usdc_amount("10.5") == 10_500_000

    :param amount:
        Amount like ``"10"`` or ``"0.25"``

    :raise InvalidAmount:
        Not a number, not positive or more precise than 6 decimals.
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as e:
        raise InvalidAmount(f"Not a valid USDC amount: {amount!r}") from e

    if not value.is_finite() or value <= 0:
        raise InvalidAmount(f"USDC amount must be positive: {amount!r}")

    # Wide enough context that scaling never rounds
    with localcontext() as ctx:
        ctx.prec = len(value.as_tuple().digits) + USDC_DECIMALS
        ctx.Emax = MAX_EMAX
        ctx.traps[Inexact] = True
        raw = value.scaleb(USDC_DECIMALS)
        if raw != raw.to_integral_value():
            raise InvalidAmount(f"USDC amount {amount!r} has more than {USDC_DECIMALS} decimals")
        return int(raw)


def format_usdc_amount(raw_amount: int) -> Decimal:
    """Convert raw USDC units to a decimal amount.

    Example:

    .. code-block:: python

        assert format_usdc_amount(5_000_000) == Decimal(5)
    """
    assert type(raw_amount) == int, f"Got {type(raw_amount)}, expected int: {raw_amount}"
    return Decimal(raw_amount).scaleb(-USDC_DECIMALS, Context(prec=len(str(raw_amount))))


def get_usdc_contract(web3: Web3, address: HexAddress | str) -> Contract:
    """Load a USDC contract proxy."""
    return get_deployed_contract(web3, "ERC20.json", address)


def fetch_raw_balance_of(web3: Web3, usdc_address: HexAddress | str, owner: HexAddress | str, block_identifier="latest") -> int:
    """Get an address USDC balance in raw units.

    :param block_identifier:
        A specific block to query if doing archive node historical queries
    """
    usdc = get_usdc_contract(web3, usdc_address)
    return usdc.functions.balanceOf(Web3.to_checksum_address(owner)).call(block_identifier=block_identifier)
