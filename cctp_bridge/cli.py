"""Command line interface for CCTP USDC bridging.

Bridge 10 USDC from Base Sepolia to Ethereum Sepolia:

.. code-block:: shell

    export PRIVATE_KEY=...
    # Optional, public endpoints are used otherwise
    export JSON_RPC_BASE_SEPOLIA=...
    export JSON_RPC_ETH_SEPOLIA=...

    cctp-bridge bridge 10 base-sepolia eth-sepolia 0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb

Check an attestation:

.. code-block:: shell

    cctp-bridge status 0x...

The private key is only read from the ``PRIVATE_KEY`` environment variable,
so it never ends up in the shell history or the process list.
"""

import logging
import os

import typer
from tabulate import tabulate

from cctp_bridge.attestation import BackoffPolicy, check_attestation_status, normalise_message_hash
from cctp_bridge.bridge import CCTPBridge, TransferRequest
from cctp_bridge.chains import DEFAULT_CHAIN_REGISTRY, get_json_rpc_env
from cctp_bridge.constants import IRIS_API_SANDBOX_URL
from cctp_bridge.errors import AttestationFetchError
from cctp_bridge.utils import setup_console_logging

logger = logging.getLogger(__name__)

app = typer.Typer(help="Bridge USDC between testnets with Circle CCTP")


def read_attestation_api() -> str:
    return os.environ.get("CCTP_ATTESTATION_API") or IRIS_API_SANDBOX_URL


@app.callback()
def main():
    """Bridge USDC between testnets with Circle CCTP.

    Set ``LOG_LEVEL`` environment variable for more or less output.
    """
    setup_console_logging(default_log_level="info", simplified_logging=True)


@app.command()
def bridge(
    amount: str = typer.Argument(..., help="USDC amount, e.g. 10.5"),
    source: str = typer.Argument(..., help="Source chain slug"),
    destination: str = typer.Argument(..., help="Destination chain slug"),
    recipient: str = typer.Argument(..., help="Receiver address on the destination chain"),
    max_attempts: int = typer.Option(BackoffPolicy().max_attempts, min=1, help="Attestation polling attempts"),
):
    """Burn USDC on the source chain and mint it on the destination chain."""
    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        typer.echo("PRIVATE_KEY environment variable is not set", err=True)
        raise typer.Exit(code=1)

    cctp_bridge = CCTPBridge(
        attestation_api=read_attestation_api(),
        policy=BackoffPolicy(max_attempts=max_attempts),
    )

    outcome = cctp_bridge.bridge_transfer(
        TransferRequest(
            amount=amount,
            source_chain=source,
            destination_chain=destination,
            recipient=recipient,
            private_key=private_key,
        )
    )

    if not outcome.success:
        typer.echo(f"Bridge failed at {outcome.stage.value}: {outcome.reason}", err=True)
        if outcome.burn_tx_hash:
            typer.echo(f"USDC was burnt in {outcome.burn_tx_hash}, message hash {outcome.message_hash}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Burn tx: {outcome.burn_tx_hash}")
    typer.echo(f"Mint tx: {outcome.mint_tx_hash}")
    typer.echo(f"Message hash: {outcome.message_hash}")
    typer.echo(f"Nonce: {outcome.nonce}")


@app.command()
def status(
    message_hash: str = typer.Argument(..., help="keccak256 of the CCTP message"),
):
    """Check the attestation state of a message once."""
    try:
        message_hash = normalise_message_hash(message_hash)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="MESSAGE_HASH") from e

    try:
        record = check_attestation_status(message_hash, api_base_url=read_attestation_api())
    except AttestationFetchError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Status: {record.status.value}")
    if record.attestation:
        typer.echo(f"Attestation: 0x{record.attestation.hex()[0:64]}...")


@app.command()
def chains():
    """List supported chains."""
    table = [
        [
            chain.slug,
            chain.name,
            chain.chain_id,
            chain.domain,
            chain.usdc,
            chain.rpc_url,
            get_json_rpc_env(chain),
        ]
        for chain in DEFAULT_CHAIN_REGISTRY
    ]
    typer.echo(tabulate(table, headers=["Slug", "Name", "Chain id", "CCTP domain", "USDC", "Public RPC", "RPC override"]))


if __name__ == "__main__":
    app()
