"""cctp_bridge package root.

Move USDC between EVM testnets with Circle's Cross-Chain Transfer Protocol.

- :py:mod:`cctp_bridge.bridge` drives a single burn-and-mint transfer
- :py:mod:`cctp_bridge.attestation` polls Circle's Iris attestation service
- :py:mod:`cctp_bridge.chains` holds the supported testnet configuration

"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    # https://stackoverflow.com/a/1093331/315168
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"cctp-bridge needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
