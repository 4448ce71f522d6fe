"""JSON-RPC connections to the bridged chains."""

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry
from web3 import HTTPProvider, Web3

from cctp_bridge.chains import ChainConfig, read_json_rpc_url

logger = logging.getLogger(__name__)

#: Seconds before a JSON-RPC request is abandoned
DEFAULT_HTTP_TIMEOUT = 30.0


def create_chain_web3(
    chain: ChainConfig,
    json_rpc_url: str | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    session: requests.Session | None = None,
) -> Web3:
    """Create a Web3 connection for a chain.

    - The URL is read from ``JSON_RPC_<SLUG>`` if set, otherwise the public endpoint is used
    - Connection errors are retried by ``urllib3``, JSON-RPC errors are not

    :param json_rpc_url:
        Override the RPC URL

    :param timeout:
        HTTP request timeout in seconds
    """
    if json_rpc_url is None:
        json_rpc_url = read_json_rpc_url(chain)

    if session is None:
        # https://stackoverflow.com/a/47475019/315168
        session = requests.Session()
        retry = Retry(connect=3, backoff_factor=0.5)
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

    provider = HTTPProvider(json_rpc_url, request_kwargs={"timeout": timeout}, session=session)
    web3 = Web3(provider)
    logger.info("Created provider for %s (chain %d)", chain.name, chain.chain_id)
    return web3
