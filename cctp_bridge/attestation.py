"""Circle CCTP attestation service client.

Poll Circle's Iris API for the attestation of a burn message.

After ``depositForBurn()`` is confirmed on the source chain, Circle's attestation
service signs the emitted message once the burn block is final. The signed attestation
is needed to call ``receiveMessage()`` on the destination chain.

Example::

    from cctp_bridge.attestation import poll_attestation, BackoffPolicy

    attestation = poll_attestation(
        "0x...",  # keccak256 of the MessageSent message
        policy=BackoffPolicy(max_attempts=30),
    )

- :py:func:`fetch_attestation_status` makes exactly one HTTP request and never retries
- :py:func:`poll_attestation` owns the retry schedule
"""

import enum
import logging
import re
import threading
from dataclasses import dataclass
from typing import Callable, Iterator

import requests
from hexbytes import HexBytes

from cctp_bridge.constants import ATTESTATION_REQUEST_TIMEOUT, IRIS_API_SANDBOX_URL
from cctp_bridge.errors import AttestationFetchError, PollCancelled, PollTimeout

logger = logging.getLogger(__name__)

#: HTTP 404 status code indicating the message is not yet indexed
HTTP_NOT_FOUND = 404


class AttestationStatus(enum.Enum):
    """Attestation state as seen by the poller."""

    #: Not indexed yet, or waiting for block confirmations
    pending = "pending"

    #: Signed attestation is available
    complete = "complete"


@dataclass(slots=True, frozen=True)
class AttestationRecord:
    """Attestation state for one message hash."""

    message_hash: str

    status: AttestationStatus

    #: Signed attestation, only present when complete
    attestation: bytes | None = None

    @property
    def is_complete(self) -> bool:
        return self.status == AttestationStatus.complete and bool(self.attestation)


@dataclass(slots=True, frozen=True)
class BackoffPolicy:
    """Attestation polling schedule.

    Delays are in seconds and grow by ``multiplier`` after every wait,
    capped at ``max_delay``.
    """

    max_attempts: int = 60

    initial_delay: float = 5.0

    max_delay: float = 30.0

    multiplier: float = 1.5

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1: {self.max_attempts}")
        if self.initial_delay < 0:
            raise ValueError(f"Negative initial_delay: {self.initial_delay}")
        if self.max_delay < 0:
            raise ValueError(f"Negative max_delay: {self.max_delay}")

    def delays(self) -> Iterator[float]:
        """Infinite sequence of waits between attempts."""
        delay = self.initial_delay
        while True:
            yield delay
            delay = min(delay * self.multiplier, self.max_delay)


#: ``(message_hash) -> AttestationRecord``
StatusFetcher = Callable[[str], AttestationRecord]

#: ``(attempt, max_attempts) -> None``, called before every status request
AttemptCallback = Callable[[int, int], None]


MESSAGE_HASH_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")


def normalise_message_hash(message_hash: str | bytes) -> str:
    """Format a message hash as it appears in the attestation URL.

    :raise ValueError:
        Not a 32 byte hash
    """
    if isinstance(message_hash, (bytes, bytearray)):
        if len(message_hash) != 32:
            raise ValueError(f"Message hash must be 32 bytes, got {len(message_hash)}")
        return "0x" + bytes(message_hash).hex()
    if not message_hash.startswith("0x"):
        message_hash = f"0x{message_hash}"
    if not MESSAGE_HASH_PATTERN.fullmatch(message_hash):
        raise ValueError(f"Not a 32 byte hex message hash: {message_hash[0:80]!r}")
    return message_hash


def fetch_attestation_status(
    message_hash: str | bytes,
    api_base_url: str = IRIS_API_SANDBOX_URL,
    timeout: float = ATTESTATION_REQUEST_TIMEOUT,
    session: requests.Session | None = None,
) -> AttestationRecord:
    """Query the attestation state of a message once.

    - HTTP 404 means the message is not indexed yet and is reported as pending
    - Statuses other than ``complete``, like ``pending_confirmations``, are pending
    - Nothing is retried here, see :py:func:`poll_attestation`

    :param message_hash:
        ``keccak256`` of the CCTP message

    :param api_base_url:
        Attestation endpoint, the message hash is appended to it

    :param timeout:
        Seconds before the HTTP request is abandoned

    :param session:
        Reuse a HTTP session across requests

    :raise AttestationFetchError:
        Network failure, unexpected HTTP status or unreadable response

    :raise ValueError:
        ``message_hash`` is not a 32 byte hash
    """
    message_hash = normalise_message_hash(message_hash)
    url = f"{api_base_url.rstrip('/')}/{message_hash}"

    get = session.get if session is not None else requests.get

    try:
        response = get(url, timeout=timeout)
    except requests.RequestException as e:
        raise AttestationFetchError(f"Failed to fetch attestation: {e}") from e

    if response.status_code == HTTP_NOT_FOUND:
        logger.debug("Attestation not yet indexed (404): %s", message_hash)
        return AttestationRecord(message_hash=message_hash, status=AttestationStatus.pending)

    if not response.ok:
        raise AttestationFetchError(f"Failed to fetch attestation: HTTP {response.status_code} from {url}: {response.text[0:200]}")

    try:
        data = response.json()
    except ValueError as e:
        raise AttestationFetchError(f"Failed to fetch attestation: bad JSON from {url}") from e

    status = data.get("status", "")
    attestation_hex = data.get("attestation")

    if status == AttestationStatus.complete.value and attestation_hex and attestation_hex != "PENDING":
        try:
            attestation = bytes(HexBytes(attestation_hex))
        except ValueError as e:
            raise AttestationFetchError(f"Failed to fetch attestation: not a hex string: {attestation_hex[0:32]}") from e
        return AttestationRecord(message_hash=message_hash, status=AttestationStatus.complete, attestation=attestation)

    logger.debug("Attestation status for %s: %s", message_hash, status)
    return AttestationRecord(message_hash=message_hash, status=AttestationStatus.pending)


def check_attestation_status(
    message_hash: str | bytes,
    api_base_url: str = IRIS_API_SANDBOX_URL,
) -> AttestationRecord:
    """One-shot attestation check without polling.

    :raise AttestationFetchError:
        See :py:func:`fetch_attestation_status`

    :raise ValueError:
        ``message_hash`` is not a 32 byte hash
    """
    return fetch_attestation_status(message_hash, api_base_url=api_base_url)


def poll_attestation(
    message_hash: str | bytes,
    policy: BackoffPolicy | None = None,
    api_base_url: str = IRIS_API_SANDBOX_URL,
    fetch_status: StatusFetcher | None = None,
    stop_event: threading.Event | None = None,
    on_attempt: AttemptCallback | None = None,
) -> bytes:
    """Poll until the attestation of a message is complete.

    Up to ``policy.max_attempts`` status requests are made. Between attempts
    the poller waits on ``stop_event`` for the next backoff delay.

    :param message_hash:
        ``keccak256`` of the CCTP message

    :param policy:
        Attempt budget and backoff, default 60 attempts from 5s to 30s

    :param api_base_url:
        Attestation endpoint, ignored if ``fetch_status`` is given

    :param fetch_status:
        Replace the HTTP status lookup

    :param stop_event:
        Set from another thread to abort a wait

    :param on_attempt:
        Progress callback

    :return:
        Attestation bytes

    :raise PollTimeout:
        Attempts exhausted

    :raise PollCancelled:
        ``stop_event`` was set

    :raise AttestationFetchError:
        A single status request failed

    :raise ValueError:
        ``message_hash`` is not a 32 byte hash
    """
    if policy is None:
        policy = BackoffPolicy()

    message_hash = normalise_message_hash(message_hash)

    if fetch_status is None:
        with requests.Session() as session:
            return poll_attestation(
                message_hash,
                policy=policy,
                fetch_status=lambda h: fetch_attestation_status(h, api_base_url=api_base_url, session=session),
                stop_event=stop_event,
                on_attempt=on_attempt,
            )

    if stop_event is None:
        stop_event = threading.Event()

    delays = policy.delays()

    for attempt in range(1, policy.max_attempts + 1):
        logger.info("Polling attestation for %s, attempt %d/%d", message_hash, attempt, policy.max_attempts)
        if on_attempt is not None:
            on_attempt(attempt, policy.max_attempts)

        record = fetch_status(message_hash)

        if record.is_complete:
            logger.info("Attestation received for %s after %d attempts", message_hash, attempt)
            return record.attestation

        if attempt < policy.max_attempts:
            delay = next(delays)
            logger.info("Waiting %.1fs before next attestation attempt", delay)
            if stop_event.wait(delay):
                raise PollCancelled(message_hash, attempt)

    raise PollTimeout(message_hash, policy.max_attempts)
