"""
Partition existence probe.

Checks whether a partition location exists before it is queried:
    - http(s):// locations: HEAD request, exists only on HTTP 200
    - anything else: local filesystem, exists only if it is a regular file

Transport errors and timeouts count as "does not exist"; the caller decides
whether that is a silent skip or a client error.

Exports:
    IPartitionProbe: Interface for dependency injection
    PartitionProbe: httpx/pathlib implementation
"""

from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "PartitionProbe")


class IPartitionProbe(ABC):
    """Interface for partition existence checks."""

    @abstractmethod
    def exists(self, location: str) -> bool:
        """Return True when the partition file can be read."""
        pass

    def close(self) -> None:
        """Release transport resources."""
        pass


class PartitionProbe(IPartitionProbe):
    """
    Existence probe for local paths and remote URLs.

    One httpx.Client is shared by all probes of the process; httpx clients
    are safe to use from several threads.
    """

    DEFAULT_TIMEOUT = 10.0  # seconds

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, client: httpx.Client = None):
        """
        Initialize probe.

        Args:
            timeout: HTTP request timeout in seconds
            client: Optional preconfigured client (tests use httpx.MockTransport)
        """
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    @staticmethod
    def is_remote(location: str) -> bool:
        return location.startswith(("http://", "https://"))

    def exists(self, location: str) -> bool:
        if not self.is_remote(location):
            found = Path(location).is_file()
            if not found:
                logger.debug(f"Partition file not found: {location}")
            return found

        try:
            response = self._client.head(location)
        except httpx.TimeoutException:
            logger.warning(f"HEAD timeout after {self.timeout}s: {location}")
            return False
        except httpx.RequestError as e:
            logger.warning(f"HEAD request error for {location}: {e}")
            return False

        if response.status_code != 200:
            logger.debug(f"HEAD {location} returned {response.status_code}")
            return False
        return True

    def close(self) -> None:
        self._client.close()
