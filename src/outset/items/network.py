# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Network readiness gate for first-boot processing."""

import logging
import socket
import time
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

# Any routable address works; connecting a UDP socket sends nothing
PROBE_ADDRESS = ("192.0.2.1", 53)
POLL_INTERVAL = 1.0


class NetworkTimeoutError(Exception):
    """Raised when the network does not come up before the deadline."""

    pass


class NetworkStatus(Enum):
    READY = "ready"
    TIMED_OUT = "timed_out"


def is_network_up() -> bool:
    """Check whether a default route exists.

    A UDP connect only consults the routing table, so success means the
    network is reachable without a connection having to be established.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(PROBE_ADDRESS)
        return True
    except OSError:
        return False


class NetworkGate:
    """Polls reachability once per second until ready or timed out."""

    def __init__(
        self,
        check: Callable[[], bool] = is_network_up,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.check = check
        self.sleep = sleep
        self.clock = clock

    def wait_for_network(self, timeout_seconds: float) -> NetworkStatus:
        deadline = self.clock() + timeout_seconds
        while True:
            logger.debug(f"Waiting for network: {timeout_seconds} seconds")
            if self.check():
                return NetworkStatus.READY
            if self.clock() >= deadline:
                logger.error(f"No network connectivity detected after {timeout_seconds} seconds")
                return NetworkStatus.TIMED_OUT
            logger.debug("Waiting...")
            self.sleep(POLL_INTERVAL)

    def require_network(self, timeout_seconds: float) -> None:
        """Block until the network is ready.

        Raises:
            NetworkTimeoutError: If the deadline passes first.
        """
        if self.wait_for_network(timeout_seconds) == NetworkStatus.TIMED_OUT:
            raise NetworkTimeoutError(
                f"network not reachable after {timeout_seconds} seconds"
            )
