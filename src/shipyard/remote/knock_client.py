"""
Port Knock Client: TCP knock sender run before opening an SSH session.

Uses stdlib ``socket`` to send TCP SYN packets (connect + immediate close)
to a sequence of ports. A host protected by port knocking tracks the
knocks (e.g. iptables ``recent``) and opens the SSH port briefly.
"""

import asyncio
import logging
import socket
import time
from typing import Sequence

logger = logging.getLogger(__name__)

# Time the remote firewall needs to register the last knock
SETTLE_SECONDS = 1.0


class KnockClient:
    """Send a port-knock sequence to a remote host.

    Args:
        host: Target hostname or IP address.
        sequence: Ordered ports to knock.
        delay: Seconds to wait between knocks (default 0.5).
    """

    def __init__(self, host: str, sequence: Sequence[int], delay: float = 0.5):
        self.host = host
        self.sequence = list(sequence)
        self.delay = delay

    def knock(self) -> bool:
        """Send the knock sequence. Returns True if every knock was sent."""
        for index, port in enumerate(self.sequence):
            try:
                sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                sock.settimeout(1)
                # The result does not matter: knocked ports are usually
                # dropped, the SYN alone registers the knock.
                sock.connect_ex((self.host, port))
                sock.close()
                logger.debug("Knocked on %s:%d", self.host, port)
            except OSError as exc:
                logger.warning("Knock on %s:%d failed: %s", self.host, port, exc)
                return False
            if index < len(self.sequence) - 1:
                time.sleep(self.delay)

        logger.info("Knock sequence completed for %s: %s", self.host, self.sequence)
        return True

    async def knock_async(self, settle: float = SETTLE_SECONDS) -> bool:
        """Knock from a worker thread, then wait for the firewall to settle."""
        loop = asyncio.get_running_loop()
        if not await loop.run_in_executor(None, self.knock):
            return False
        await asyncio.sleep(settle)
        return True
