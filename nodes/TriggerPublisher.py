"""
remote-gateway-pg3x NodeServer/Plugin for EISY/Polisy

(C) 2025

TriggerPublisher

Sends relay trigger requests to the remote gateway. Requests run on a
daemon thread; callers never wait for, or hear about, the result.
"""

# std libraries
from threading import Thread
from typing import Optional

# external libraries
from udi_interface import LOGGER
import requests

# personal libraries
from nodes.GateDevice import METHOD_POST

# constants
DEFAULT_TIMEOUT = 10


class TriggerPublisher:
    """Fire-and-forget HTTP trigger sender."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout


    def publish(self, url: Optional[str], method: Optional[str] = None,
                payload: Optional[str] = None) -> bool:
        """Starts a trigger request and returns immediately.

        POST sends the payload as the body, any other method is a GET and
        the payload is ignored.

        Returns:
            bool: always True, delivery is not confirmed.
        """
        if not url:
            LOGGER.error("trigger publish: no url configured, nothing sent")
            return True
        LOGGER.debug(f"trigger publish: {method or 'GET'} {url}")
        Thread(
            target=self._send, args=(url, method, payload), name="TriggerPublish", daemon=True
        ).start()
        return True


    def _send(self, url: str, method: Optional[str], payload: Optional[str]):
        """Performs the request; transport errors are logged and dropped."""
        try:
            if (method or "").upper() == METHOD_POST:
                res = requests.post(url, data=payload, timeout=self.timeout)
            else:
                res = requests.get(url, timeout=self.timeout)
        except requests.RequestException as ex:
            LOGGER.error(f"trigger {url}: {ex}")
            return
        if res.ok:
            LOGGER.info(f"trigger {url}: {res.status_code} {res.text}")
        else:
            LOGGER.error(f"trigger {url}: {res.status_code} {res.text}")
