"""
Optional phase reporting to a provisioning dashboard.

Fire-and-forget: a failed report is logged and dropped. Reporting never
changes what the convergence loop does next.
"""

import platform
import time

import requests

from .constants import AGENT_VERSION, STATUS_TIMEOUT_SEC
from .config import log
from . import http_client


class StatusReporter:
    def __init__(self, status_url=None, session=None):
        self._url = status_url.rstrip("/") if status_url else None
        self._session = session

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def report(self, phase, attempt=0, detail=""):
        """POST one phase update. Returns True on a 2xx response."""
        if not self._url:
            return False

        payload = {
            "hostname": platform.node(),
            "phase": phase,
            "attempt": attempt,
            "detail": detail,
            "agentVersion": AGENT_VERSION,
            "ts": time.time(),
        }
        session = self._session or http_client.http
        try:
            resp = session.post(self._url, json=payload, timeout=STATUS_TIMEOUT_SEC)
            if 200 <= resp.status_code < 300:
                return True
            log.warning("Status report failed: HTTP %d — %s", resp.status_code, resp.text[:200])
            return False
        except requests.RequestException as e:
            log.warning("Status report network error: %s", e)
            return False
