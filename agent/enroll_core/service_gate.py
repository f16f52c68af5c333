"""
ServiceGate — keeps the session-broker-facing service off while the host
enrolls, and turns it back on afterwards.

Both directions reassert the startup mode and the start/stop request on
every poll, because the service manager may race us with its own start
attempts. There is no timeout: a host left half-gated is unusable, so the
gate keeps trying.
"""

import time

from .constants import SERVICE_POLL_INTERVAL_SEC
from .config import log

RUNNING = "RUNNING"
STOPPED = "STOPPED"


class ServiceGate:
    def __init__(self, control, poll_interval=SERVICE_POLL_INTERVAL_SEC, sleep=time.sleep):
        self._control = control
        self._poll_interval = poll_interval
        self._sleep = sleep

    @property
    def service_name(self):
        return getattr(self._control, "service_name", "?")

    def is_restored(self) -> bool:
        return self._control.query_state() == RUNNING

    def suppress(self):
        """Disable and stop the service; return once it reports STOPPED."""
        attempt = 0
        while True:
            attempt += 1
            self._control.set_startup("disabled")
            self._control.stop()
            state = self._control.query_state()
            if state == STOPPED:
                log.info("Service %s stopped and disabled (attempt %d)", self.service_name, attempt)
                return
            log.info("Service %s still %s — reasserting stop (attempt %d)",
                     self.service_name, state or "UNKNOWN", attempt)
            self._sleep(self._poll_interval)

    def restore(self):
        """Set the service to automatic and start it; return once RUNNING."""
        attempt = 0
        while True:
            attempt += 1
            self._control.set_startup("auto")
            self._control.start()
            state = self._control.query_state()
            if state == RUNNING:
                log.info("Service %s running and automatic (attempt %d)", self.service_name, attempt)
                return
            log.info("Service %s still %s — reasserting start (attempt %d)",
                     self.service_name, state or "UNKNOWN", attempt)
            self._sleep(self._poll_interval)
