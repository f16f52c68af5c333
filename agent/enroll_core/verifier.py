"""
Enrollment verifier — waits for the MDM "enrollment succeeded" event.
"""

import time

from .constants import (
    ENROLLMENT_EVENT_CHANNEL, ENROLLMENT_SUCCESS_EVENT_ID, VERIFY_POLL_INTERVAL_SEC,
)
from .config import log


class EnrollmentVerifier:
    def __init__(self, event_query, channel=ENROLLMENT_EVENT_CHANNEL,
                 event_id=ENROLLMENT_SUCCESS_EVENT_ID,
                 poll_interval=VERIFY_POLL_INTERVAL_SEC, sleep=time.sleep):
        self._event_query = event_query
        self._channel = channel
        self._event_id = event_id
        self._poll_interval = poll_interval
        self._sleep = sleep

    def check_once(self) -> bool:
        try:
            count = self._event_query.count_events(self._channel, self._event_id)
        except Exception as e:
            log.warning("Event log query failed: %s", e)
            return False
        return count >= 1

    def await_success_signal(self):
        """Poll until the success event shows up. Returns the attempt count."""
        attempt = 0
        while True:
            attempt += 1
            if self.check_once():
                log.info("Enrollment event %d found (attempt %d)", self._event_id, attempt)
                return attempt
            log.info("Enrollment event %d not found yet (attempt %d) — retrying in %ds",
                     self._event_id, attempt, self._poll_interval)
            self._sleep(self._poll_interval)
