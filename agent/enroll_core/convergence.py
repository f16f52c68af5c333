"""
ConvergenceLoop — drives one host from unenrolled to verified MDM enrollment.

Per invocation:
  1. [gate] classify join purpose, then suppress or restore the gated service
  2. converge the enrollment endpoint registry values
  3. reboot flag absent (and hybrid by purpose) → join sub-loop, which only
     leaves via the one-time reboot
     reboot flag present (or cloud by purpose)  → wait for the enrollment event
  4. [gate] mark enrollment verified, wait out the grace period, restore

The reboot is guarded by check-then-set of the reboot flag *before* the
reboot call. A crash between the flag write and the reboot leaves the host
un-rebooted with the flag set; that window is accepted and needs a manual
reboot. Reversing the order would instead allow duplicate reboots.
"""

import sys
import time

from .constants import (
    REBOOT_FLAG, ENROLLED_FLAG, CLOUD_PURPOSE_MARKER,
    JOIN_POLL_INTERVAL_SEC, REBOOT_GRACE_SEC, JOIN_SETTLE_SEC, RESTORE_GRACE_SEC,
)
from .config import log
from .join_status import JoinState
from .state import ConvergenceState
from . import platform_win


class ConvergenceLoop:
    def __init__(self, flags, prober, configurator, verifier, gate=None,
                 reboot=platform_win.reboot, run_join=platform_win.run_join_command,
                 exit_process=sys.exit, sleep=time.sleep, reporter=None,
                 join_poll_interval=JOIN_POLL_INTERVAL_SEC,
                 reboot_grace=REBOOT_GRACE_SEC,
                 join_settle=JOIN_SETTLE_SEC,
                 restore_grace=RESTORE_GRACE_SEC):
        self._flags = flags
        self._prober = prober
        self._configurator = configurator
        self._verifier = verifier
        self._gate = gate
        self._reboot = reboot
        self._run_join = run_join
        self._exit_process = exit_process
        self._sleep = sleep
        self._reporter = reporter
        self._join_poll_interval = join_poll_interval
        self._reboot_grace = reboot_grace
        self._join_settle = join_settle
        self._restore_grace = restore_grace
        self.state = ConvergenceState()

    # ─── Top level ───────────────────────────────────────────

    def run(self):
        self._enter("starting")

        enrolled = self._flags.flag_exists(ENROLLED_FLAG)

        if self._gate is not None:
            self.state.cloud_joined_by_purpose = self._flags.flag_exists(CLOUD_PURPOSE_MARKER)
            if self.state.cloud_joined_by_purpose or enrolled:
                log.info("Gate: %s — restoring %s",
                         "cloud joined by purpose" if self.state.cloud_joined_by_purpose
                         else "enrollment already verified",
                         self._gate.service_name)
                self._gate.restore()
                self._enter("gate-restored")
            else:
                log.info("Gate: hybrid join by purpose — suppressing %s", self._gate.service_name)
                self._gate.suppress()
                self._enter("gate-suppressed")

        writes = self._configurator.ensure_configured()
        self._enter("configured", detail=f"{writes} registry writes")

        if enrolled:
            log.info("Enrollment already verified on a previous run — nothing to do")
            self._enter("enrolled")
            return

        if self._flags.flag_exists(REBOOT_FLAG):
            log.info("Reboot flag present — skipping join convergence")
        elif self.state.cloud_joined_by_purpose:
            log.info("Cloud joined by purpose — skipping hybrid join convergence")
        else:
            self.converge_join()
            return

        self.verify_enrollment()

    # ─── Hybrid join sub-loop ────────────────────────────────

    def converge_join(self):
        """Poll join status until both joins are done, then reboot once."""
        log.info("Starting hybrid join convergence (poll=%ds)", self._join_poll_interval)
        while True:
            if self.join_step() is JoinState.BOTH_JOINED:
                return

    def join_step(self):
        """One probe plus its corrective action and wait. Returns the JoinState."""
        join_state = self._prober.probe()
        domain = self._prober.last_domain_joined
        cloud = self._prober.last_cloud_joined
        self.state.record_probe(join_state, domain, cloud)
        attempt = self.state.join_attempts

        if join_state is JoinState.BOTH_JOINED:
            log.info("Attempt %d: domain and cloud joined", attempt)
            self._reboot_once()

        elif join_state is JoinState.DOMAIN_ONLY_NOT_CLOUD:
            log.info("Attempt %d: domain joined, cloud not joined — running join", attempt)
            self._enter("join-attempt", attempt=attempt)
            self._run_join()
            self.state.join_commands_issued += 1
            self._sleep(self._join_settle)

        else:
            log.info("Attempt %d: join state unknown (DomainJoined=%s, AzureAdJoined=%s)",
                     attempt, domain, cloud)
            self._sleep(self._join_poll_interval)

        return join_state

    def _reboot_once(self):
        if not self._flags.flag_exists(REBOOT_FLAG):
            if not self._flags.set_flag(REBOOT_FLAG):
                log.error("Reboot flag could not be persisted — rebooting anyway")
        self._enter("rebooting")
        log.info("Rebooting in %ds", self._reboot_grace)
        self._sleep(self._reboot_grace)
        self._reboot()
        self._exit_process(0)

    # ─── Verification ────────────────────────────────────────

    def verify_enrollment(self):
        self._enter("verifying")
        self.state.verify_attempts = self._verifier.await_success_signal()

        if self._gate is not None:
            self._flags.set_flag(ENROLLED_FLAG)
            log.info("Enrollment verified — restoring %s in %ds",
                     self._gate.service_name, self._restore_grace)
            self._sleep(self._restore_grace)
            if self._gate.is_restored():
                log.info("Service %s already running — no restore needed", self._gate.service_name)
            else:
                self._gate.restore()

        self._enter("enrolled")
        log.info("MDM enrollment verified after %.0fs", self.state.elapsed_seconds)

    # ─── Helpers ─────────────────────────────────────────────

    def _enter(self, phase, attempt=0, detail=""):
        self.state.enter(phase)
        if self._reporter is not None:
            self._reporter.report(phase, attempt=attempt, detail=detail)
