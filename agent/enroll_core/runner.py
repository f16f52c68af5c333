"""
Entry point and auto-restart wrapper.
"""

import time

from .constants import (
    AGENT_VERSION, GATED_SERVICE_NAME,
    JOIN_POLL_INTERVAL_SEC, REBOOT_GRACE_SEC, JOIN_SETTLE_SEC,
    VERIFY_POLL_INTERVAL_SEC, RESTORE_GRACE_SEC, SERVICE_POLL_INTERVAL_SEC,
)
from .config import log, safe_print, setup_logging, load_config
from . import http_client
from . import platform_win
from .registry import WinRegistry
from .flags import FlagStore
from .join_status import JoinStatusProber
from .enrollment import EnrollmentConfigurator
from .service_gate import ServiceGate
from .verifier import EnrollmentVerifier
from .reporting import StatusReporter
from .convergence import ConvergenceLoop


def build_loop(config, registry=None, sleep=time.sleep):
    """Wire the real Windows collaborators into a ConvergenceLoop."""
    registry = registry or WinRegistry()

    gate = None
    if config.get("serviceGateEnabled", True):
        control = platform_win.ScServiceControl(config.get("serviceName", GATED_SERVICE_NAME))
        gate = ServiceGate(
            control,
            poll_interval=config.get("servicePollIntervalSec", SERVICE_POLL_INTERVAL_SEC),
            sleep=sleep,
        )

    verifier = EnrollmentVerifier(
        platform_win.WevtutilEventQuery(),
        poll_interval=config.get("verifyPollIntervalSec", VERIFY_POLL_INTERVAL_SEC),
        sleep=sleep,
    )

    return ConvergenceLoop(
        flags=FlagStore(registry),
        prober=JoinStatusProber(),
        configurator=EnrollmentConfigurator(registry, tenant_id=config.get("tenantId")),
        verifier=verifier,
        gate=gate,
        sleep=sleep,
        reporter=StatusReporter(config.get("statusUrl")),
        join_poll_interval=config.get("joinPollIntervalSec", JOIN_POLL_INTERVAL_SEC),
        reboot_grace=config.get("rebootGraceSec", REBOOT_GRACE_SEC),
        join_settle=config.get("joinSettleSec", JOIN_SETTLE_SEC),
        restore_grace=config.get("restoreGraceSec", RESTORE_GRACE_SEC),
    )


def main():
    """Primary agent entry point."""
    setup_logging()
    safe_print("Hybrid MDM Enrollment v" + AGENT_VERSION)
    safe_print()

    config = load_config()
    if config is None:
        log.info("No config file — using built-in defaults")
        config = {}
    else:
        log.info("Loaded config (tenant: %s, gate: %s)",
                 config.get("tenantId", "auto"), config.get("serviceGateEnabled", True))

    if not platform_win.is_autostart_enabled():
        platform_win.setup_autostart()

    build_loop(config).run()


def run_with_auto_restart():
    """
    Wrapper that auto-restarts on crash. Never gives up.
    Crash counter resets if the agent ran for 2+ minutes (not a boot-loop).
    """
    crash_count = 0
    crash_window = 120
    max_rapid_crashes = 10

    while True:
        start_time = time.time()
        try:
            main()
            break
        except KeyboardInterrupt:
            safe_print("\nAgent stopped by user.")
            break
        except SystemExit as e:
            if str(e) == "0":
                break
            log.error("Agent SystemExit: %s", e)
        except Exception as e:
            elapsed = time.time() - start_time
            log.error("Agent crashed after %.0fs: %s", elapsed, e, exc_info=True)

            if elapsed > crash_window:
                crash_count = 0
            crash_count += 1

            if crash_count >= max_rapid_crashes:
                wait = 120
                log.warning("Many rapid crashes (%d). Waiting %ds...", crash_count, wait)
            else:
                wait = min(10 * crash_count, 60)

            log.info("Restarting in %ds (crash %d)...", wait, crash_count)
            time.sleep(wait)

            http_client.http = http_client.reset_session(http_client.http)
