"""
Windows-specific black boxes:
  - Join client (dsregcmd status / join)
  - Service control (sc.exe)
  - Enrollment event log query (wevtutil)
  - Forced reboot
  - Auto-start on boot (Task Scheduler, SYSTEM)

Nothing here raises on tool failure. Output that could not be obtained
comes back empty and the caller re-evaluates on its next poll.
"""

import os
import sys
import subprocess

from .constants import (
    JOIN_STATUS_CMD, JOIN_CMD, REBOOT_CMD, TASK_NAME, COMMAND_TIMEOUT_SEC,
)
from .config import log

_CONSOLE_ENCODING = "oem" if sys.platform == "win32" else None


# ─── Command runner ──────────────────────────────────────────────

def run_command(cmd, timeout=COMMAND_TIMEOUT_SEC):
    """Run a command to completion. Returns (returncode, stdout) or (None, "").

    Console tools write in the OEM code page; undecodable bytes become
    U+FFFD so localized output never aborts a poll.
    """
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, timeout=timeout,
            encoding=_CONSOLE_ENCODING, errors="replace",
        )
        return result.returncode, result.stdout or ""
    except (OSError, subprocess.SubprocessError) as e:
        log.warning("Command %s failed: %s", " ".join(cmd), e)
        return None, ""


# ─── Join client ─────────────────────────────────────────────────

def query_join_status():
    """Raw `dsregcmd /status` text ("" if the tool could not run)."""
    _, output = run_command(JOIN_STATUS_CMD)
    return output


def run_join_command():
    """Fire the join command and wait for it. The exit code is not inspected."""
    log.info("Running join command: %s", " ".join(JOIN_CMD))
    run_command(JOIN_CMD)


# ─── Reboot ──────────────────────────────────────────────────────

def reboot():
    log.info("Issuing forced reboot")
    run_command(REBOOT_CMD)


# ─── Service control (sc.exe) ────────────────────────────────────

class ScServiceControl:
    """Best-effort wrapper over sc.exe for a single service."""

    def __init__(self, service_name):
        self.service_name = service_name

    def query_state(self):
        """Return the STATE name (e.g. "RUNNING", "STOPPED") or "" if unknown."""
        _, output = run_command(["sc", "query", self.service_name], timeout=30)
        return parse_sc_state(output)

    def set_startup(self, mode):
        """mode: "auto" or "disabled"."""
        run_command(["sc", "config", self.service_name, "start=", mode], timeout=30)

    def start(self):
        run_command(["sc", "start", self.service_name], timeout=30)

    def stop(self):
        run_command(["sc", "stop", self.service_name], timeout=30)


def parse_sc_state(output):
    """Pull the state name out of `sc query` output.

        STATE              : 4  RUNNING
    """
    for line in (output or "").splitlines():
        if line.strip().upper().startswith("STATE") and ":" in line:
            parts = line.split(":", 1)[1].split()
            if len(parts) >= 2:
                return parts[1].upper()
    return ""


# ─── Event log query (wevtutil) ──────────────────────────────────

class WevtutilEventQuery:
    """Counts events with one id in one channel (at most one per call)."""

    def count_events(self, channel, event_id):
        cmd = [
            "wevtutil", "qe", channel,
            f"/q:*[System[(EventID={int(event_id)})]]",
            "/c:1", "/rd:true", "/f:text",
        ]
        returncode, output = run_command(cmd, timeout=60)
        if returncode != 0:
            return 0
        return output.count("Event[")


# ─── Auto-Start via Task Scheduler ──────────────────────────────

def setup_autostart():
    """Register this agent to run at boot as SYSTEM with highest privileges."""
    try:
        if sys.platform != "win32":
            return False

        if getattr(sys, 'frozen', False):
            exe_path = f'"{sys.executable}"'
        else:
            exe_path = f'"{sys.executable}" "{os.path.abspath(sys.argv[0])}"'

        cmd = [
            "schtasks", "/Create",
            "/TN", TASK_NAME,
            "/TR", exe_path,
            "/SC", "ONSTART",
            "/RU", "SYSTEM",
            "/RL", "HIGHEST",
            "/F",
        ]
        returncode, _ = run_command(cmd, timeout=15)
        if returncode == 0:
            log.info("Task Scheduler entry created: %s", TASK_NAME)
            return True
        log.warning("Could not create Task Scheduler entry %s", TASK_NAME)
        return False

    except Exception as e:
        log.warning("Could not set auto-start: %s", e)
        return False


def is_autostart_enabled():
    if sys.platform != "win32":
        return True
    returncode, _ = run_command(["schtasks", "/Query", "/TN", TASK_NAME], timeout=10)
    return returncode == 0
