"""
Hybrid-join MDM Enrollment Agent
================================
Runs at every boot (Task Scheduler, SYSTEM) until the host is hybrid
joined, rebooted once, and confirmed enrolled in MDM.

Usage:
    python mdm_enroll.py
"""

import sys

from enroll_core.runner import run_with_auto_restart


if __name__ == "__main__":
    run_with_auto_restart()
    sys.exit(0)
