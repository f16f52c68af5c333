"""
ConvergenceState — per-run bookkeeping for the convergence loop.

Nothing here is persisted; durable facts live in the flag store. These
values exist for the log and the status reporter only.
"""

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ConvergenceState:
    phase: str = "starting"
    started_at: float = field(default_factory=time.time)

    # ── Join purpose (classified once per run) ────────────────
    cloud_joined_by_purpose: bool = False

    # ── Join sub-loop ─────────────────────────────────────────
    join_attempts: int = 0
    last_join_state: Optional[str] = None
    last_domain_joined: Optional[str] = None
    last_cloud_joined: Optional[str] = None
    join_commands_issued: int = 0

    # ── Verification ──────────────────────────────────────────
    verify_attempts: int = 0

    def enter(self, phase):
        self.phase = phase

    def record_probe(self, join_state, domain_raw, cloud_raw):
        self.join_attempts += 1
        self.last_join_state = str(join_state)
        self.last_domain_joined = domain_raw
        self.last_cloud_joined = cloud_raw

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.started_at
