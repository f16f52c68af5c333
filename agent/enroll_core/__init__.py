"""
enroll_core — Hybrid-join MDM enrollment convergence agent v2.0
===============================================================
Architecture: single thread, fixed-sleep polling, restarted at boot by
Task Scheduler. All durable state lives in HKLM.

  constants.py     → Version, intervals, registry paths, commands
  config.py        → Paths, logging, config load/save, helpers
  registry.py      → WinRegistry (HKLM key/value access via winreg)
  flags.py         → FlagStore (reboot / verified / join-purpose markers)
  platform_win.py  → dsregcmd, sc.exe, wevtutil, reboot, autostart
  join_status.py   → JoinState + dsregcmd output classification
  enrollment.py    → EnrollmentConfigurator (MDM endpoint values)
  service_gate.py  → ServiceGate (suppress / restore the broker agent)
  verifier.py      → EnrollmentVerifier (success event polling)
  state.py         → ConvergenceState dataclass (per-run bookkeeping)
  http_client.py   → HTTP session with retry/pooling
  reporting.py     → StatusReporter (optional phase webhook)
  convergence.py   → ConvergenceLoop (the state machine)
  runner.py        → main() + auto-restart wrapper
"""
