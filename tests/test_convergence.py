"""
Scenario tests for the ConvergenceLoop state machine.

Every collaborator is faked; RecordingSleep stands in for wall-clock time
and raises StopLoop to end the unbounded loops.
"""

import pytest

from enroll_core.constants import (
    REBOOT_FLAG, ENROLLED_FLAG, CLOUD_PURPOSE_MARKER, FLAG_KEY_PATH,
    ENROLLMENT_ENTRIES,
)
from enroll_core.convergence import ConvergenceLoop
from enroll_core.enrollment import EnrollmentConfigurator
from enroll_core.flags import FlagStore
from enroll_core.join_status import JoinState
from enroll_core.service_gate import ServiceGate
from enroll_core.verifier import EnrollmentVerifier
from conftest import (
    FakeEventQuery, FakeReporter, FakeServiceControl, RecordingSleep,
    ScriptedProber, StopLoop,
)

TENANT = "tenant-0001"


class Host:
    """One simulated machine: registry, service, event log, reboot button."""

    def __init__(self, registry, join_states=(), event_counts=(), event_default=0,
                 service_state="RUNNING", service_script=(), gated=True, max_sleeps=None):
        self.registry = registry
        self.flags = FlagStore(registry)
        self.prober = ScriptedProber(join_states)
        self.events = FakeEventQuery(event_counts, default=event_default)
        self.control = FakeServiceControl(service_script, initial=service_state)
        self.sleep = RecordingSleep(max_calls=max_sleeps)
        self.reporter = FakeReporter()
        self.gated = gated
        self.reboots = []
        self.exits = []
        self.joins = 0

    def _reboot(self):
        # flag must already be durable when the reboot fires
        self.reboots.append(self.flags.flag_exists(REBOOT_FLAG))

    def _run_join(self):
        self.joins += 1

    def loop(self):
        gate = ServiceGate(self.control, sleep=self.sleep) if self.gated else None
        return ConvergenceLoop(
            flags=self.flags,
            prober=self.prober,
            configurator=EnrollmentConfigurator(self.registry, tenant_id=TENANT),
            verifier=EnrollmentVerifier(self.events, sleep=self.sleep),
            gate=gate,
            reboot=self._reboot,
            run_join=self._run_join,
            exit_process=self.exits.append,
            sleep=self.sleep,
            reporter=self.reporter,
        )


class TestHybridJoinSubloop:
    def test_both_joined_sets_flag_waits_and_reboots_once(self, registry):
        host = Host(registry, join_states=[JoinState.BOTH_JOINED])
        host.loop().run()

        assert host.flags.flag_exists(REBOOT_FLAG)
        assert host.reboots == [True]
        assert host.exits == [0]
        assert host.sleep.calls[-1] == 120
        assert "rebooting" in host.reporter.phases

    def test_reinvocation_after_reboot_flag_never_reboots_again(self, registry):
        host = Host(registry, join_states=[JoinState.BOTH_JOINED] * 5, event_default=1)
        host.loop().run()
        host.loop().run()
        host.loop().run()

        assert len(host.reboots) == 1
        assert host.prober.calls == 1

    def test_domain_only_runs_join_then_reprobes(self, registry):
        host = Host(
            registry,
            join_states=[JoinState.DOMAIN_ONLY_NOT_CLOUD, JoinState.NEITHER_OR_UNKNOWN],
            max_sleeps=2,
        )
        loop = host.loop()
        with pytest.raises(StopLoop):
            loop.run()

        assert host.joins == 1
        assert host.sleep.calls == [60, 30]
        assert host.prober.calls == 2
        assert host.reboots == []
        assert not host.flags.flag_exists(REBOOT_FLAG)
        assert loop.state.join_commands_issued == 1

    def test_unknown_state_takes_no_action_and_logs_raw_values(self, registry, enroll_log):
        host = Host(registry, join_states=[JoinState.NEITHER_OR_UNKNOWN] * 3, max_sleeps=3)
        loop = host.loop()
        with pytest.raises(StopLoop):
            loop.run()

        assert host.joins == 0
        assert host.sleep.calls == [30, 30, 30]
        assert loop.state.join_attempts == 3
        assert any("DomainJoined=None" in r.getMessage() for r in enroll_log.records)

    def test_join_eventually_converges_to_reboot(self, registry):
        host = Host(registry, join_states=[
            JoinState.NEITHER_OR_UNKNOWN,
            JoinState.DOMAIN_ONLY_NOT_CLOUD,
            JoinState.DOMAIN_ONLY_NOT_CLOUD,
            JoinState.BOTH_JOINED,
        ])
        loop = host.loop()
        loop.run()

        assert host.sleep.calls == [30, 60, 60, 120]
        assert host.joins == 2
        assert len(host.reboots) == 1
        assert loop.state.join_attempts == 4

    def test_unpersistable_flag_still_reboots(self, registry):
        host = Host(registry, join_states=[JoinState.BOTH_JOINED], gated=False)
        registry.fail_writes = True
        host.loop().run()

        assert host.reboots == [False]
        assert host.exits == [0]

    def test_reboot_flag_present_skips_subloop_whatever_join_state(self, registry):
        FlagStore(registry).set_flag(REBOOT_FLAG)
        host = Host(registry, join_states=[JoinState.BOTH_JOINED], event_counts=[1])
        host.loop().run()

        assert host.prober.calls == 0
        assert host.reboots == []


class TestVerification:
    def test_waits_indefinitely_and_leaves_gate_alone(self, registry):
        FlagStore(registry).set_flag(REBOOT_FLAG)
        host = Host(registry, event_default=0, max_sleeps=25)
        with pytest.raises(StopLoop):
            host.loop().run()

        assert host.sleep.calls == [30] * 25
        assert host.control.count("start") == 0
        assert host.control.count("startup", "auto") == 0
        assert not host.flags.flag_exists(ENROLLED_FLAG)

    def test_success_sets_flag_then_restores_after_grace(self, registry):
        FlagStore(registry).set_flag(REBOOT_FLAG)
        host = Host(registry, event_counts=[0, 1])
        host.loop().run()

        assert host.flags.flag_exists(ENROLLED_FLAG)
        assert host.sleep.calls == [30, 180]
        assert host.control.count("start") == 1
        assert host.control.query_state() == "RUNNING"
        assert host.reporter.phases[-1] == "enrolled"

    def test_already_running_service_is_not_restored_again(self, registry):
        FlagStore(registry).set_flag(REBOOT_FLAG)
        # stopped for the suppress check, back up by the time verification ends
        host = Host(registry, event_counts=[1], service_script=["STOPPED", "RUNNING"])
        host.loop().run()

        assert host.control.count("start") == 0
        assert host.flags.flag_exists(ENROLLED_FLAG)

    def test_ungated_verification_touches_no_service(self, registry):
        FlagStore(registry).set_flag(REBOOT_FLAG)
        host = Host(registry, event_counts=[1], gated=False)
        host.loop().run()

        assert host.control.calls == []
        assert not host.flags.flag_exists(ENROLLED_FLAG)
        assert host.sleep.calls == []


class TestStartupSequencing:
    def test_hybrid_purpose_suppresses_gate_before_anything_else(self, registry):
        host = Host(registry, join_states=[JoinState.BOTH_JOINED])
        host.loop().run()

        assert host.control.calls[:2] == [("startup", "disabled"), ("stop",)]
        assert host.reporter.phases[:3] == ["starting", "gate-suppressed", "configured"]

    def test_cloud_purpose_restores_and_never_enters_subloop(self, registry):
        FlagStore(registry).set_flag(CLOUD_PURPOSE_MARKER)
        host = Host(registry, join_states=[JoinState.BOTH_JOINED],
                    service_state="STOPPED", event_counts=[1])
        loop = host.loop()
        loop.run()

        assert loop.state.cloud_joined_by_purpose
        assert host.control.calls[:2] == [("startup", "auto"), ("start",)]
        assert host.control.count("stop") == 0
        assert host.prober.calls == 0
        assert host.reboots == []
        assert not host.flags.flag_exists(REBOOT_FLAG)

    def test_configurator_runs_every_invocation(self, registry):
        FlagStore(registry).set_flag(REBOOT_FLAG)
        host = Host(registry, event_counts=[1])
        host.loop().run()

        tenant_values = {
            name: value for (path, name, value) in registry.writes if path.endswith(TENANT)
        }
        assert tenant_values == dict(ENROLLMENT_ENTRIES)

    def test_enrolled_host_only_ensures_service_is_available(self, registry):
        flags = FlagStore(registry)
        flags.set_flag(REBOOT_FLAG)
        flags.set_flag(ENROLLED_FLAG)
        host = Host(registry, join_states=[JoinState.DOMAIN_ONLY_NOT_CLOUD],
                    service_state="STOPPED")
        host.loop().run()

        assert host.control.count("stop") == 0
        assert host.control.count("start") == 1
        assert host.events.calls == []
        assert host.prober.calls == 0
        assert registry.read_value(FLAG_KEY_PATH, ENROLLED_FLAG) == "1"
