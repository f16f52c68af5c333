"""
In-memory stand-ins for the registry, sc.exe, wevtutil, dsregcmd and sleep.
"""

import logging

import pytest

from enroll_core.join_status import JoinState


class StopLoop(Exception):
    """Raised by RecordingSleep to break out of an unbounded poll loop."""


class RecordingSleep:
    def __init__(self, max_calls=None):
        self.calls = []
        self.max_calls = max_calls

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.max_calls is not None and len(self.calls) >= self.max_calls:
            raise StopLoop()


class MemoryRegistry:
    def __init__(self):
        self.keys = {}
        self.writes = []
        self.fail_writes = False

    def key_exists(self, path):
        return path in self.keys

    def create_key(self, path):
        parts = path.split("\\")
        for i in range(1, len(parts) + 1):
            self.keys.setdefault("\\".join(parts[:i]), {})
        return True

    def read_value(self, path, name):
        return self.keys.get(path, {}).get(name)

    def write_value(self, path, name, value):
        if self.fail_writes:
            return False
        self.create_key(path)
        self.keys[path][name] = str(value)
        self.writes.append((path, name, str(value)))
        return True

    def list_subkeys(self, path):
        prefix = path + "\\"
        return sorted(
            k[len(prefix):] for k in self.keys
            if k.startswith(prefix) and "\\" not in k[len(prefix):]
        )


class FakeServiceControl:
    """Scripted query results first, then the state the last request implies."""

    def __init__(self, scripted_states=(), initial="RUNNING"):
        self.service_name = "FakeBrokerAgent"
        self._scripted = list(scripted_states)
        self._natural = initial
        self.calls = []

    def query_state(self):
        self.calls.append(("query",))
        if self._scripted:
            return self._scripted.pop(0)
        return self._natural

    def set_startup(self, mode):
        self.calls.append(("startup", mode))

    def start(self):
        self.calls.append(("start",))
        self._natural = "RUNNING"

    def stop(self):
        self.calls.append(("stop",))
        self._natural = "STOPPED"

    def count(self, *call):
        return self.calls.count(call)


class FakeEventQuery:
    def __init__(self, counts=(), default=0):
        self._counts = list(counts)
        self._default = default
        self.calls = []

    def count_events(self, channel, event_id):
        self.calls.append((channel, event_id))
        if self._counts:
            return self._counts.pop(0)
        return self._default


class ScriptedProber:
    _RAW = {
        JoinState.BOTH_JOINED: ("YES", "YES"),
        JoinState.DOMAIN_ONLY_NOT_CLOUD: ("YES", "NO"),
        JoinState.NEITHER_OR_UNKNOWN: (None, None),
    }

    def __init__(self, states, default=JoinState.NEITHER_OR_UNKNOWN):
        self._states = list(states)
        self._default = default
        self.calls = 0
        self.last_domain_joined = None
        self.last_cloud_joined = None

    def probe(self):
        self.calls += 1
        state = self._states.pop(0) if self._states else self._default
        self.last_domain_joined, self.last_cloud_joined = self._RAW[state]
        return state


class FakeReporter:
    def __init__(self):
        self.phases = []

    def report(self, phase, attempt=0, detail=""):
        self.phases.append(phase)
        return True


@pytest.fixture
def registry():
    return MemoryRegistry()


@pytest.fixture
def enroll_log(caplog):
    caplog.set_level(logging.INFO, logger="mdmenroll")
    return caplog
