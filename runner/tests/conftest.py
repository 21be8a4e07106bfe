"""Shared fixtures for runner tests."""

import pytest

from runner.src.models.step import CommandOutput


class FakeExecutor:
    """Records commands instead of running them.

    ``results`` maps a command prefix (tuple) to the CommandOutput to return;
    anything else succeeds with empty output.
    """

    def __init__(self, results=None):
        self.results = results or {}
        self.commands = []
        self.envs = []
        self.dry_run = False

    def execute(self, command, cwd=None, env=None, timeout=None):
        command = tuple(command)
        self.commands.append(command)
        self.envs.append(dict(env or {}))
        for prefix, output in self.results.items():
            if command[:len(prefix)] == tuple(prefix):
                return output
        return CommandOutput(exit_code=0)

    def ran(self, *fragment):
        """True if any recorded command contains ``fragment`` as a contiguous run."""
        n = len(fragment)
        return any(
            command[i:i + n] == fragment
            for command in self.commands
            for i in range(len(command) - n + 1)
        )


class FakeClock:
    """Deterministic clock whose sleep() just advances time."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def clock():
    return FakeClock()
