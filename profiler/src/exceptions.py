"""Errors raised while setting up, recording or reading CPU profiles."""

from pathlib import Path


class ProfilingError(Exception):
    """Base class for profiling failures. All of them are fatal."""


class ProfileOutputError(ProfilingError):
    """The profile output file could not be created."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"could not create CPU profile {path}: {reason}")


class ProfilerStartError(ProfilingError):
    """The CPU profiler could not be enabled."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"could not start CPU profile: {reason}")


class ProfileReadError(ProfilingError):
    """A saved profile could not be loaded."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"could not read profile {path}: {reason}")
