"""CPU profile recording.

Wraps the ``spprof`` sampling profiler in a start/stop session that claims
its output file up front, so a run that cannot save its profile never
starts computing.
"""

from pathlib import Path
from typing import Optional, Union

import spprof
import structlog

from .exceptions import ProfileOutputError, ProfilerStartError

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_MS = 10


class CPUProfileSession:
    """Sample the CPU usage of the enclosed block into ``output_path``.

    The file is created before sampling starts. On stop the samples are
    saved as a speedscope profile over the claimed file.

    Usage:
        with CPUProfileSession("cpu_profile.json"):
            run_workload()
    """

    def __init__(self, output_path: Union[str, Path], interval_ms: int = DEFAULT_INTERVAL_MS):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got: {interval_ms}")
        self.output_path = Path(output_path)
        self.interval_ms = interval_ms
        self._active = False

    @property
    def active(self) -> bool:
        """Whether the profiler is currently sampling."""
        return self._active

    def start(self) -> "CPUProfileSession":
        """
        Create the output file, then start sampling.

        Raises:
            ProfileOutputError: The output file could not be created
            ProfilerStartError: The profiler could not be started
        """
        if self._active:
            raise ProfilerStartError("session already started")

        try:
            self.output_path.write_bytes(b"")
        except OSError as exc:
            raise ProfileOutputError(self.output_path, exc.strerror or str(exc)) from exc

        logger.info(
            "cpu_profile_starting",
            output_path=str(self.output_path),
            interval_ms=self.interval_ms,
        )

        try:
            spprof.start(interval_ms=self.interval_ms)
        except (RuntimeError, OSError, ValueError) as exc:
            # Another sampler already owns the process timer
            raise ProfilerStartError(str(exc)) from exc

        self._active = True
        return self

    def stop(self) -> None:
        """
        Stop sampling and save the profile. No-op when inactive.

        Raises:
            ProfileOutputError: The profile could not be saved
        """
        if not self._active:
            return
        self._active = False

        profile = spprof.stop()
        try:
            profile.save(str(self.output_path))
        except OSError as exc:
            raise ProfileOutputError(self.output_path, exc.strerror or str(exc)) from exc

        logger.info(
            "cpu_profile_written",
            output_path=str(self.output_path),
            samples=len(profile.samples),
            dropped=profile.dropped_count,
        )

    def __enter__(self) -> "CPUProfileSession":
        return self.start()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.stop()
