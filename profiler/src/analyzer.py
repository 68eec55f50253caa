"""Offline analysis of saved CPU profiles.

Loads a sampled profile in speedscope format (as written by
``CPUProfileSession``) and reduces it to a summary plus a flat/cumulative
hotspot table.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import structlog

from .exceptions import ProfileReadError

logger = structlog.get_logger(__name__)

# speedscope weight units convertible to seconds
TIME_UNITS: Dict[str, float] = {
    "nanoseconds": 1e-9,
    "microseconds": 1e-6,
    "milliseconds": 1e-3,
    "seconds": 1.0,
}

FunctionKey = Tuple[str, str]


@dataclass(frozen=True)
class ProfileSummary:
    """Whole-profile totals.

    value_unit is ``seconds`` when the sample weights carry time, otherwise
    ``samples`` and every value below is a sample count.
    """
    total_value: float
    sample_count: int
    function_count: int
    value_unit: str = "seconds"

    @property
    def sample_types(self) -> Tuple[Tuple[str, str], ...]:
        return (("samples", "count"), ("cpu", self.value_unit))


@dataclass(frozen=True)
class Hotspot:
    """One row of the hotspot table.

    flat is attributed to the leaf frame of each sample, cum to every
    distinct function on the stack. Percentages are relative to the total
    of the profile; sum_percent accumulates flat_percent in table order.
    """
    function: str
    flat: float
    flat_percent: float
    sum_percent: float
    cum: float
    cum_percent: float
    samples: int


def format_function(func: FunctionKey) -> str:
    """Render a function key as ``name (file)``."""
    name, filename = func
    if not filename:
        # native frames carry no source file
        return name
    return f"{name} ({os.path.basename(filename)})"


@dataclass
class _FunctionTotals:
    flat: float = 0.0
    cum: float = 0.0
    samples: int = 0


class ProfileAnalyzer:
    """Reads a saved CPU profile and reports where time went."""

    def __init__(self) -> None:
        self._frames: Optional[List[FunctionKey]] = None
        self._stacks: List[Tuple[Sequence[int], float]] = []
        self._unit = "seconds"

    def read_profile(self, path: Union[str, Path]) -> "ProfileAnalyzer":
        """
        Load a profile from disk.

        Raises:
            ProfileReadError: The file is missing or not a sampled profile
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                document = json.load(fh)
            frames = [
                (frame["name"], frame.get("file") or "")
                for frame in document["shared"]["frames"]
            ]
            stacks, unit = self._collect_samples(document["profiles"], len(frames))
        except OSError as exc:
            raise ProfileReadError(path, exc.strerror or str(exc)) from exc
        except (ValueError, KeyError, TypeError, IndexError) as exc:
            raise ProfileReadError(path, str(exc) or exc.__class__.__name__) from exc

        self._frames = frames
        self._stacks = stacks
        self._unit = unit

        logger.debug("profile_loaded", path=str(path), samples=len(stacks), frames=len(frames))
        return self

    @staticmethod
    def _collect_samples(profiles, frame_count: int):
        stacks: List[Tuple[Sequence[int], float]] = []
        units = set()

        for profile in profiles:
            if profile["type"] != "sampled":
                continue
            samples = profile["samples"]
            weights = profile.get("weights") or [1] * len(samples)
            if len(weights) != len(samples):
                raise ValueError("samples and weights differ in length")

            factor = TIME_UNITS.get(profile.get("unit", "none"))
            units.add("seconds" if factor is not None else "samples")
            for stack, weight in zip(samples, weights):
                if any(index < 0 or index >= frame_count for index in stack):
                    raise IndexError(f"frame index out of range in stack {stack}")
                stacks.append((stack, float(weight) * factor if factor is not None else 1.0))

        if not units:
            raise ValueError("no sampled profiles found")
        if len(units) > 1:
            # mixed units cannot be summed; fall back to sample counts
            stacks = [(stack, 1.0) for stack, _ in stacks]
            return stacks, "samples"
        return stacks, units.pop()

    def _require_loaded(self) -> List[FunctionKey]:
        if self._frames is None:
            raise RuntimeError("no profile loaded; call read_profile() first")
        return self._frames

    def summary(self) -> ProfileSummary:
        frames = self._require_loaded()
        return ProfileSummary(
            total_value=sum(value for _, value in self._stacks),
            sample_count=len(self._stacks),
            function_count=len(set(frames)),
            value_unit=self._unit,
        )

    def analyze_hotspots(self, max_entries: int = 10) -> List[Hotspot]:
        """
        Return the functions with the most flat time, largest first.

        Stacks run root to leaf. A recursive function is counted once per
        sample in its cumulative value.

        Args:
            max_entries: Maximum number of rows

        Returns:
            Hotspot rows sorted by flat value, ties broken by name
        """
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got: {max_entries}")

        frames = self._require_loaded()
        totals: Dict[FunctionKey, _FunctionTotals] = {}
        total = 0.0

        for stack, value in self._stacks:
            if not stack:
                continue
            total += value

            leaf = totals.setdefault(frames[stack[-1]], _FunctionTotals())
            leaf.flat += value
            leaf.samples += 1

            for func in {frames[index] for index in stack}:
                totals.setdefault(func, _FunctionTotals()).cum += value

        entries = sorted(
            totals.items(),
            key=lambda item: (-item[1].flat, format_function(item[0])),
        )[:max_entries]

        hotspots: List[Hotspot] = []
        running_percent = 0.0
        for func, func_totals in entries:
            flat_percent = func_totals.flat * 100.0 / total if total else 0.0
            running_percent += flat_percent
            hotspots.append(
                Hotspot(
                    function=format_function(func),
                    flat=func_totals.flat,
                    flat_percent=flat_percent,
                    sum_percent=running_percent,
                    cum=func_totals.cum,
                    cum_percent=func_totals.cum * 100.0 / total if total else 0.0,
                    samples=func_totals.samples,
                )
            )

        return hotspots
