"""Render throughput profiling against CPU, memory and frame-rate targets."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import psutil


@dataclass(frozen=True)
class PerformanceTargets:
    cpu_percent_max: float = 100.0
    rss_mb_max: float = 512.0
    fps_min: float = 1.0


@dataclass(frozen=True)
class RenderSample:
    duration_s: float
    cpu_percent: float
    rss_mb: float


@dataclass
class ProfileReport:
    frames: int = 0
    elapsed_s: float = 0.0
    fps: float = 0.0
    cpu_percent_max: float = 0.0
    rss_mb_max: float = 0.0
    checks: dict[str, bool] = field(default_factory=dict)
    passed: bool = True


class RenderProfiler:
    def __init__(self, targets: PerformanceTargets | None = None) -> None:
        self.targets = targets or PerformanceTargets()
        self._process = psutil.Process()
        # Prime non-blocking CPU measurement.
        self._process.cpu_percent(interval=None)
        self._samples: list[RenderSample] = []

    @property
    def samples(self) -> list[RenderSample]:
        return list(self._samples)

    def measure(self, fn, *args, **kwargs):
        """Run ``fn`` once, record a sample, and return its result."""
        start = time.perf_counter()
        result = fn(*args, **kwargs)
        duration = max(time.perf_counter() - start, 1e-9)
        self._samples.append(
            RenderSample(
                duration_s=duration,
                cpu_percent=float(self._process.cpu_percent(interval=None)),
                rss_mb=float(self._process.memory_info().rss) / (1024 * 1024),
            )
        )
        return result

    def report(self) -> ProfileReport:
        if not self._samples:
            return ProfileReport()

        elapsed = sum(s.duration_s for s in self._samples)
        fps = len(self._samples) / max(elapsed, 1e-9)
        cpu_max = max(s.cpu_percent for s in self._samples)
        rss_max = max(s.rss_mb for s in self._samples)
        checks = {
            "cpu": cpu_max <= self.targets.cpu_percent_max,
            "memory": rss_max <= self.targets.rss_mb_max,
            "fps": fps >= self.targets.fps_min,
        }
        return ProfileReport(
            frames=len(self._samples),
            elapsed_s=elapsed,
            fps=fps,
            cpu_percent_max=cpu_max,
            rss_mb_max=rss_max,
            checks=checks,
            passed=all(checks.values()),
        )
