import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))

from rexraster_core.performance import PerformanceTargets, RenderProfiler


class PerformanceTests(unittest.TestCase):
    def test_empty_report(self):
        report = RenderProfiler().report()
        self.assertEqual(report.frames, 0)
        self.assertTrue(report.passed)

    def test_measure_returns_result_and_samples(self):
        profiler = RenderProfiler(PerformanceTargets(cpu_percent_max=10_000.0, rss_mb_max=1_000_000.0, fps_min=0.0))
        self.assertEqual(profiler.measure(sum, [1, 2, 3]), 6)
        self.assertEqual(profiler.measure(max, 4, 9), 9)
        report = profiler.report()
        self.assertEqual(report.frames, 2)
        self.assertGreater(report.fps, 0.0)
        self.assertGreater(report.rss_mb_max, 0.0)
        self.assertEqual(set(report.checks), {"cpu", "memory", "fps"})
        self.assertTrue(report.passed)

    def test_unmet_fps_target_fails(self):
        profiler = RenderProfiler(PerformanceTargets(cpu_percent_max=10_000.0, rss_mb_max=1_000_000.0, fps_min=1e12))
        profiler.measure(sum, [1])
        report = profiler.report()
        self.assertFalse(report.checks["fps"])
        self.assertFalse(report.passed)


if __name__ == "__main__":
    unittest.main()
