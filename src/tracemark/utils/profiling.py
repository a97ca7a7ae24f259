"""
Timing utilities for the highlight engine.

The fast path (stripe scan + extension walk) runs on the interactive thread
and has to finish within an interaction frame; the profiler records each
stage and logs a warning whenever one exceeds its target.
"""

import time
import functools
import logging
import json
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Any, Dict, List, Optional

logger = logging.getLogger("tracemark.profiling")


@dataclass
class TimingResult:
    """Result of a timed operation."""
    operation: str
    duration_ms: float
    timestamp: float
    success: bool = True
    details: Dict[str, Any] = field(default_factory=dict)


class PerformanceProfiler:
    """
    Process-wide profiler for highlight stages.

    Keeps the most recent ``max_results`` timings so a long interactive
    session does not grow without bound.
    """

    # Performance targets (in milliseconds)
    TARGETS = {
        "stripe_scan": 50,
        "extend_walk": 50,
        "highlight": 100,
        "vision_startup": 30000,
        "vision_detect": 2000,
    }

    _instance: Optional['PerformanceProfiler'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, max_results: int = 1000):
        if self._initialized:
            return
        self._initialized = True
        self.results: deque = deque(maxlen=max_results)
        self.enabled = True

    @classmethod
    def get_instance(cls) -> 'PerformanceProfiler':
        """Get the singleton profiler instance."""
        return cls()

    def record(self, operation: str, duration_ms: float,
               success: bool = True, **details) -> Optional[TimingResult]:
        """Record a finished operation."""
        if not self.enabled:
            return None

        result = TimingResult(
            operation=operation,
            duration_ms=duration_ms,
            timestamp=time.time(),
            success=success,
            details=details,
        )
        self.results.append(result)

        target = self.TARGETS.get(operation)
        if target and duration_ms > target:
            logger.warning(
                f"Performance warning: {operation} took {duration_ms:.1f}ms "
                f"(target: {target}ms)"
            )
        else:
            logger.debug(f"{operation}: {duration_ms:.1f}ms")
        return result

    @contextmanager
    def measure(self, operation: str, **details):
        """Context manager for measuring operation time."""
        start = time.perf_counter()
        success = True
        try:
            yield
        except Exception:
            success = False
            raise
        finally:
            self.record(operation, (time.perf_counter() - start) * 1000,
                        success=success, **details)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all timing results grouped by operation."""
        if not self.results:
            return {"message": "No timing data collected"}

        by_operation: Dict[str, List[float]] = {}
        for result in self.results:
            by_operation.setdefault(result.operation, []).append(result.duration_ms)

        summary = {}
        for op, times in by_operation.items():
            target = self.TARGETS.get(op)
            avg = sum(times) / len(times)
            summary[op] = {
                "count": len(times),
                "avg_ms": round(avg, 2),
                "min_ms": round(min(times), 2),
                "max_ms": round(max(times), 2),
                "target_ms": target,
                "meets_target": avg <= target if target else None,
            }
        return summary

    def print_summary(self):
        """Print a formatted summary to console."""
        summary = self.get_summary()
        if "message" in summary:
            print(summary["message"])
            return

        print("\n" + "=" * 60)
        print("HIGHLIGHT TIMINGS")
        print("=" * 60)

        for op, stats in sorted(summary.items()):
            status = ""
            if stats["target_ms"]:
                status = " [OK]" if stats["meets_target"] else " [SLOW]"
            print(f"\n{op}:{status}")
            print(f"  Count: {stats['count']}")
            print(f"  Avg: {stats['avg_ms']:.1f}ms")
            print(f"  Min: {stats['min_ms']:.1f}ms / Max: {stats['max_ms']:.1f}ms")
            if stats["target_ms"]:
                print(f"  Target: {stats['target_ms']}ms")

        print("\n" + "=" * 60)

    def save_report(self, path: Path):
        """Save timing data to a JSON file."""
        data = {
            "summary": self.get_summary(),
            "results": [
                {
                    "operation": r.operation,
                    "duration_ms": r.duration_ms,
                    "timestamp": r.timestamp,
                    "success": r.success,
                    "details": r.details,
                }
                for r in self.results
            ],
        }
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

    def clear(self):
        """Clear all collected timing data."""
        self.results.clear()


def timed(operation: str = None):
    """
    Decorator to time a function execution.

    Usage:
        @timed("stripe_scan")
        def scan(self, buffer, click):
            ...
    """
    def decorator(func: Callable) -> Callable:
        op_name = operation or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with PerformanceProfiler.get_instance().measure(op_name):
                return func(*args, **kwargs)

        return wrapper
    return decorator


def profile_block(operation: str, **details):
    """
    Context manager for profiling a block of code.

    Usage:
        with profile_block("vision_detect"):
            segment = worker.detect_line(roi, click)
    """
    return PerformanceProfiler.get_instance().measure(operation, **details)


profiler = PerformanceProfiler.get_instance()
