"""Lightweight in-process metrics for tool calls.

Provides: MetricsCollector, get_metrics_collector, timing_decorator.
"""
from __future__ import annotations
import time, threading, asyncio
from functools import wraps
from dataclasses import dataclass
from collections import defaultdict
from datetime import datetime, UTC
from typing import Dict, Any, Callable


@dataclass
class MetricSummary:
    count: int = 0
    total: float = 0.0
    min_value: float = float('inf')
    max_value: float = float('-inf')
    avg_value: float = 0.0
    last_updated: datetime | None = None


class MetricsCollector:
    def __init__(self):
        self._lock = threading.RLock()
        self._counters: Dict[str, int] = defaultdict(int)
        self._summaries: Dict[str, MetricSummary] = defaultdict(MetricSummary)

    def _make_key(self, name: str, labels: Dict[str, str]) -> str:
        if not labels:
            return name
        label_str = '|'.join(f'{k}={v}' for k, v in sorted(labels.items()))
        return f'{name}|{label_str}'

    def increment_counter(self, name: str, value: int = 1, **labels) -> None:
        with self._lock:
            self._counters[self._make_key(name, labels)] += value

    def record_timing(self, name: str, duration_ms: float, **labels) -> None:
        with self._lock:
            summary = self._summaries[self._make_key(name, labels)]
            summary.count += 1
            summary.total += duration_ms
            summary.min_value = min(summary.min_value, duration_ms)
            summary.max_value = max(summary.max_value, duration_ms)
            summary.avg_value = summary.total / summary.count
            summary.last_updated = datetime.now(UTC)

    def get_counter(self, name: str, **labels) -> int:
        with self._lock:
            return self._counters.get(self._make_key(name, labels), 0)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._summaries.clear()

    def get_metrics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'timestamp': datetime.now(UTC).isoformat(),
                'counters': dict(self._counters),
                'timings': {
                    name: {
                        'count': s.count,
                        'total_ms': s.total,
                        'min_ms': 0 if s.min_value == float('inf') else s.min_value,
                        'max_ms': 0 if s.max_value == float('-inf') else s.max_value,
                        'avg_ms': s.avg_value,
                        'last_updated': s.last_updated.isoformat() if s.last_updated else None
                    } for name, s in self._summaries.items()
                }
            }


_metrics = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics


def _outcome(result: Any) -> str:
    # Tools report failure in the envelope rather than by raising
    if isinstance(result, dict) and result.get("success") is False:
        return "error"
    return "success"


def timing_decorator(metric_name: str, **labels):
    def decorator(func: Callable) -> Callable:
        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    res = await func(*args, **kwargs)
                    _metrics.increment_counter(f"{metric_name}_total", status=_outcome(res), **labels)
                    return res
                except Exception:
                    _metrics.increment_counter(f"{metric_name}_total", status="exception", **labels)
                    raise
                finally:
                    dur = (time.perf_counter() - start) * 1000
                    _metrics.record_timing(f"{metric_name}_duration", dur, **labels)
            return async_wrapper
        else:
            @wraps(func)
            def sync_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    res = func(*args, **kwargs)
                    _metrics.increment_counter(f"{metric_name}_total", status=_outcome(res), **labels)
                    return res
                except Exception:
                    _metrics.increment_counter(f"{metric_name}_total", status="exception", **labels)
                    raise
                finally:
                    dur = (time.perf_counter() - start) * 1000
                    _metrics.record_timing(f"{metric_name}_duration", dur, **labels)
            return sync_wrapper
    return decorator
