"""
Metrics Collection for the scheduling engine.

Counts schedule resolutions and reminder outcomes.
"""

import time
from typing import Dict, Any, Callable
from collections import defaultdict
from datetime import datetime
from functools import wraps
import threading


class MetricsCollector:
    """Collects and manages metrics for schedule resolution and reminders."""

    def __init__(self):
        """Initialize metrics collector."""
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()

        self.metrics["schedules_resolved_total"] = 0
        self.metrics["schedule_validation_errors_total"] = 0
        self.metrics["reminders_scheduled_total"] = 0
        self.metrics["reminders_skipped_past_total"] = 0
        self.metrics["reminders_failed_total"] = 0
        self.metrics["reminders_cancelled_total"] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        """Increment a counter metric."""
        with self.lock:
            self.metrics[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        """Record a timing metric."""
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": dict(self.timers),
                "timestamp": datetime.utcnow().isoformat()
            }

    def schedule_resolved(self):
        self.increment_counter("schedules_resolved_total")

    def validation_error(self):
        self.increment_counter("schedule_validation_errors_total")

    def reminder_scheduled(self):
        self.increment_counter("reminders_scheduled_total")

    def reminder_skipped_past(self):
        self.increment_counter("reminders_skipped_past_total")

    def reminder_failed(self):
        self.increment_counter("reminders_failed_total")

    def reminder_cancelled(self, value: int = 1):
        self.increment_counter("reminders_cancelled_total", value)

    def time_operation(self, metric_name: str) -> Callable:
        """Decorator timing a synchronous operation."""
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    self.record_timer(metric_name, time.time() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics_collector = MetricsCollector()
