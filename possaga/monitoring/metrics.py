# ============================================
# FILE: possaga/monitoring/metrics.py
# ============================================

"""
Metrics collection for transactions
"""

from typing import Any

from possaga.types import Outcome


class TransactionMetrics:
    """Collect and expose transaction metrics in-process"""

    def __init__(self):
        self.metrics: dict[str, Any] = {
            "total_processed": 0,
            "total_succeeded": 0,
            "total_failed": 0,
            "total_compensations": 0,
            "total_compensation_failures": 0,
            "total_replays": 0,
            "inflight": 0,
            "average_duration": 0.0,
            "by_reason": {},
        }

    def record_outcome(self, outcome: Outcome) -> None:
        """Record a freshly produced terminal outcome"""
        self.metrics["total_processed"] += 1
        if outcome.is_succeeded:
            self.metrics["total_succeeded"] += 1
        else:
            self.metrics["total_failed"] += 1
            reason = outcome.reason.value if outcome.reason else "unknown"
            self.metrics["by_reason"][reason] = self.metrics["by_reason"].get(reason, 0) + 1
        self._update_average_duration(outcome.duration)

    def record_compensation(self, applied: bool) -> None:
        self.metrics["total_compensations"] += 1
        if not applied:
            self.metrics["total_compensation_failures"] += 1

    def record_replay(self) -> None:
        self.metrics["total_replays"] += 1

    def set_inflight(self, count: int) -> None:
        self.metrics["inflight"] = count

    def _update_average_duration(self, duration: float) -> None:
        total_time = self.metrics["average_duration"] * (self.metrics["total_processed"] - 1)
        self.metrics["average_duration"] = (total_time + duration) / self.metrics["total_processed"]

    def get_metrics(self) -> dict[str, Any]:
        """Get all metrics"""
        success_rate = (
            self.metrics["total_succeeded"] / self.metrics["total_processed"] * 100
            if self.metrics["total_processed"] > 0
            else 0
        )

        return {
            **self.metrics,
            "by_reason": dict(self.metrics["by_reason"]),
            "success_rate": f"{success_rate:.2f}%",
        }
