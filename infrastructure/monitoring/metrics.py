# /infrastructure/monitoring/metrics.py
import time
import logging
import threading
from collections import Counter as TallyCounter, deque
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Prometheus
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server


@dataclass
class AnalysisMetric:
    """Metric for one analysis call"""
    mode: str
    outcome: str  # ok, degraded, rejected
    latency_seconds: float
    timestamp: float


class ServiceMetrics:
    """Prometheus metrics for access transitions and analysis calls"""

    def __init__(self, registry: Optional[CollectorRegistry] = None, max_history: int = 500):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()
        self.lock = threading.Lock()

        self.access_transitions = Counter(
            "camera_access_transitions_total",
            "Access-control transitions applied to cameras",
            ["operation", "outcome"],
            registry=self.registry,
        )
        self.analysis_requests = Counter(
            "analysis_requests_total",
            "Frame analysis requests by mode and outcome",
            ["mode", "outcome"],
            registry=self.registry,
        )
        self.analysis_latency = Histogram(
            "analysis_latency_seconds",
            "Latency of frame analysis calls",
            ["mode"],
            buckets=(0.5, 1, 2, 5, 10, 20, 40, 60),
            registry=self.registry,
        )
        self.pending_requests = Gauge(
            "camera_pending_access_requests",
            "Cameras currently carrying a pending access request",
            registry=self.registry,
        )

        # In-memory tallies for get_stats()
        self.transition_counts: TallyCounter = TallyCounter()
        self.analysis_counts: TallyCounter = TallyCounter()
        self.analysis_history: deque = deque(maxlen=max_history)
        self.start_time = time.time()

    def record_transition(self, operation: str, outcome: str):
        with self.lock:
            self.access_transitions.labels(operation=operation, outcome=outcome).inc()
            self.transition_counts[f"{operation}:{outcome}"] += 1

    def set_pending_requests(self, count: int):
        self.pending_requests.set(count)

    def record_analysis(self, mode: str, outcome: str, latency_seconds: float = 0.0):
        with self.lock:
            self.analysis_requests.labels(mode=mode, outcome=outcome).inc()
            if outcome != "rejected":
                self.analysis_latency.labels(mode=mode).observe(latency_seconds)
            self.analysis_counts[f"{mode}:{outcome}"] += 1
            self.analysis_history.append(
                AnalysisMetric(mode=mode, outcome=outcome, latency_seconds=latency_seconds, timestamp=time.time())
            )

    def get_stats(self) -> Dict[str, Any]:
        """Summary of recorded metrics"""
        with self.lock:
            latencies = [m.latency_seconds for m in self.analysis_history if m.outcome != "rejected"]
            return {
                "uptime_seconds": round(time.time() - self.start_time, 1),
                "transitions": dict(self.transition_counts),
                "analyses": dict(self.analysis_counts),
                "avg_analysis_latency_seconds": round(sum(latencies) / len(latencies), 3) if latencies else 0.0,
            }


def start_metrics_server(metrics: ServiceMetrics, port: int = 9090):
    """Expose the metrics registry over HTTP"""
    start_http_server(port, registry=metrics.registry)
    metrics.logger.info(f"📊 Prometheus metrics server started on port {port}")
