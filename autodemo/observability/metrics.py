"""Prometheus metrics for autodemo.

Provides counters and histograms for tour runs, step execution, and
analytics delivery on both the client and collector side.
"""

from prometheus_client import Counter, Histogram

# Run metrics
DEMO_RUNS = Counter(
    "autodemo_runs_total",
    "Total number of tour runs by outcome",
    labelnames=["outcome"],
)

# Step metrics
STEP_EXECUTIONS = Counter(
    "autodemo_step_executions_total",
    "Total number of step actions executed",
    labelnames=["status"],
)

STEP_LATENCY = Histogram(
    "autodemo_step_latency_seconds",
    "Wall time spent in a step, from start to completion gate",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 60.0),
)

SELECTOR_TIMEOUTS = Counter(
    "autodemo_selector_timeouts_total",
    "Total number of selector waits that timed out",
)

# Analytics metrics
ANALYTICS_FLUSHES = Counter(
    "autodemo_analytics_flushes_total",
    "Total number of analytics flush attempts by outcome",
    labelnames=["outcome"],
)

COLLECTOR_BATCHES = Counter(
    "autodemo_collector_batches_total",
    "Total number of analytics batches received by the collector",
    labelnames=["status"],
)
