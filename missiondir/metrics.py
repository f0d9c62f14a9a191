from __future__ import annotations

from prometheus_client import Counter, Histogram

# Mission operations by name and outcome (ok | not_found | invalid | forbidden | error)
MISSION_OPERATIONS = Counter(
    "missiondir_operations_total",
    "Mission operations handled by the query gateway",
    ["operation", "outcome"],
)

# Store round trip latency in seconds, by store call
STORE_LATENCY_SECONDS = Histogram(
    "missiondir_store_latency_seconds",
    "Latency of record store calls in seconds",
    ["call"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Store failures (we never want these, but they will happen)
STORE_ERRORS = Counter(
    "missiondir_store_errors_total",
    "Count of failed record store calls",
    ["call"],
)
