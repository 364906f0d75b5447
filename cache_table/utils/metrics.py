"""cache_table: Prometheus Metrics Utilities."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


# Helper function for creating counters
def prometheus_counter(name: str, description: str, labels: list[str] | None = None) -> Counter:
    """Create a Prometheus Counter with optional labels."""
    if labels:
        return Counter(name, description, labels)
    return Counter(name, description)


# ────────── Table collectors ──────────
MET_HITS = prometheus_counter("cache_table_hits_total", "Lookups served from the table", ["table"])
MET_MISSES = prometheus_counter("cache_table_misses_total", "Lookups that missed the table", ["table"])
MET_LOADS = prometheus_counter("cache_table_loads_total", "Items populated by the data loader", ["table"])
MET_EXPIRED = prometheus_counter("cache_table_expired_total", "Items evicted by the expiration sweep", ["table"])
MET_DELETED = prometheus_counter("cache_table_deleted_total", "Items removed by explicit delete", ["table"])
MET_CALLBACK_ERRORS = prometheus_counter(
    "cache_table_callback_errors_total", "Exceptions raised by user callbacks", ["table"]
)
GAUGE_ITEMS = Gauge("cache_table_items", "Live items per table", ["table"])
LAT_SWEEP = Histogram("cache_table_sweep_latency_seconds", "Expiration sweep latency", ["table"])


# ────────── Helpers ──────────
def get_prometheus_metrics() -> str:
    """Return metrics text in the Prometheus exposition format."""
    return generate_latest().decode()
