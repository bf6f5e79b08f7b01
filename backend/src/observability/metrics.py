"""Prometheus metrics for the LTS backend.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Remote price synchronization
remote_price_syncs_total = Counter(
    "lts_remote_price_syncs_total",
    "Remote price creations attempted for tier rows",
    ["item_kind", "status"]  # status: synced|failed
)

remote_price_archives_total = Counter(
    "lts_remote_price_archives_total",
    "Remote price archive attempts for retired tier rows",
    ["item_kind", "status"]  # status: archived|failed
)

remote_call_latency_ms = Histogram(
    "lts_remote_call_latency_ms",
    "Payment provider call latency in milliseconds",
    ["operation"],  # operation: create|archive
    buckets=[50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000]
)

# Replace-tiers outcomes
tier_replacements_total = Counter(
    "lts_tier_replacements_total",
    "Replace-tiers and retry-sync operations by final state",
    ["item_kind", "operation", "state"]  # operation: replace|retry, state: DONE|PARTIAL_FAILURE|ABORTED
)

tier_validation_failures_total = Counter(
    "lts_tier_validation_failures_total",
    "Tier submissions rejected by normalization",
    ["item_kind"]
)
