"""Prometheus metrics for settlement, fee pool, clock and transfer activity"""

from prometheus_client import Counter, Histogram

# Settlement metrics
settlement_counter = Counter(
    "gameztarz_settlement_total",
    "Settlement engine runs",
    ["outcome"],  # modified | unchanged
)

salary_cycle_counter = Counter(
    "gameztarz_salary_cycles_total",
    "Monthly salary payments applied",
)

obligation_counter = Counter(
    "gameztarz_obligations_total",
    "Recurring obligations processed",
    ["outcome"],  # paid | missed
)

# Fee pool metrics
fee_pool_credit_counter = Counter(
    "gameztarz_fee_pool_credited_usd_total",
    "USD credited to the platform fee pool",
)

fee_pool_failure_counter = Counter(
    "gameztarz_fee_pool_failures_total",
    "Failed fee pool credits",
)

fee_pool_claim_counter = Counter(
    "gameztarz_fee_pool_claims_total",
    "Fee pool claims by outcome",
    ["outcome"],  # claimed | empty | contention
)

# Clock metrics
clock_tick_counter = Counter(
    "gameztarz_clock_ticks_total",
    "Simulated clock advances by the timekeeper",
)

# Transfer metrics
transfer_counter = Counter(
    "gameztarz_transfers_total",
    "Completed transfers by currency",
    ["currency"],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(modified: bool, summary) -> None:
    """Record settlement outcome and per-cycle counts"""
    settlement_counter.labels(outcome="modified" if modified else "unchanged").inc()
    if summary.salary_cycles:
        salary_cycle_counter.inc(summary.salary_cycles)
    if summary.obligations_paid:
        obligation_counter.labels(outcome="paid").inc(summary.obligations_paid)
    if summary.obligations_missed:
        obligation_counter.labels(outcome="missed").inc(summary.obligations_missed)
