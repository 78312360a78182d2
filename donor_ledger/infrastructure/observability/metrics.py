"""Prometheus metrics for bonus outcomes, plan creation and compensation health"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Bonus metrics
bonus_calculation_counter = Counter(
    "donor_ledger_bonus_calculations_total",
    "Bonus evaluations by outcome",
    ["action", "outcome"],  # assign | recalculate ; matched | no_match
)

bonus_amount_histogram = Histogram(
    "donor_ledger_bonus_amount_usd",
    "Bonus amounts computed for matched payments",
    buckets=[1, 10, 50, 100, 250, 500, 1000, 5000],
)

# Plan metrics
plan_created_counter = Counter(
    "donor_ledger_payment_plans_created_total",
    "Payment plans created",
    ["distribution_type"],  # fixed | custom
)

plan_validation_failure_counter = Counter(
    "donor_ledger_plan_validation_failures_total",
    "Plan requests rejected before any write",
)

rollback_counter = Counter(
    "donor_ledger_plan_rollbacks_total",
    "Compensating deletes after a partial plan write",
    ["outcome"],  # succeeded | failed
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_bonus(action: str, rule_matched: bool, bonus_amount: Decimal) -> None:
    """Record how often rules match and how large the resulting bonuses are"""
    outcome = "matched" if rule_matched else "no_match"
    bonus_calculation_counter.labels(action=action, outcome=outcome).inc()
    if bonus_amount > 0:
        bonus_amount_histogram.observe(float(bonus_amount))
