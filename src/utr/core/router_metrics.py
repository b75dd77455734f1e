"""
Router instrumentation.

Prometheus metrics tracking router invocations, revert reasons, action
throughput and native refunds. Helpers are safe to call from the execution
path and become no-ops when metrics are disabled.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

from . import config

executions_total = Counter(
    "utr_executions_total", "Router invocations by outcome", ["outcome"]
)

reverts_total = Counter(
    "utr_reverts_total", "Router invocations reverted, by revert reason", ["reason"]
)

actions_total = Counter(
    "utr_actions_total", "Actions processed by the router, by kind", ["kind"]
)

optional_failures_total = Counter(
    "utr_optional_call_failures_total",
    "Optional output calls whose failure was suppressed",
)

native_refunded_total = Counter(
    "utr_native_refunded_total", "Native asset refunded to callers after execution"
)

execution_seconds = Histogram(
    "utr_execution_seconds",
    "Wall-clock duration of router invocations",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
)


def record_execution(outcome: str, duration: float) -> None:
    if not config.METRICS_ENABLED:
        return
    executions_total.labels(outcome=outcome).inc()
    execution_seconds.observe(duration)


def record_revert(reason: str) -> None:
    if not config.METRICS_ENABLED:
        return
    # Callee messages are free-form; keep label cardinality bounded
    reverts_total.labels(reason=reason[:64]).inc()


def record_action(kind: str) -> None:
    if not config.METRICS_ENABLED:
        return
    actions_total.labels(kind=kind).inc()


def record_optional_failure() -> None:
    if not config.METRICS_ENABLED:
        return
    optional_failures_total.inc()


def record_refund(amount: int) -> None:
    """Count a native refund; zero refunds are not recorded."""
    if not config.METRICS_ENABLED or amount <= 0:
        return
    native_refunded_total.inc(amount)
