"""Prometheus counters describing outbound email delivery."""

from __future__ import annotations

from prometheus_client import Counter

DELIVERY_ATTEMPTS = Counter(
    "email_delivery_attempts_total",
    "Individual calls made to the email provider, by outcome.",
    ["outcome"],
)

DELIVERY_RESULTS = Counter(
    "email_delivery_results_total",
    "Completed dispatches after retries, by outcome.",
    ["outcome"],
)


def record_attempt(outcome: str) -> None:
    DELIVERY_ATTEMPTS.labels(outcome=outcome).inc()


def record_result(outcome: str) -> None:
    DELIVERY_RESULTS.labels(outcome=outcome).inc()
