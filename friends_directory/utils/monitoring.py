"""Monitoring utilities leveraging Prometheus client."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

http_requests_total = Counter(
    "friends_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_latency_seconds = Histogram(
    "friends_http_request_latency_seconds",
    "HTTP request latency",
    ["method", "path"],
)

store_commits_total = Counter(
    "friends_store_commits_total",
    "Person upserts by outcome",
    ["outcome"],
)


def observe_request(method: str, path: str, status: int, duration_seconds: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_latency_seconds.labels(method=method, path=path).observe(duration_seconds)


def record_commit(outcome: str) -> None:
    store_commits_total.labels(outcome=outcome).inc()
