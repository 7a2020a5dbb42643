"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests processed",
    ("method", "route", "status"),
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ("method", "route"),
    buckets=(
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
        10.0,
        30.0,
        60.0,
        120.0,
        300.0,
    ),
)

IN_FLIGHT_REQUESTS = Gauge(
    "http_requests_in_flight",
    "HTTP requests currently being handled",
)

ERROR_COUNTER = Counter(
    "app_internal_errors_total",
    "Number of requests ending in internal server error responses",
    ("method", "route"),
)

RELAY_REPLIES = Counter(
    "relay_replies_total",
    "Replies produced by the message relay, by outcome",
    ("outcome",),
)

STAGE_FAILURES = Counter(
    "audio_pipeline_stage_failures_total",
    "Audio pipeline invocations aborted at a given stage",
    ("stage",),
)

TRANSCRIPTION_POLLS = Histogram(
    "transcription_poll_attempts",
    "Status polls needed before a transcription job reached a terminal state",
    ("status",),
    buckets=(1, 2, 3, 5, 8, 13, 21, 30),
)

SECRET_FETCHES = Counter(
    "secret_fetches_total",
    "Secret store lookups performed by the credential cache",
    ("result",),
)


def observe_request(
    method: str,
    route: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """Record metrics for a completed HTTP request."""

    safe_route = route or "unknown"
    safe_method = method or "UNKNOWN"
    status_label = str(status_code)
    observed_duration = duration_seconds if duration_seconds >= 0 else 0

    REQUEST_COUNT.labels(
        method=safe_method,
        route=safe_route,
        status=status_label,
    ).inc()
    REQUEST_LATENCY.labels(
        method=safe_method,
        route=safe_route,
    ).observe(observed_duration)

    if status_code >= 500:
        ERROR_COUNTER.labels(
            method=safe_method,
            route=safe_route,
        ).inc()


def record_reply(outcome: str) -> None:
    RELAY_REPLIES.labels(outcome=outcome).inc()


def record_stage_failure(stage: str) -> None:
    STAGE_FAILURES.labels(stage=stage or "unknown").inc()


def record_transcription_polls(status: str, attempts: int) -> None:
    TRANSCRIPTION_POLLS.labels(status=status).observe(max(attempts, 0))


def record_secret_fetch(result: str) -> None:
    SECRET_FETCHES.labels(result=result).inc()
