"""Telemetry helpers and metrics."""

from .metrics import (
    ERROR_COUNTER,
    IN_FLIGHT_REQUESTS,
    RELAY_REPLIES,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SECRET_FETCHES,
    STAGE_FAILURES,
    TRANSCRIPTION_POLLS,
    observe_request,
    record_reply,
    record_secret_fetch,
    record_stage_failure,
    record_transcription_polls,
)

__all__ = [
    "ERROR_COUNTER",
    "IN_FLIGHT_REQUESTS",
    "RELAY_REPLIES",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SECRET_FETCHES",
    "STAGE_FAILURES",
    "TRANSCRIPTION_POLLS",
    "observe_request",
    "record_reply",
    "record_secret_fetch",
    "record_stage_failure",
    "record_transcription_polls",
]
