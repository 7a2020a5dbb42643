"""Utility helpers for the chat relay backend."""

from .clock import Clock, Deadline, DeadlineExceeded, SystemClock

__all__ = [
    "Clock",
    "Deadline",
    "DeadlineExceeded",
    "SystemClock",
]
