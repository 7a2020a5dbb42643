"""Ordered diagnostic record of one audio pipeline invocation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StageOutcome(str, Enum):
    OK = "ok"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class TraceEntry:
    """One event emitted by a pipeline stage."""

    stage: str
    outcome: StageOutcome
    detail: str = ""

    def render(self) -> str:
        if self.detail:
            return f"[{self.stage}] {self.outcome.value}: {self.detail}"
        return f"[{self.stage}] {self.outcome.value}"


class PipelineTrace:
    """Append-only log of stage events and errors.

    A trace belongs to exactly one invocation. Entries can only be appended;
    readers get an immutable snapshot through :attr:`entries`.
    """

    def __init__(self) -> None:
        self._entries: list[TraceEntry] = []

    def record(self, stage: str, outcome: StageOutcome, detail: str = "") -> TraceEntry:
        entry = TraceEntry(stage=stage, outcome=outcome, detail=detail)
        self._entries.append(entry)
        return entry

    def ok(self, stage: str, detail: str = "") -> TraceEntry:
        return self.record(stage, StageOutcome.OK, detail)

    def info(self, stage: str, detail: str = "") -> TraceEntry:
        return self.record(stage, StageOutcome.INFO, detail)

    def error(self, stage: str, detail: str) -> TraceEntry:
        return self.record(stage, StageOutcome.ERROR, detail)

    @property
    def entries(self) -> tuple[TraceEntry, ...]:
        return tuple(self._entries)

    @property
    def errors(self) -> tuple[TraceEntry, ...]:
        return tuple(e for e in self._entries if e.outcome is StageOutcome.ERROR)

    @property
    def has_errors(self) -> bool:
        return any(e.outcome is StageOutcome.ERROR for e in self._entries)

    def stages(self) -> list[str]:
        """Stage names in first-seen order."""

        seen: list[str] = []
        for entry in self._entries:
            if entry.stage not in seen:
                seen.append(entry.stage)
        return seen

    def render(self) -> str:
        return "\n".join(entry.render() for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["PipelineTrace", "StageOutcome", "TraceEntry"]
