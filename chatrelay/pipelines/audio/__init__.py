"""Audio message pipeline package.

Modules are organised by responsibility:

1. `types` – inbound message and terminal reply containers.
2. `trace` – append-only stage log kept per invocation.
3. `flow` – the `AudioPipeline` composition root and its stage map.

The stage implementations themselves live in `chatrelay.services` so they
can be reused and faked independently.
"""

from .flow import AUDIO_FAILURE_TEXT, AudioPipeline, PipelineStage
from .trace import PipelineTrace, StageOutcome, TraceEntry
from .types import IncomingMessage, RelayReply, ReplyOutcome

__all__ = [
    "AUDIO_FAILURE_TEXT",
    "AudioPipeline",
    "IncomingMessage",
    "PipelineStage",
    "PipelineTrace",
    "RelayReply",
    "ReplyOutcome",
    "StageOutcome",
    "TraceEntry",
]
