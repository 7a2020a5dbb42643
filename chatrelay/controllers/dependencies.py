"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from chatrelay.config.dependencies import get_message_responder
from chatrelay.pipelines.responder import MessageResponder

ResponderDep = Annotated[MessageResponder, Depends(get_message_responder)]


__all__ = ["ResponderDep", "get_message_responder"]
