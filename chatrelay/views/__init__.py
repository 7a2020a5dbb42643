"""Response rendering used by the controllers."""

from .common import ErrorResponse, StatusResponse
from .twiml import TWIML_MEDIA_TYPE, render_message

__all__ = [
    "ErrorResponse",
    "StatusResponse",
    "TWIML_MEDIA_TYPE",
    "render_message",
]
