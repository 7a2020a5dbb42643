"""Common response schemas."""

from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    detail: str
    code: Optional[str] = None


class StatusResponse(BaseModel):
    status: str
    service: str
    version: str
    message: Optional[str] = None
