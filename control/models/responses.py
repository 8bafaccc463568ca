"""
Control Response Models
"""

from typing import Optional

from pydantic import BaseModel


class TickResponse(BaseModel):
    """Result of a manual tick request; exactly one of message/error is set"""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    mode: str = "e2e-test"
