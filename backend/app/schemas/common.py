"""
Schools24 Backend — Shared Schemas
====================================

Envelope and health-check schemas used across route modules.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Uniform error body produced by the global exception handlers.

    Example:
        {"error": "not_found", "message": "student not found", "request_id": "a1b2c3d4"}
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable explanation")
    details: Optional[Dict[str, Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


class MessageResponse(BaseModel):
    message: str


class CreatedResponse(BaseModel):
    id: str
    message: str


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'healthy' while the process serves requests")
    service: str
    version: str
    time: int = Field(description="Server UNIX time in seconds")
    cache_hits: int
    cache_misses: int
    cache_items: Optional[int] = Field(default=None, description="null when the cache backend is unreachable")


class ReadyResponse(BaseModel):
    ready: bool
