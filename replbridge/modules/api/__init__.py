"""
API Module - Black Box Interface

Purpose: Request and response shapes for the HTTP layer
Interface: Pydantic models
Hidden: Field aliases, validation strictness

The API only validates shape; REPL semantics stay with the REPL.
"""

from .models import (
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    ReplCommand,
    SessionInfo,
)

__all__ = [
    "ReplCommand",
    "ErrorResponse",
    "HealthResponse",
    "HealthStatus",
    "SessionInfo",
]
