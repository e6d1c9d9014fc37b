"""
Session Module - Black Box Interface

Purpose: Own the REPL subprocess and serialize command exchanges with it
Interface: start(), execute(), is_alive(), shutdown()
Hidden: Process spawning, pipe handling, locking, response framing, deadlines

Replaceable with a pooled or remote REPL backend exposing the same calls.
"""

from .session import ExecutionResult, SessionModule

__all__ = ["SessionModule", "ExecutionResult"]
