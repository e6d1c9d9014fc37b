"""
Failure taxonomy shared by the framer, the session and the API layer.

Every exception raised by the core derives from ReplError so the HTTP
layer can register a single handler for the whole family.
"""

from typing import List, Optional


class ReplError(Exception):
    """Base class for all REPL session failures."""


class StartupFailure(ReplError):
    """The subprocess could not be spawned or its pipes attached."""


class WriteFailure(ReplError):
    """The subprocess input stream is closed or broken."""


class ReadFailure(ReplError):
    """The subprocess output stream is broken or ended mid-response."""


class ProtocolViolation(ReplError):
    """The first meaningful output line does not open a JSON object."""

    def __init__(self, message: str, line: Optional[bytes] = None):
        super().__init__(message)
        self.line = line


class ShutdownFailure(ReplError):
    """One or more teardown steps failed."""

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = list(problems)
