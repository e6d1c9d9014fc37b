from dataclasses import dataclass
from typing import List

from replbridge.errors import ProtocolViolation

OPEN = ord("{")
CLOSE = ord("}")
QUOTE = ord('"')
BACKSLASH = ord("\\")

# Longest excerpt of an offending line quoted in a ProtocolViolation
MAX_EXCERPT = 200


@dataclass
class ScanState:
    """Scanner state carried across the lines of one response."""

    depth: int = 0
    in_string: bool = False
    escaped: bool = False
    started: bool = False


def scan_line(line: bytes, state: ScanState) -> None:
    """
    Advance the scan state over one line.

    Args:
        line: Output line without its line terminator
        state: State to update in place

    Escapes are honoured in every context and a pending escape survives
    the end of the line. Braces only count outside string literals.
    """
    depth = state.depth
    in_string = state.in_string
    escaped = state.escaped

    for char in line:
        if escaped:
            escaped = False
        elif char == BACKSLASH:
            escaped = True
        elif char == QUOTE:
            in_string = not in_string
        elif not in_string:
            if char == OPEN:
                depth += 1
            elif char == CLOSE:
                depth -= 1

    state.depth = depth
    state.in_string = in_string
    state.escaped = escaped


class ResponseFramer:
    """
    Streaming detector for the end of one JSON response.

    Feed output lines one at a time; feed() returns True once the braces
    opened on the first non-blank line are all closed. Leading blank lines
    are dropped. The consumed lines are available from getvalue(), joined
    with newlines.
    """

    def __init__(self):
        self.state = ScanState()
        self._lines: List[bytes] = []
        self._complete = False

    @property
    def complete(self) -> bool:
        return self._complete

    @property
    def started(self) -> bool:
        return self.state.started

    def feed(self, line: bytes) -> bool:
        """
        Consume one output line.

        Args:
            line: Output line without its line terminator

        Returns:
            True when the response is complete

        Raises:
            ProtocolViolation: If the first non-blank line does not start with '{'
            RuntimeError: If called again after the response completed
        """
        if self._complete:
            raise RuntimeError("response already complete")

        if not self.state.started:
            if not line.strip():
                return False
            if not line.startswith(b"{"):
                excerpt = line[:MAX_EXCERPT].decode("utf-8", errors="replace")
                raise ProtocolViolation(
                    f"expecting leading curly bracket, got: {excerpt}", line=line
                )
            self.state.started = True

        self._lines.append(line)
        scan_line(line, self.state)

        if self.state.depth <= 0:
            self._complete = True
        return self._complete

    def getvalue(self) -> bytes:
        """Return the response bytes accumulated so far."""
        return b"\n".join(self._lines)
