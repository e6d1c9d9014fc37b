"""
Framer Module - Black Box Interface

Purpose: Detect where one JSON response ends in a stream of output lines
Interface: ResponseFramer.feed(), ResponseFramer.getvalue(), scan_line()
Hidden: Brace depth counting, string and escape tracking

Replaceable with a real incremental JSON parser if the REPL output grows beyond objects.
"""

from .framer import ResponseFramer, ScanState, scan_line

__all__ = ["ResponseFramer", "ScanState", "scan_line"]
