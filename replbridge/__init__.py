"""
replbridge - HTTP bridge to a long-lived Lean REPL

Serves a strictly sequential REPL subprocess to many HTTP callers.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- framer: Detects where one JSON response ends in the REPL output
- session: REPL process lifecycle and serialized command exchange
- config: Environment-based configuration
- api: Request and response models
- middleware: Request logging
"""

__version__ = "1.0.0"
