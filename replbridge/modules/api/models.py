"""
replbridge API data models.

The REPL command model only checks the shape of a request; the raw body
is what gets forwarded to the REPL.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Enums


class HealthStatus(str, Enum):
    """Health of the REPL session."""

    OK = "ok"
    UNHEALTHY = "unhealthy"


# Request Models (API Input)


class ReplCommand(BaseModel):
    """
    A command accepted by the Lean REPL.

    Command mode uses cmd/env, file mode path/allTactics, tactic mode
    tactic/proofState; the pickling fields work with either. Unknown
    fields are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, strict=True, extra="ignore")

    # Command mode
    cmd: Optional[str] = Field(None, description="Lean source to elaborate")
    env: Optional[int] = Field(None, description="Environment to run the command in")

    # File mode
    path: Optional[str] = Field(None, description="Lean file to elaborate")
    all_tactics: Optional[bool] = Field(
        None, alias="allTactics", description="Report every tactic in the file"
    )

    # Tactic mode
    tactic: Optional[str] = Field(None, description="Tactic to run")
    proof_state: Optional[int] = Field(
        None, alias="proofState", description="Proof state to run the tactic in"
    )

    # Pickling
    pickle_to: Optional[str] = Field(None, alias="pickleTo")
    unpickle_env_from: Optional[str] = Field(None, alias="unpickleEnvFrom")
    unpickle_proof_state_from: Optional[str] = Field(None, alias="unpickleProofStateFrom")


# Response Models (API Output)


class ErrorResponse(BaseModel):
    """Error body returned for failed or timed out commands."""

    error: str
    partial_output: Optional[str] = Field(
        None, description="Output read before the timeout, possibly truncated JSON"
    )
    elapsed_seconds: Optional[float] = None


class SessionInfo(BaseModel):
    """Snapshot of the REPL session."""

    pid: Optional[int] = None
    alive: bool
    returncode: Optional[int] = None
    command: List[str]
    cwd: Optional[str] = None
    started_at: Optional[str] = None
    last_activity: Optional[str] = None
    command_count: int = 0
    last_exchange_complete: Optional[bool] = None


class HealthResponse(BaseModel):
    """Detailed health report."""

    status: HealthStatus
    version: str
    session: Optional[SessionInfo] = None
