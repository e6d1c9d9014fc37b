#!/usr/bin/env python3
"""
replbridge - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Starts the REPL session
3. Serves the HTTP API

All REPL handling lives in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from replbridge import __version__
from replbridge.errors import ReplError, ShutdownFailure, StartupFailure
from replbridge.logging_config import configure_logging, get_logging_config
from replbridge.modules.api import (
    ErrorResponse,
    HealthResponse,
    HealthStatus,
    ReplCommand,
    SessionInfo,
)

# Import modules through their black box interfaces
from replbridge.modules.config import ConfigModule, get_config
from replbridge.modules.middleware import create_request_logging_middleware
from replbridge.modules.session import SessionModule

# Get configuration
config = get_config()

# Configure logging with health check suppression
configure_logging(config.get("log_level"))
logger = logging.getLogger(__name__)


def create_session(config: ConfigModule) -> SessionModule:
    """Build the REPL session from configuration."""
    return SessionModule(
        config.get("repl_command"),
        cwd=config.get("repl_path"),
        stream_limit=config.get("stream_limit"),
        shutdown_grace=config.get("shutdown_grace"),
        eof_grace=config.get("eof_grace"),
    )


def create_app(config: Optional[ConfigModule] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Configuration to use (defaults to the environment singleton)

    Returns:
        Application whose lifespan owns one REPL session
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - start and stop the REPL.
        """
        logger.info("Starting REPL bridge...")

        session = create_session(config)
        try:
            await session.start()
        except StartupFailure as e:
            logger.error(f"Failed to start REPL server: {e}")
            raise
        app.state.session = session

        logger.info("REPL bridge started successfully")

        yield

        # Shutdown
        logger.info("Shutting down REPL bridge...")
        try:
            await session.shutdown()
        except ShutdownFailure as e:
            logger.error(f"Error cleaning up REPL: {e}")
        logger.info("REPL bridge shutdown complete")

    app = FastAPI(
        title="replbridge",
        description="HTTP bridge to a long-lived Lean REPL process",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.session = None

    app.middleware("http")(create_request_logging_middleware())

    def get_session() -> SessionModule:
        session = app.state.session
        if session is None:
            raise HTTPException(503, "Service not initialized")
        return session

    @app.post("/repl")
    async def repl(
        request: Request,
        x_request_timeout: Optional[float] = Header(
            None, gt=0, description="Seconds to wait for the REPL response"
        ),
    ):
        """
        Forward a command to the REPL and return its JSON response.

        Returns:
            200: Raw REPL response
            400: Body is not a REPL command object
            500: REPL write, read or protocol error
            504: REPL did not answer in time (partial output included)
        """
        session = get_session()

        body = await request.body()
        try:
            ReplCommand.model_validate_json(body)
        except ValidationError:
            raise HTTPException(400, "Invalid JSON format")

        timeout = x_request_timeout if x_request_timeout is not None else config.get("command_timeout")
        result = await session.execute(body, timeout=timeout)

        if not result.complete:
            error = ErrorResponse(
                error="REPL response timed out",
                partial_output=result.output.decode("utf-8", errors="replace"),
                elapsed_seconds=round(result.elapsed, 3),
            )
            return JSONResponse(status_code=504, content=error.model_dump())

        return Response(content=result.output, media_type="application/json")

    # Health/Monitoring Endpoints

    @app.get("/healthz")
    async def healthz():
        """
        Minimal liveness check.

        Returns:
            200: REPL process is running
            503: REPL process is not running
        """
        session = app.state.session
        if session is None or not session.is_alive():
            return JSONResponse(
                status_code=503,
                content={"status": HealthStatus.UNHEALTHY.value, "error": "REPL server is not running"},
            )
        return {"status": HealthStatus.OK.value}

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """
        Detailed health check with session statistics.

        Returns:
            200: Session healthy
            503: Session missing or process exited
        """
        session = app.state.session
        info = SessionInfo(**session.describe()) if session else None
        healthy = info is not None and info.alive

        report = HealthResponse(
            status=HealthStatus.OK if healthy else HealthStatus.UNHEALTHY,
            version=__version__,
            session=info,
        )
        if not healthy:
            return JSONResponse(status_code=503, content=report.model_dump(mode="json"))
        return report

    # Error handlers

    @app.exception_handler(ReplError)
    async def repl_error_handler(request, exc):
        """Handle REPL write, read and protocol errors."""
        logger.error(f"REPL error on {request.url.path}: {exc}")
        error = ErrorResponse(error=f"REPL error: {exc}")
        return JSONResponse(status_code=500, content=error.model_dump())

    return app


app = create_app(config)


def run() -> None:
    """Run the API server with uvicorn."""
    logger.info(f"Server starting on http://{config.get('host')}:{config.get('port')}")
    uvicorn.run(
        "replbridge.main:app",
        host=config.get("host"),
        port=config.get("port"),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
