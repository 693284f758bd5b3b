"""REST API exposing the eye-control catalog to an agent.

Each catalog operation is a tool the agent can list and call. Calls
always answer with the envelope, whether or not the command reached the
eyes; only an unknown tool name is an HTTP error.

    GET  /health             -> {"status": "ok", "transport": "serial", "state": "ready"}
    GET  /tools              -> [{"name": "moveEyes", "description": ..., "input_schema": {...}}, ...]
    POST /tools/{name}       <- {"horizontal": 90, "vertical": 90}
                             -> {"content": [{"type": "text", "text": ...}], "isError": false}
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel, Field

from eyebridge.catalog import CATALOG
from eyebridge.dispatcher import Dispatcher
from eyebridge.domain.models import TransportState
from eyebridge.transport.base import Transport

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str = "ok"
    transport: str
    state: TransportState
    failure: str | None = None


class ToolDescription(BaseModel):
    name: str
    description: str
    input_schema: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(transport: Transport, open_transport: bool = True) -> FastAPI:
    """Create the tool API application.

    Args:
        transport: The transport commands are delivered through.
        open_transport: Whether to open the transport on startup (disable
                        when the transport is already open, e.g. in tests).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        t: Transport = app.state.dispatcher.transport
        if open_transport:
            state = await t.open()
            if state is TransportState.READY:
                logger.info("Eye controller ready (%s transport)", t.kind)
            else:
                logger.warning(
                    "Continuing without eye controller (%s). Commands will not reach the hardware.",
                    t.failure.reason if t.failure else state.value,
                )

        yield

        await t.close()
        logger.info("Eye bridge server stopped")

    app = FastAPI(
        title="eyebridge",
        description="Animatronic eye control tools",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.dispatcher = Dispatcher(transport)

    @app.get("/health")
    async def health_check() -> HealthResponse:
        t: Transport = app.state.dispatcher.transport
        return HealthResponse(
            transport=t.kind,
            state=t.state,
            failure=t.failure.reason if t.failure else None,
        )

    @app.get("/tools")
    async def list_tools() -> list[ToolDescription]:
        dispatcher: Dispatcher = app.state.dispatcher
        return [
            ToolDescription(name=op.name, description=op.description, input_schema=op.input_schema())
            for op in dispatcher.available_operations()
        ]

    @app.post("/tools/{name}")
    async def call_tool(name: str, arguments: dict[str, Any] | None = Body(default=None)) -> dict[str, Any]:
        if name not in CATALOG:
            raise HTTPException(status_code=404, detail=f"Unknown operation: {name}")
        dispatcher: Dispatcher = app.state.dispatcher
        envelope = await dispatcher.call(name, arguments)
        return envelope.to_dict()

    return app
