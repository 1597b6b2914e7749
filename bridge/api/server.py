"""
HTTP surface for tool calls.

Requests are authenticated against the runtime state's bearer token and then
handed to `run_tool`, which owns policy enforcement.
"""

from __future__ import annotations

import hmac
import logging
import os
import time
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from bridge.config import load_bridge_config
from bridge.core.errors import InitializationError
from bridge.state.runtime import get_or_init_state
from bridge.tools.catalog import TOOLS
from bridge.tools.tools import run_tool
from bridge.tools.types import ToolCallRequest, ToolCallResponse, ToolSpec

logger = logging.getLogger(__name__)

app = FastAPI(title="Plant bridge")


def _is_public_path(path: str) -> bool:
    return path == "/healthz"


def _bearer(request: Request) -> str:
    raw = request.headers.get("authorization") or ""
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


@app.middleware("http")
async def authenticate_and_log(request: Request, call_next):
    """Log requests and require the bridge bearer token on non-public paths."""
    start_time = time.time()
    path = request.url.path or ""
    try:
        if load_bridge_config().require_token and not _is_public_path(path):
            try:
                state = await run_in_threadpool(get_or_init_state)
            except InitializationError as e:
                logger.error("Cannot authenticate %s %s: runtime state unavailable: %s", request.method, path, e)
                return JSONResponse(status_code=503, content={"detail": "bridge_unavailable"})
            expected = state.credentials.token or ""
            if not expected:
                return JSONResponse(status_code=503, content={"detail": "bridge_token_not_configured"})
            if not hmac.compare_digest(_bearer(request).encode(), expected.encode()):
                return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

        response = await call_next(request)
        logger.debug(
            "%s %s - %d (%.3fs)", request.method, path, response.status_code, time.time() - start_time
        )
        return response
    except Exception as e:
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, path, time.time() - start_time, str(e))
        raise


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@app.get("/api/v1/tools", response_model=List[ToolSpec])
def list_tools() -> List[ToolSpec]:
    return TOOLS


@app.post("/api/v1/tools/call", response_model=ToolCallResponse)
def call_tool(req: ToolCallRequest) -> ToolCallResponse:
    res = run_tool(tool=req.tool, args=req.args)
    return ToolCallResponse(tool=req.tool, ok=res.ok, result=res.result, error=res.error)


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )
    logger.info("Starting plant bridge on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
