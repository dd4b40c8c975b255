"""
Load JSON Object fragment service — renders injection fragments over HTTP.

Run:  uvicorn fragment_service:app --reload --port 8080

    POST /fragment
    {"source": "static", "variable": "myApp.settings", "static_json": "{\\"a\\":1}"}

returns the <script> fragment as text/html, ready to be spliced into a page.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from injection_errors import (
    ConfigurationError,
    ContractViolationError,
    ExecutionError,
    QueryExecutionError,
)
from script_emitter import DEFAULT_CHUNK_SIZE
from source_adapters import InjectionRequest, JsonObjectLoader, SourceKind, SqliteQueryExecutor

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def database_path() -> str:
    return os.getenv("LJO_DATABASE", ":memory:")


def chunk_size() -> int:
    raw = os.getenv("LJO_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"LJO_CHUNK_SIZE must be a positive integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigurationError(f"LJO_CHUNK_SIZE must be a positive integer, got {value}")
    return value


def procedural_allowed() -> bool:
    # Procedural blocks execute code; they stay off unless explicitly enabled.
    return os.getenv("LJO_ALLOW_PROCEDURAL", "0").strip().lower() in ("1", "true", "yes")


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class FragmentRequest(BaseModel):
    source: str = "sql"
    variable: str
    query: Optional[str] = None
    json_query: Optional[str] = None
    code: Optional[str] = None
    static_json: Optional[str] = None
    binds: dict[str, Any] = Field(default_factory=dict)
    name: str = "Load JSON Object"


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(title="Load JSON Object", version="0.1.0")


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


@app.post("/fragment", response_class=HTMLResponse)
def fragment(req: FragmentRequest) -> HTMLResponse:
    try:
        size = chunk_size()
    except ConfigurationError as exc:
        logger.error("Service misconfigured: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    try:
        source = SourceKind.parse(req.source)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if source is SourceKind.PROCEDURAL_JSON and not procedural_allowed():
        raise HTTPException(
            status_code=403,
            detail="Procedural sources are disabled (set LJO_ALLOW_PROCEDURAL=1)",
        )

    request = InjectionRequest(
        source=source,
        target_path=req.variable,
        query=req.query,
        json_query=req.json_query,
        procedural_block=req.code,
        static_text=req.static_json,
        binds=req.binds,
        name=req.name,
    )

    try:
        with SqliteQueryExecutor(database_path()) as executor:
            loader = JsonObjectLoader(executor=executor, chunk_size=size)
            body = loader.render(request)
    except (ConfigurationError, ContractViolationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (QueryExecutionError, ExecutionError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return HTMLResponse(content=body)
