"""FastAPI application entrypoint for clonepack service mode."""

from __future__ import annotations

import asyncio
import base64
import binascii
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError, load_config
from ..models import DeclaredEncoding, PipelineResult, RawEntry
from ..orchestrator import MalformedEntryError, Orchestrator


class EntryPayload(BaseModel):
    path: str
    content: str
    encoding: str = "utf8"


class PackRequest(BaseModel):
    source: str
    destination: str = "/home/project"
    entries: List[EntryPayload] = Field(default_factory=list)


class SkippedFile(BaseModel):
    path: str
    reason: str
    detail: str


class PackResponse(BaseModel):
    artifact: str
    admitted: List[str]
    skipped: List[SkippedFile]
    total_bytes: int
    skip_counts: Dict[str, int]
    commands_message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


def _to_entry(payload: EntryPayload) -> RawEntry:
    encoding = DeclaredEncoding.parse(payload.encoding)
    if encoding is DeclaredEncoding.UTF8:
        return RawEntry(path=payload.path, data=payload.content, declared_encoding=encoding)
    try:
        data = base64.b64decode(payload.content, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedEntryError(f"Entry {payload.path} is not valid base64: {exc}") from exc
    return RawEntry(path=payload.path, data=data, declared_encoding=encoding)


def _to_response(result: PipelineResult) -> PackResponse:
    return PackResponse(
        artifact=result.artifact,
        admitted=result.admitted_paths,
        skipped=[
            SkippedFile(path=record.path, reason=record.reason.value, detail=record.detail)
            for record in result.skip_records
        ],
        total_bytes=result.total_bytes,
        skip_counts=result.skip_counts,
        commands_message=result.commands_message,
    )


def create_app(
    orchestrator_factory: Optional[Callable[[], Orchestrator]] = None,
    *,
    config_path: Optional[Path] = None,
) -> FastAPI:
    """Create the FastAPI application exposing the packing pipeline.

    Without a factory, every request builds an orchestrator from
    ``config_path`` (re-read per request) or from the defaults.
    """

    def _configured_orchestrator() -> Orchestrator:
        if config_path is None:
            return Orchestrator()
        return Orchestrator(load_config(config_path))

    factory = orchestrator_factory or _configured_orchestrator
    app = FastAPI(title="Clonepack Service", version="1.0.0")

    async def get_orchestrator() -> Orchestrator:
        # Each request gets its own pipeline so runs never share budget state.
        return factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/pack", response_model=PackResponse)
    async def pack(
        payload: PackRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> PackResponse:
        entries = [_to_entry(item) for item in payload.entries]

        def _run_pack() -> PipelineResult:
            return orchestrator.run(entries, payload.source, payload.destination)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_pack)
        return _to_response(result)

    @app.exception_handler(MalformedEntryError)
    async def malformed_entry_handler(_: Any, exc: MalformedEntryError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0", port: int = 8000, config_path: Optional[Path] = None
) -> None:  # pragma: no cover - integration path
    try:
        import uvicorn
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install clonepack[service]`."
        ) from exc

    uvicorn.run(create_app(config_path=config_path), host=host, port=port)
