"""FastAPI application entrypoint for axumdoc service mode."""

from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

try:  # pragma: no cover - optional dependency
    from fastapi import FastAPI
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel

    _FASTAPI_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - service mode optional
    FastAPI = None  # type: ignore[assignment]
    JSONResponse = None  # type: ignore[assignment]
    BaseModel = object  # type: ignore[assignment]
    _FASTAPI_AVAILABLE = False

from ..config import AxumDocConfig, ConfigError, load_config
from ..orchestrator import GenerationResult, Generator
from ..routing.resolver import EntryError, MissingEntryError


class GenerateRequest(BaseModel):
    base_dir: str
    entry_file: Optional[str] = None
    model_files: Optional[List[str]] = None
    entry_function: Optional[str] = None


class RouteSummary(BaseModel):
    method: str
    path: str
    handler: str


class GenerateResponse(BaseModel):
    document: Dict[str, Any]
    diagnostics: List[str]
    routes: List[RouteSummary]


class HealthResponse(BaseModel):
    status: str


def _default_generator(config: AxumDocConfig) -> Generator:
    return Generator(config)


def _config_for(payload: GenerateRequest) -> AxumDocConfig:
    base_dir = Path(payload.base_dir).expanduser()
    if not base_dir.is_dir():
        raise MissingEntryError(f"Base directory does not exist: {base_dir}")
    config = load_config(base_dir)
    entry = config.entry
    if payload.entry_file:
        entry = dataclasses.replace(entry, file=payload.entry_file)
    if payload.entry_function:
        entry = dataclasses.replace(entry, function=payload.entry_function)
    changes: Dict[str, Any] = {"entry": entry}
    if payload.model_files is not None:
        changes["model_files"] = list(payload.model_files)
    return dataclasses.replace(config, **changes)


def create_app(
    generator_factory: Callable[[AxumDocConfig], Generator] = _default_generator,
) -> FastAPI:
    """Create the FastAPI application exposing OpenAPI generation."""

    if not _FASTAPI_AVAILABLE:  # pragma: no cover - validated via unit tests
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install axumdoc[service]`."
        )

    app = FastAPI(title="axumdoc Service", version="1.0.0")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(payload: GenerateRequest) -> GenerateResponse:
        def _run_generate() -> GenerationResult:
            # One independent generator per request; runs share no state.
            return generator_factory(_config_for(payload)).run()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:  # pragma: no cover
            result = _run_generate()
        else:
            result = await loop.run_in_executor(None, _run_generate)

        return GenerateResponse(
            document=result.document,
            diagnostics=result.diagnostics.messages(),
            routes=[RouteSummary(**summary) for summary in result.route_summaries()],
        )

    @app.exception_handler(MissingEntryError)
    async def missing_entry_handler(_: Any, exc: MissingEntryError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(EntryError)
    async def entry_error_handler(_: Any, exc: EntryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    if not _FASTAPI_AVAILABLE:
        raise RuntimeError(
            "FastAPI is required for service mode. Install it with `pip install axumdoc[service]`."
        )

    try:
        import uvicorn
    except ModuleNotFoundError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError(
            "uvicorn is required to run the service. Install it with `pip install uvicorn`."
        ) from exc

    app = create_app()
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
