from __future__ import annotations

from typing import Any, Dict, List, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

from ..config import Settings
from ..domain.export import RecordValidationError, records_from_json, to_markdown_table, to_tsv
from ..logging import get_logger
from ..service import ShelfScanService


LOG = get_logger("shelfscan-api")

EXPORT_FORMATS = {"tsv": to_tsv, "markdown": to_markdown_table}


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body must be JSON") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload


def create_app(
    settings: Optional[Settings] = None,
    *,
    service: Optional[ShelfScanService] = None,
    allow_origins: Optional[List[str]] = None,
) -> Starlette:
    """Create a Starlette app exposing extraction, export and manual entry."""

    svc = service or ShelfScanService(settings)

    async def health(_: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    async def extract_text(request: Request) -> JSONResponse:
        payload = await _json_body(request)
        text = payload.get("text")
        if not isinstance(text, str):
            raise HTTPException(status_code=400, detail="'text' must be a string")
        result = svc.extract_from_text(text)
        return JSONResponse(result.to_dict())

    async def extract_image(request: Request) -> JSONResponse:
        data = await request.body()
        if not data:
            raise HTTPException(status_code=400, detail="Request body must contain the image bytes")
        filename = request.query_params.get("filename") or "upload.jpg"
        result = await run_in_threadpool(svc.extract_from_bytes, data, filename)
        return JSONResponse(result.to_dict())

    async def export(request: Request) -> PlainTextResponse:
        payload = await _json_body(request)
        fmt = (payload.get("format") or "tsv").lower()
        formatter = EXPORT_FORMATS.get(fmt)
        if formatter is None:
            raise HTTPException(status_code=400, detail=f"Unknown format {fmt!r}; use tsv or markdown")
        try:
            records = records_from_json(payload.get("products"))
        except RecordValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return PlainTextResponse(formatter(records))

    async def manual(request: Request) -> JSONResponse:
        payload = await _json_body(request)
        try:
            records = records_from_json(payload.get("products"))
        except RecordValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        if not records:
            raise HTTPException(status_code=400, detail="At least one product with a name, SKU or UPC is required")
        LOG.info("Accepted %d manually entered product(s)", len(records))
        return JSONResponse({"products": [r.to_dict() for r in records]})

    routes = [
        Route("/api/health", health, methods=["GET"]),
        Route("/api/extract/text", extract_text, methods=["POST"]),
        Route("/api/extract/image", extract_image, methods=["POST"]),
        Route("/api/export", export, methods=["POST"]),
        Route("/api/manual", manual, methods=["POST"]),
    ]

    app = Starlette(debug=False, routes=routes)

    origins = allow_origins or ["http://localhost:5173", "http://127.0.0.1:5173"]
    if "*" in origins:
        cors_allow_origins = ["*"]
    else:
        cors_allow_origins = origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


__all__ = ["create_app"]
