"""
HTTP routes for the QuickStor key/value backend and the OpenAI proxy.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, Response, StreamingResponse

from backend.config import get_settings
from backend.dependencies import get_kv_store
from backend.kv_store import KeyValueStore
from backend.proxy import forward_openai_request
from backend.schemas import ProxyRequest, RestoreResponse, SaveDocumentResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/proxy/openai")
def proxy_openai(payload: ProxyRequest):
    """
    Forward a chat completion request to an OpenAI-compatible endpoint.
    """
    if not payload.url or not payload.api_key or payload.body is None:
        return _error(400, "Missing url, apiKey, or body")

    settings = get_settings()
    try:
        result = forward_openai_request(
            payload.url,
            payload.api_key,
            payload.body,
            timeout=settings.proxy_timeout_seconds,
        )
    except requests.RequestException as exc:
        logger.exception("[Proxy] Internal Error: %s", exc)
        return _error(500, str(exc))

    if result.text_body is not None:
        return Response(
            content=result.text_body,
            status_code=result.status_code,
            media_type="text/plain",
        )
    if result.stream is not None:
        return StreamingResponse(
            result.stream,
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )
    return JSONResponse(content=result.json_body)


@router.get("/data")
def get_all_data(store: KeyValueStore = Depends(get_kv_store)):
    logger.info("[GET] Fetching ALL data (Backup)")
    try:
        return store.dump()
    except Exception:
        logger.exception("Error reading all data")
        return _error(500, "Internal Server Error")


@router.post("/data", response_model=RestoreResponse)
def restore_all_data(
    data: Any = Body(None), store: KeyValueStore = Depends(get_kv_store)
):
    logger.info("[POST] Restoring ALL data")
    if not isinstance(data, dict):
        return _error(400, "Invalid data format")
    try:
        store.replace_all(data)
    except Exception:
        logger.exception("Error restoring data")
        return _error(500, "Internal Server Error")
    return RestoreResponse()


@router.get("/data/{doc_path:path}")
def get_document(doc_path: str, store: KeyValueStore = Depends(get_kv_store)):
    logger.info("[GET] Fetching %s", doc_path)
    try:
        doc = store.get(doc_path)
    except Exception:
        logger.exception("Error reading data")
        return _error(500, "Internal Server Error")
    if doc is None:
        return _error(404, "Document not found")
    return doc


@router.post("/data/{doc_path:path}", response_model=SaveDocumentResponse)
def save_document(
    doc_path: str,
    data: Any = Body(None),
    store: KeyValueStore = Depends(get_kv_store),
):
    logger.info("[POST] Saving to %s", doc_path)
    if not isinstance(data, dict):
        return _error(400, "Invalid data format")
    try:
        store.set(doc_path, data)
    except Exception:
        logger.exception("Error writing data")
        return _error(500, "Internal Server Error")
    return SaveDocumentResponse(path=doc_path)
