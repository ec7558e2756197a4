"""
Forwarding helper for OpenAI-compatible chat completion endpoints.

The admin panel cannot call most providers directly from the browser (CORS),
so it posts ``{url, apiKey, body}`` here and we relay the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

import requests

logger = logging.getLogger(__name__)

STREAM_CHUNK_SIZE = 1024


@dataclass
class ProxyResult:
    status_code: int
    json_body: Optional[dict] = None
    text_body: Optional[str] = None
    stream: Optional[Iterator[bytes]] = None


def _relay_stream(response: requests.Response) -> Iterator[bytes]:
    try:
        for chunk in response.iter_content(chunk_size=STREAM_CHUNK_SIZE):
            if chunk:
                yield chunk
    finally:
        response.close()


def forward_openai_request(
    url: str,
    api_key: str,
    body: dict,
    *,
    timeout: float,
    session: Optional[requests.Session] = None,
) -> ProxyResult:
    """
    Forward ``body`` to ``url`` and describe how to relay the answer.

    Raises:
        requests.RequestException: on transport failures; the route turns
            these into a 500.
    """
    http = session or requests
    stream = bool(body.get("stream"))
    logger.info("[Proxy] Forwarding request to: %s", url)
    response = http.post(
        url,
        json=body,
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        },
        timeout=timeout,
        stream=stream,
    )

    if not response.ok:
        error_text = response.text
        logger.error("[Proxy] Upstream Error: %s %s", response.status_code, error_text)
        response.close()
        return ProxyResult(status_code=response.status_code, text_body=error_text)

    if stream:
        return ProxyResult(status_code=response.status_code, stream=_relay_stream(response))

    return ProxyResult(status_code=response.status_code, json_body=response.json())
