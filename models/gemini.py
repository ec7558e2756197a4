# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import logging
import time
from typing import Iterator, List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from models.api_config import GeminiConfig
from shared.errors import (
    InvalidResponseError,
    RETRYABLE_STATUS_CODES,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)

API_KEY_LOGGING_MESSAGE = "Ran with user-specified API key"
QUERY_RESPONSE_MAX_OUTPUT_TOKENS = 4096


class GeminiInvalidResponseException(InvalidResponseError):
    pass


def _generation_config(temperature: float) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        temperature=temperature,
        top_k=40,
        top_p=0.95,
        max_output_tokens=QUERY_RESPONSE_MAX_OUTPUT_TOKENS,
    )


def to_gemini_contents(messages: List[dict]) -> List[types.Content]:
    """
    Maps normalized chat messages to Gemini contents.

    Gemini only knows ``user`` and ``model`` roles; ``assistant`` replies are
    sent as ``model`` and ``system`` text is sent as a ``user`` turn. Image
    attachments become inline base64 parts, text attachments extra text parts.
    """
    contents = []
    for message in messages:
        role = "model" if message["role"] in ("model", "assistant") else "user"
        text = message.get("text") or message.get("content") or ""
        parts = []
        if text:
            parts.append(types.Part.from_text(text=text))
        for attachment in message.get("attachments") or []:
            if attachment.is_image:
                parts.append(
                    types.Part.from_bytes(
                        data=attachment.data_bytes(), mime_type=attachment.type
                    )
                )
            elif attachment.text:
                parts.append(
                    types.Part.from_text(
                        text=f"--- Attached file: {attachment.name} ---\n{attachment.text}"
                    )
                )
        contents.append(types.Content(role=role, parts=parts))
    return contents


def translate_api_error(exc: genai_errors.APIError) -> TransportError:
    """Maps an SDK error onto the gateway's transport errors."""
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)
    if code in RETRYABLE_STATUS_CODES:
        return RateLimitError(message, status_code=code)
    return TransportError(message or f"Gemini API error: {code}", status_code=code)


class GeminiClient:
    """Calls Gemini through the ``google-genai`` SDK."""

    def __init__(
        self,
        config: GeminiConfig,
        timeout: float,
        client: Optional[genai.Client] = None,
    ):
        self.config = config
        if client is None:
            if config.api_key:
                logger.info(API_KEY_LOGGING_MESSAGE)
            client = genai.Client(
                api_key=config.api_key,
                http_options=types.HttpOptions(timeout=int(timeout * 1000)),
            )
        self._client = client

    def complete(self, messages: List[dict], temperature: float = 0.2) -> str:
        start_time = time.time()
        try:
            response = self._client.models.generate_content(
                model=self.config.model,
                contents=to_gemini_contents(messages),
                config=_generation_config(temperature),
            )
        except genai_errors.APIError as exc:
            raise translate_api_error(exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Gemini request failed: {exc}") from exc
        logger.debug("Gemini call took: %.2fs", time.time() - start_time)
        if not response.text:
            raise GeminiInvalidResponseException("No response generated from Gemini API")
        return response.text

    def stream(self, messages: List[dict], temperature: float = 0.2) -> Iterator[str]:
        try:
            for chunk in self._client.models.generate_content_stream(
                model=self.config.model,
                contents=to_gemini_contents(messages),
                config=_generation_config(temperature),
            ):
                if chunk.text:
                    yield chunk.text
        except genai_errors.APIError as exc:
            raise translate_api_error(exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Gemini request failed: {exc}") from exc
