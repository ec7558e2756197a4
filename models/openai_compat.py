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

"""Client for OpenAI-compatible ``/chat/completions`` endpoints."""

import logging
from typing import Iterator, List, Optional

import requests

from models.api_config import OpenAIConfig
from models.streaming import iter_sse_events
from shared.errors import (
    InvalidResponseError,
    MalformedResponseError,
    RETRYABLE_STATUS_CODES,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7


def to_openai_messages(messages: List[dict]) -> List[dict]:
    """
    Maps normalized chat messages to the OpenAI wire shape.

    The ``model`` role becomes ``assistant``. Image attachments become
    ``image_url`` content blocks carrying a data URL; text attachments are
    appended to the message text.
    """
    converted = []
    for message in messages:
        role = "assistant" if message["role"] == "model" else message["role"]
        text = message.get("text") or message.get("content") or ""
        attachments = message.get("attachments") or []

        text_parts = [text] if text else []
        image_blocks = []
        for attachment in attachments:
            if attachment.is_image:
                image_blocks.append(
                    {"type": "image_url", "image_url": {"url": attachment.data_url()}}
                )
            elif attachment.text:
                text_parts.append(f"--- Attached file: {attachment.name} ---\n{attachment.text}")

        joined = "\n\n".join(text_parts)
        if image_blocks:
            content = [{"type": "text", "text": joined}] + image_blocks
        else:
            content = joined
        converted.append({"role": role, "content": content})
    return converted


def _raise_for_status(response: requests.Response) -> None:
    if response.ok:
        return
    try:
        message = response.json().get("error", {}).get("message")
    except (ValueError, AttributeError):
        message = None
    message = message or f"OpenAI API error: {response.status_code}"
    error_cls = RateLimitError if response.status_code in RETRYABLE_STATUS_CODES else TransportError
    raise error_cls(message, status_code=response.status_code)


class OpenAICompatibleClient:
    """Thin ``requests`` wrapper around one OpenAI-compatible endpoint."""

    def __init__(
        self,
        config: OpenAIConfig,
        timeout: float,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    def _post(self, messages: List[dict], stream: bool) -> requests.Response:
        body = {
            "model": self.config.model,
            "messages": to_openai_messages(messages),
            "temperature": DEFAULT_TEMPERATURE,
        }
        if stream:
            body["stream"] = True
        try:
            response = self.session.post(
                self.url,
                json=body,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.config.api_key}",
                },
                timeout=self.timeout,
                stream=stream,
            )
        except requests.RequestException as exc:
            raise TransportError(f"OpenAI request failed: {exc}") from exc
        _raise_for_status(response)
        return response

    def complete(self, messages: List[dict]) -> str:
        response = self._post(messages, stream=False)
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError("OpenAI returned invalid JSON") from exc
        choices = data.get("choices") or [{}]
        text = (choices[0].get("message") or {}).get("content") or ""
        if not text:
            raise InvalidResponseError("No response generated from OpenAI API")
        return text

    def stream(self, messages: List[dict]) -> Iterator[str]:
        response = self._post(messages, stream=True)
        try:
            for event in iter_sse_events(response.iter_lines(decode_unicode=True)):
                choices = event.get("choices") or [{}]
                delta = (choices[0].get("delta") or {}).get("content") or ""
                if delta:
                    yield delta
        finally:
            response.close()
