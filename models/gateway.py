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

"""AI provider gateway.

Dispatches generation requests to Gemini or an OpenAI-compatible endpoint
depending on the ``AIConfig`` it was built with. Non-streaming calls retry on
HTTP 429/503 (and on connection failures) with exponential backoff;
streaming calls return a ``TextStream`` and are not retried.
"""

import logging
import time
from typing import Callable, List, Optional, TypeVar, Union

import requests

from models.api_config import AIConfig
from models.gemini import GeminiClient
from models.openai_compat import OpenAICompatibleClient
from models.streaming import ChunkCallback, TextStream
from shared.attachments import Attachment
from shared.errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Prompt = Union[str, dict]


def normalize_prompt(prompt: Prompt) -> List[dict]:
    """
    Turns a prompt into a single-turn message list.

    Accepts a plain string or ``{"text": ..., "attachments": [...]}`` where
    attachments are ``Attachment`` objects or their dict form.
    """
    if isinstance(prompt, str):
        return [{"role": "user", "text": prompt}]
    return normalize_messages([{"role": "user", **prompt}])


def normalize_messages(messages: List[dict]) -> List[dict]:
    normalized = []
    for message in messages:
        attachments = [
            a if isinstance(a, Attachment) else Attachment.from_dict(a)
            for a in message.get("attachments") or []
        ]
        normalized.append(
            {
                "role": message.get("role", "user"),
                "text": message.get("text") or message.get("content") or "",
                "attachments": attachments,
            }
        )
    return normalized


def _is_retryable(exc: Exception) -> bool:
    if not isinstance(exc, TransportError):
        return False
    # status_code is None for connection-level failures.
    return exc.status_code is None or exc.retryable


def call_with_retries(
    fn: Callable[[], T],
    max_retries: int,
    initial_delay_seconds: float,
    backoff_factor: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Calls ``fn`` up to ``max_retries`` times.

    Only retryable transport errors trigger another attempt; everything else
    propagates at once. After the last attempt the last error is raised.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")
    last_error: Optional[Exception] = None
    for attempt in range(max_retries):
        try:
            return fn()
        except Exception as exc:
            if not _is_retryable(exc):
                raise
            last_error = exc
            if attempt < max_retries - 1:
                delay = initial_delay_seconds * (backoff_factor**attempt)
                logger.info(
                    "Rate limited. Retrying in %.1fs (attempt %d/%d)",
                    delay,
                    attempt + 1,
                    max_retries,
                )
                sleep(delay)
    raise last_error


class AIGateway:
    """Provider-agnostic entry point for content generation."""

    def __init__(
        self,
        config: AIConfig,
        *,
        session: Optional[requests.Session] = None,
        gemini_client=None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self._sleep = sleep
        if config.is_gemini:
            self._provider = GeminiClient(
                config.gemini, config.request_timeout_seconds, client=gemini_client
            )
        else:
            self._provider = OpenAICompatibleClient(
                config.openai, config.request_timeout_seconds, session=session
            )

    @property
    def provider_name(self) -> str:
        return self.config.provider

    def _with_retries(self, fn: Callable[[], T]) -> T:
        policy = self.config.retry
        return call_with_retries(
            fn,
            max_retries=policy.max_retries,
            initial_delay_seconds=policy.initial_delay_seconds,
            backoff_factor=policy.backoff_factor,
            sleep=self._sleep,
        )

    def generate_content(self, prompt: Prompt) -> str:
        messages = normalize_prompt(prompt)
        return self._with_retries(lambda: self._provider.complete(messages))

    def chat(self, messages: List[dict]) -> str:
        normalized = normalize_messages(messages)
        return self._with_retries(lambda: self._provider.complete(normalized))

    def stream_content(
        self, prompt: Prompt, on_chunk: Optional[ChunkCallback] = None
    ) -> TextStream:
        return TextStream(self._provider.stream(normalize_prompt(prompt)), on_chunk=on_chunk)

    def stream_chat(
        self, messages: List[dict], on_chunk: Optional[ChunkCallback] = None
    ) -> TextStream:
        return TextStream(
            self._provider.stream(normalize_messages(messages)), on_chunk=on_chunk
        )


def create_gateway(config: AIConfig, **kwargs) -> AIGateway:
    return AIGateway(config, **kwargs)


def provider_info(config: AIConfig) -> dict:
    if config.provider == "openai":
        return {"name": "OpenAI / Compatible", "model": config.openai.model, "icon": "Bot"}
    return {"name": "Google Gemini", "model": config.gemini.model, "icon": "Sparkles"}
