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

# summaries.py
"""Shrinks long text attachments so they fit a provider's context window."""

import logging
import math
from typing import Callable, List, Optional

from models.api_config import AIConfig

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
CHUNK_CONTEXT_FRACTION = 0.25
MAX_COMPRESSION_PASSES = 8
MIN_CHUNK_BUDGET_CHARS = 200

GEMINI_CONTEXT_LIMIT = 1_048_576
OPENAI_DEFAULT_CONTEXT_LIMIT = 128_000

# Keyed by substring of the model name, checked in order.
KNOWN_CONTEXT_LIMITS = (
    ("gpt-4o", 128_000),
    ("gpt-4-turbo", 128_000),
    ("gpt-4.1", 1_047_576),
    ("gpt-4", 8_192),
    ("gpt-3.5", 16_385),
    ("deepseek", 131_072),
    ("moonshot", 131_072),
    ("qwen", 131_072),
    ("llama", 131_072),
    ("mistral", 32_768),
)

SummarizeChunk = Callable[[str, int], str]
ProgressCallback = Callable[[str], None]


def estimate_token_count(text: str) -> int:
    """Approximates tokens as one per four characters."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def get_context_limit(config: AIConfig) -> int:
    """Returns the context window, in tokens, of the configured model."""
    if config.is_gemini:
        return GEMINI_CONTEXT_LIMIT
    if config.openai.context_limit:
        return config.openai.context_limit
    model = config.openai.model.lower()
    for needle, limit in KNOWN_CONTEXT_LIMITS:
        if needle in model:
            return limit
    return OPENAI_DEFAULT_CONTEXT_LIMIT


def split_into_chunks(text: str, chunk_chars: int) -> List[str]:
    chunk_chars = max(1, chunk_chars)
    return [text[i : i + chunk_chars] for i in range(0, len(text), chunk_chars)]


def _summarize_chunk_safely(
    summarize_chunk: SummarizeChunk, chunk: str, budget_chars: int
) -> str:
    try:
        summary = summarize_chunk(chunk, budget_chars)
    except Exception as exc:
        logger.warning("Chunk summary failed, truncating instead: %s", exc)
        return chunk[:budget_chars]
    if not summary:
        return chunk[:budget_chars]
    return summary


def summarize_document_for_context(
    text: str,
    target_tokens: int,
    summarize_chunk: SummarizeChunk,
    context_limit: int,
    on_progress: Optional[ProgressCallback] = None,
) -> str:
    """
    Compresses ``text`` until its estimated size is within ``target_tokens``.

    The text is cut into fixed-size chunks of at most a quarter of the context
    window, each chunk is summarized with one call to ``summarize_chunk(chunk,
    budget_chars)``, and the summaries are joined. If the joined text is still
    too long the same procedure runs on it again. A chunk whose call fails is
    truncated to its budget. After ``MAX_COMPRESSION_PASSES`` the result is
    truncated to the target so the caller always gets something that fits.

    Args:
        text: The document text.
        target_tokens: Size budget in estimated tokens.
        summarize_chunk: Callable producing a summary of at most roughly
            ``budget_chars`` characters.
        context_limit: Provider context window in tokens.
        on_progress: Optional status message callback.

    Returns:
        str: ``text`` unchanged if it already fits, else the compressed text.
    """
    if estimate_token_count(text) <= target_tokens:
        return text

    target_chars = target_tokens * CHARS_PER_TOKEN
    chunk_chars = int(context_limit * CHUNK_CONTEXT_FRACTION) * CHARS_PER_TOKEN
    current = text

    for pass_number in range(1, MAX_COMPRESSION_PASSES + 1):
        chunks = split_into_chunks(current, chunk_chars)
        budget_chars = max(MIN_CHUNK_BUDGET_CHARS, target_chars // len(chunks))
        logger.info(
            "Summarization pass %d: %d chars in %d chunk(s), %d chars per chunk budget",
            pass_number,
            len(current),
            len(chunks),
            budget_chars,
        )

        summaries = []
        for index, chunk in enumerate(chunks, start=1):
            if on_progress:
                on_progress(f"Summarizing part {index}/{len(chunks)} (pass {pass_number})...")
            summaries.append(_summarize_chunk_safely(summarize_chunk, chunk, budget_chars))

        current = "\n\n".join(summaries)
        if estimate_token_count(current) <= target_tokens:
            return current

    logger.warning(
        "Document still above %d tokens after %d passes, truncating",
        target_tokens,
        MAX_COMPRESSION_PASSES,
    )
    return current[:target_chars]


def make_chunk_summary_prompt(chunk: str, budget_chars: int) -> str:
    return f"""You are condensing part of a reference document that will be used as context for writing website copy.
Summarize the text below in at most {budget_chars} characters.
Keep product names, figures, specifications, claims and tone cues. Drop repetition, boilerplate and formatting.
Return only the summary text.

TEXT:
{chunk}
"""


def gateway_chunk_summarizer(gateway) -> SummarizeChunk:
    """Builds a ``summarize_chunk`` callable that uses ``gateway``."""

    def summarize_chunk(chunk: str, budget_chars: int) -> str:
        return gateway.generate_content(make_chunk_summary_prompt(chunk, budget_chars))

    return summarize_chunk
