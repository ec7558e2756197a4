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

import unittest
from unittest.mock import MagicMock

from content import summaries
from models.api_config import AIConfig


def halving_summarizer(calls):
    def summarize_chunk(chunk, budget_chars):
        calls.append((len(chunk), budget_chars))
        return chunk[: len(chunk) // 2]

    return summarize_chunk


class EstimateTokenCountTest(unittest.TestCase):
    def test_empty_string(self):
        self.assertEqual(summaries.estimate_token_count(""), 0)

    def test_rounds_up(self):
        self.assertEqual(summaries.estimate_token_count("a"), 1)
        self.assertEqual(summaries.estimate_token_count("abcd"), 1)
        self.assertEqual(summaries.estimate_token_count("abcde"), 2)
        self.assertEqual(summaries.estimate_token_count("x" * 4001), 1001)


class ContextLimitTest(unittest.TestCase):
    def test_gemini(self):
        self.assertEqual(summaries.get_context_limit(AIConfig()), 1_048_576)

    def test_known_openai_models(self):
        config = AIConfig(provider="openai", openai={"model": "deepseek-chat"})
        self.assertEqual(summaries.get_context_limit(config), 131_072)

    def test_unknown_model_uses_default(self):
        config = AIConfig(provider="openai", openai={"model": "my-local-model"})
        self.assertEqual(summaries.get_context_limit(config), 128_000)

    def test_explicit_override(self):
        config = AIConfig(
            provider="openai", openai={"model": "gpt-4o", "contextLimit": 32_000}
        )
        self.assertEqual(summaries.get_context_limit(config), 32_000)


class SummarizeDocumentTest(unittest.TestCase):
    def test_document_within_target_is_unchanged(self):
        summarize_chunk = MagicMock()
        text = "short document " * 10
        result = summaries.summarize_document_for_context(
            text, target_tokens=1000, summarize_chunk=summarize_chunk, context_limit=128_000
        )
        self.assertIs(result, text)
        summarize_chunk.assert_not_called()

    def test_halving_stub_converges_within_bounded_passes(self):
        calls = []
        text = "".join(chr(ord("a") + i % 26) for i in range(10_000))
        progress = []
        result = summaries.summarize_document_for_context(
            text,
            target_tokens=100,
            summarize_chunk=halving_summarizer(calls),
            context_limit=1_000,
            on_progress=progress.append,
        )
        self.assertLessEqual(summaries.estimate_token_count(result), 100)
        self.assertGreater(len(result), 0)
        # Chunks never exceed a quarter of the context window (250 tokens).
        self.assertTrue(all(length <= 1_000 for length, _ in calls))
        passes = {message.split("pass ")[1].rstrip(")...") for message in progress}
        self.assertLessEqual(len(passes), summaries.MAX_COMPRESSION_PASSES)
        self.assertEqual(len(calls), len(progress))

    def test_failed_chunk_falls_back_to_truncation(self):
        def failing(chunk, budget_chars):
            raise RuntimeError("provider down")

        text = "y" * 8_000
        result = summaries.summarize_document_for_context(
            text, target_tokens=500, summarize_chunk=failing, context_limit=1_000
        )
        self.assertLessEqual(summaries.estimate_token_count(result), 500)
        self.assertTrue(set(result) <= {"y", "\n"})

    def test_non_shrinking_summarizer_is_truncated_after_last_pass(self):
        summarize_chunk = MagicMock(side_effect=lambda chunk, budget: chunk)
        text = "z" * 4_000
        result = summaries.summarize_document_for_context(
            text, target_tokens=100, summarize_chunk=summarize_chunk, context_limit=100_000
        )
        self.assertEqual(result, "z" * 400)
        self.assertEqual(summarize_chunk.call_count, summaries.MAX_COMPRESSION_PASSES)

    def test_gateway_chunk_summarizer_puts_budget_in_prompt(self):
        gateway = MagicMock()
        gateway.generate_content.return_value = "summary"
        summarize_chunk = summaries.gateway_chunk_summarizer(gateway)
        self.assertEqual(summarize_chunk("long text", 300), "summary")
        prompt = gateway.generate_content.call_args[0][0]
        self.assertIn("at most 300 characters", prompt)
        self.assertIn("long text", prompt)


if __name__ == "__main__":
    unittest.main()
