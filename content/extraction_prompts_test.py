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

import os
import unittest

from content.extraction_prompts import (
    AVAILABLE_ICONS,
    CUSTOM_HTML_MAX_CHARS,
    get_extraction_prompt,
    validate_extracted_data,
)
from content.prompt_service import PromptService, load_prompts_file
from shared.local_config import LocalConfig

PROMPTS_FILE = os.path.join(os.path.dirname(os.path.dirname(__file__)), "prompts.json")


class GetExtractionPromptTest(unittest.TestCase):
    def setUp(self):
        self.prompt_service = PromptService.from_file(LocalConfig(), PROMPTS_FILE)

    def test_shipped_prompts_have_all_templates(self):
        extraction = load_prompts_file(PROMPTS_FILE)["extraction"]
        self.assertEqual(
            set(extraction), {"comparison_graph", "feature_grid", "hero", "custom_html"}
        )

    def test_feature_grid_lists_icons(self):
        prompt = get_extraction_prompt("FEATURE_GRID", "Fast backups.", self.prompt_service)
        self.assertIn("Fast backups.", prompt)
        self.assertIn(", ".join(AVAILABLE_ICONS), prompt)
        self.assertNotIn("{{", prompt)

    def test_section_dict_and_unknown_type(self):
        graph = get_extraction_prompt({"type": "COMPARISON_GRAPH"}, "data", self.prompt_service)
        self.assertIn("iops", graph)
        unknown = get_extraction_prompt("PRICING", "data", self.prompt_service)
        self.assertIn("icon", unknown)

    def test_custom_html_fills_schema_and_truncates(self):
        section = {
            "type": "CUSTOM_HTML",
            "content": {
                "schema": [
                    {"key": "heading", "description": "Main heading", "type": "text"},
                    {"key": "photo", "label": "Photo", "type": "image"},
                ]
            },
        }
        content = "a" * CUSTOM_HTML_MAX_CHARS + "TAIL"
        prompt = get_extraction_prompt(section, content, self.prompt_service)
        self.assertIn('- "heading": Main heading (Type: text)', prompt)
        self.assertIn('- "photo": Photo (Type: image)', prompt)
        self.assertIn('"heading": "extracted value",\n  "photo": "extracted value"', prompt)
        self.assertIn("a" * CUSTOM_HTML_MAX_CHARS, prompt)
        self.assertNotIn("TAIL", prompt)

    def test_missing_template_uses_generic_prompt(self):
        prompt_service = PromptService(LocalConfig(), lambda: {"system": {"default": ""}})
        prompt = get_extraction_prompt("HERO", "x" * 2000, prompt_service)
        self.assertTrue(prompt.startswith("Generate JSON for HERO from content: "))
        self.assertIn("x" * 1000 + "...", prompt)
        self.assertNotIn("x" * 1001, prompt)


class ValidateExtractedDataTest(unittest.TestCase):
    def test_comparison_graph(self):
        self.assertTrue(
            validate_extracted_data([{"name": "Us", "iops": 1, "throughput": 2.5}], "COMPARISON_GRAPH")
        )
        self.assertFalse(
            validate_extracted_data([{"name": "Us", "iops": "1", "throughput": 2}], "COMPARISON_GRAPH")
        )
        self.assertFalse(validate_extracted_data({"name": "Us"}, "COMPARISON_GRAPH"))

    def test_feature_grid(self):
        item = {"icon": "Zap", "title": "Fast", "description": "Quick."}
        self.assertTrue(validate_extracted_data([item], "FEATURE_GRID"))
        self.assertFalse(validate_extracted_data([{**item, "title": None}], "FEATURE_GRID"))

    def test_hero(self):
        hero = {
            "badge": "New",
            "title": {"line1": "Fast", "highlight": "Storage"},
            "subtitle": "Quick.",
        }
        self.assertTrue(validate_extracted_data(hero, "HERO"))
        self.assertFalse(validate_extracted_data({**hero, "title": "Fast Storage"}, "HERO"))

    def test_custom_html_and_empty(self):
        self.assertTrue(validate_extracted_data({"heading": "Hi"}, "CUSTOM_HTML"))
        self.assertFalse(validate_extracted_data(["Hi"], "CUSTOM_HTML"))
        self.assertFalse(validate_extracted_data(None, "HERO"))
        self.assertFalse(validate_extracted_data([], "FEATURE_GRID"))
        self.assertFalse(validate_extracted_data({"a": 1}, "PRICING"))


if __name__ == "__main__":
    unittest.main()
