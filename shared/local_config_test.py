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

import json
import os
import tempfile
import unittest

from models.api_config import AIConfig
from shared.local_config import AI_CONFIG_KEY, LocalConfig


class LocalConfigTest(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp_dir.name, "local_config.json")

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_changes_are_persisted(self):
        config = LocalConfig(self.path)
        config.set("quickstor_system_prompt_custom", "Voice.")
        config.remove("missing")
        reopened = LocalConfig(self.path)
        self.assertEqual(reopened.get("quickstor_system_prompt_custom"), "Voice.")

    def test_ai_config_round_trip(self):
        config = LocalConfig(self.path)
        config.save_ai_config(
            AIConfig(provider="openai", openai={"apiKey": "sk", "model": "deepseek-chat"})
        )
        stored = json.loads(config.get(AI_CONFIG_KEY))
        self.assertEqual(stored["openai"]["apiKey"], "sk")

        loaded = LocalConfig(self.path).load_ai_config()
        self.assertEqual(loaded.provider, "openai")
        self.assertEqual(loaded.openai.model, "deepseek-chat")

    def test_corrupt_ai_config_uses_defaults(self):
        config = LocalConfig()
        config.set(AI_CONFIG_KEY, "{oops")
        self.assertEqual(config.load_ai_config().provider, "gemini")

    def test_corrupt_file_starts_empty(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("not json")
        self.assertEqual(LocalConfig(self.path).values, {})


if __name__ == "__main__":
    unittest.main()
