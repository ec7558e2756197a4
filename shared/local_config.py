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

"""Persisted admin configuration, keyed like the panel's browser storage.

Values are strings; structured entries (AI config, cached prompts) are stored
JSON-encoded, exactly as the admin panel writes them.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

import pydantic

from models.api_config import AIConfig

logger = logging.getLogger(__name__)

AI_CONFIG_KEY = "quickstor_ai_config"
SYSTEM_PROMPT_KEY = "quickstor_system_prompt_custom"
LEGACY_SYSTEM_PROMPT_KEY = "quickstor_system_prompt"
CONTENT_FILLING_PROMPT_KEY = "quickstor_content_filling_prompt"
PROMPTS_CACHE_KEY = "quickstor_prompts"

SETTINGS_KEYS = (
    AI_CONFIG_KEY,
    SYSTEM_PROMPT_KEY,
    CONTENT_FILLING_PROMPT_KEY,
    PROMPTS_CACHE_KEY,
)

# Working-copy content the panel keeps locally until it is published.
CONTENT_KEYS = (
    "quickstor_pages",
    "quickstor_navbar",
    "quickstor_footer",
    "quickstor_activeTheme",
    "quickstor_savedThemes",
    "quickstor_custom_sections",
)


@dataclass
class LocalConfig:
    """
    String key/value settings. With ``path`` set, every change is written
    back to that JSON file; without it the values live in memory only.
    """

    path: Optional[str] = None
    values: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.path:
            self.reload()

    def reload(self) -> None:
        """Re-reads the backing file, discarding in-memory state."""
        if not self.path or not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError):
            logger.exception("Failed to read local config %s, starting empty", self.path)
            data = {}
        self.values = {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.values, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self.values.pop(key, None) is not None:
            self._flush()

    def load_ai_config(self) -> AIConfig:
        """Parses the stored AI config, falling back to defaults if absent or corrupt."""
        raw = self.get(AI_CONFIG_KEY)
        if not raw:
            return AIConfig()
        try:
            return AIConfig.model_validate(json.loads(raw))
        except (ValueError, pydantic.ValidationError):
            logger.warning("Discarding unparsable %s entry", AI_CONFIG_KEY)
            return AIConfig()

    def save_ai_config(self, config: AIConfig) -> None:
        self.set(AI_CONFIG_KEY, json.dumps(config.to_storage()))

    def settings_snapshot(self) -> Dict[str, Optional[str]]:
        """The ``settings`` block of a backup bundle."""
        return {
            "aiConfig": self.get(AI_CONFIG_KEY),
            "systemPrompt": self.get(SYSTEM_PROMPT_KEY),
            "fillingPrompt": self.get(CONTENT_FILLING_PROMPT_KEY),
            "prompts": self.get(PROMPTS_CACHE_KEY),
        }
