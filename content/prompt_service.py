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
import logging
from typing import Callable, Optional

from shared.local_config import (
    CONTENT_FILLING_PROMPT_KEY,
    LEGACY_SYSTEM_PROMPT_KEY,
    PROMPTS_CACHE_KEY,
    SYSTEM_PROMPT_KEY,
    LocalConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a professional UX copywriter and web designer."

DEFAULT_CONTENT_FILLING_PROMPT = """You are an expert Content Architect and Web Copywriter Agent.
Your goal is to help the user perfectly fill in the content fields for their website sections.
You are creative, concise, and technically precise with JSON structure.
You understand modern web design trends and write engaging, conversion-focused copy.
When a user provides a file or image, analyze it deeply to extract relevant themes, tone, and details to generate the best possible content match."""

EMPTY_PROMPTS = {"system": {"default": ""}}


def load_prompts_file(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class PromptService:
    """
    Resolves system prompts from user customizations or shipped defaults.

    User customizations cached in local config win; a cache entry that fails
    to parse is discarded and the defaults are loaded instead.
    """

    def __init__(
        self,
        local_config: LocalConfig,
        load_defaults: Callable[[], dict],
    ):
        self.local_config = local_config
        self._load_defaults = load_defaults
        self.prompts: Optional[dict] = None

    @classmethod
    def from_file(cls, local_config: LocalConfig, prompts_file: str) -> "PromptService":
        return cls(local_config, lambda: load_prompts_file(prompts_file))

    def init(self) -> dict:
        if self.prompts is not None:
            return self.prompts

        stored = self.local_config.get(PROMPTS_CACHE_KEY)
        if stored:
            try:
                self.prompts = json.loads(stored)
                logger.info("Prompts loaded from local config")
                return self.prompts
            except ValueError:
                logger.error("Failed to parse stored prompts, clearing...")
                self.local_config.remove(PROMPTS_CACHE_KEY)

        try:
            self.prompts = self._load_defaults()
        except (OSError, ValueError):
            logger.exception("Failed to load default prompts")
            self.prompts = dict(EMPTY_PROMPTS)
        return self.prompts

    def get(self, path: str) -> str:
        node = self.init()
        for key in path.split("."):
            if not isinstance(node, dict):
                return ""
            node = node.get(key)
        return node if isinstance(node, str) else ""

    def get_content_filling_prompt(self) -> str:
        custom = self.local_config.get(CONTENT_FILLING_PROMPT_KEY)
        if custom:
            return custom
        return DEFAULT_CONTENT_FILLING_PROMPT

    def get_system_prompt(self) -> str:
        custom = self.local_config.get(SYSTEM_PROMPT_KEY)
        if custom:
            return custom
        return self.get("system.default") or DEFAULT_SYSTEM_PROMPT

    def reset_to_defaults(self) -> dict:
        self.local_config.remove(PROMPTS_CACHE_KEY)
        self.local_config.remove(SYSTEM_PROMPT_KEY)
        self.local_config.remove(LEGACY_SYSTEM_PROMPT_KEY)
        self.prompts = None
        return self.init()
