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

"""Provider configuration handed explicitly to the AI gateway."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

OPENAI_DEFAULT_URL = "https://api.openai.com/v1"
OPENAI_DEFAULT_MODEL = "gpt-4o"
GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"


class OpenAIConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_key: str = Field(default="", alias="apiKey")
    base_url: str = Field(default=OPENAI_DEFAULT_URL, alias="baseUrl")
    model: str = OPENAI_DEFAULT_MODEL
    # Overrides the context window lookup for self-hosted models.
    context_limit: Optional[int] = Field(default=None, alias="contextLimit")


class GeminiConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_key: Optional[str] = Field(default=None, alias="apiKey")
    model: str = GEMINI_DEFAULT_MODEL


class RetryPolicy(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_retries: int = Field(default=3, alias="maxRetries", ge=1)
    initial_delay_seconds: float = Field(default=2.0, alias="initialDelaySeconds")
    backoff_factor: float = Field(default=2.0, alias="backoffFactor")

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay_seconds * (self.backoff_factor**attempt)


class AIConfig(BaseModel):
    """
    Everything the gateway needs to reach a provider.

    Serialized with camelCase aliases so it stays compatible with the
    ``quickstor_ai_config`` entry written by the admin panel.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    provider: Literal["gemini", "openai"] = "gemini"
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    request_timeout_seconds: float = Field(default=60.0, alias="requestTimeoutSeconds")

    @property
    def is_gemini(self) -> bool:
        return self.provider == "gemini"

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)
