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

"""Exceptions shared by the store client, AI gateway and content helpers."""

from typing import Optional

RETRYABLE_STATUS_CODES = (429, 503)


class QuickstorError(Exception):
    pass


class TransportError(QuickstorError):
    """A request failed at the network level or returned a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code in RETRYABLE_STATUS_CODES


class RateLimitError(TransportError):
    """The provider answered 429 or 503."""


class MalformedResponseError(QuickstorError):
    """A response or stored value could not be parsed as the expected JSON."""


class InvalidResponseError(QuickstorError):
    """The provider answered successfully but generated no text."""


class ValidationError(QuickstorError):
    pass


class BackupValidationError(ValidationError):
    pass


class AttachmentTooLargeError(ValidationError):
    def __init__(self, name: str, size: int, limit: int):
        super().__init__(f"File {name} is too large ({size} bytes). Max 2MB.")
        self.name = name
        self.size = size
        self.limit = limit


class ExtractionError(QuickstorError):
    """Both the AI extraction and the CSV fallback failed."""
