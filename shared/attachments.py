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

"""User-supplied files passed as extra context to an AI generation call."""

import base64
import mimetypes
import os
from dataclasses import asdict, dataclass, replace
from typing import Optional

from shared.errors import AttachmentTooLargeError

MAX_ATTACHMENT_BYTES = 2 * 1024 * 1024
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class Attachment:
    """An image (inline base64) or a text file attached to a prompt."""

    name: str
    type: str
    base64: Optional[str] = None
    text: Optional[str] = None

    @property
    def is_image(self) -> bool:
        return self.type.startswith("image/")

    def data_url(self) -> str:
        """Returns the base64 payload as a ``data:`` URL."""
        if not self.base64:
            return ""
        if self.base64.startswith("data:"):
            return self.base64
        return f"data:{self.type};base64,{self.base64}"

    def raw_base64(self) -> str:
        """Returns the base64 payload without any ``data:...;base64,`` prefix."""
        if not self.base64:
            return ""
        if self.base64.startswith("data:") and "," in self.base64:
            return self.base64.split(",", 1)[1]
        return self.base64

    def data_bytes(self) -> bytes:
        return base64.b64decode(self.raw_base64())

    def with_text(self, text: str, name: Optional[str] = None) -> "Attachment":
        return replace(self, text=text, name=name or self.name)

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        return cls(
            name=data.get("name", "attachment"),
            type=data.get("type") or DEFAULT_MIME_TYPE,
            base64=data.get("base64"),
            text=data.get("text"),
        )


def attachment_from_bytes(name: str, mime_type: str, data: bytes) -> Attachment:
    """
    Builds an attachment from raw file bytes.

    Images are kept as base64 data URLs; anything else is decoded as UTF-8
    text (undecodable bytes are replaced).

    Raises:
        AttachmentTooLargeError: If the payload exceeds MAX_ATTACHMENT_BYTES.
    """
    if len(data) > MAX_ATTACHMENT_BYTES:
        raise AttachmentTooLargeError(name, len(data), MAX_ATTACHMENT_BYTES)

    mime_type = mime_type or DEFAULT_MIME_TYPE
    if mime_type.startswith("image/"):
        encoded = base64.b64encode(data).decode("ascii")
        return Attachment(
            name=name, type=mime_type, base64=f"data:{mime_type};base64,{encoded}"
        )
    return Attachment(name=name, type=mime_type, text=data.decode("utf-8", errors="replace"))


def attachment_from_file(path: str) -> Attachment:
    size = os.path.getsize(path)
    name = os.path.basename(path)
    if size > MAX_ATTACHMENT_BYTES:
        raise AttachmentTooLargeError(name, size, MAX_ATTACHMENT_BYTES)
    mime_type, _ = mimetypes.guess_type(path)
    with open(path, "rb") as f:
        data = f.read()
    return attachment_from_bytes(name, mime_type or "text/plain", data)
