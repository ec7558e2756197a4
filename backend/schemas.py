"""
Pydantic schemas for the QuickStor backend.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ProxyRequest(BaseModel):
    url: Optional[str] = None
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    body: Optional[dict] = None


class SaveDocumentResponse(BaseModel):
    success: Literal[True] = True
    path: str


class RestoreResponse(BaseModel):
    success: Literal[True] = True
    message: str = "Full restore completed"
