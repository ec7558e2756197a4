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

"""Per-section prompts for extracting structured data from uploaded files."""

import logging
from typing import Any

from content.prompt_service import PromptService

logger = logging.getLogger(__name__)

AVAILABLE_ICONS = (
    "Shield", "ShieldCheck", "Lock", "Key", "Zap", "Cpu", "Server", "Database",
    "HardDrive", "Activity", "BarChart", "LineChart", "TrendingUp", "Gauge",
    "Clock", "Timer", "RefreshCw", "RotateCcw", "Cloud", "CloudOff", "Download",
    "Upload", "Wifi", "Signal", "Globe", "Network", "Share2", "GitBranch",
    "Layers", "Box", "Package", "Archive", "Folder", "File", "FileText",
    "Settings", "Sliders", "Tool", "Wrench", "Cog", "CheckCircle", "Check",
    "AlertCircle", "AlertTriangle", "Info", "HelpCircle", "Star", "Heart",
    "ThumbsUp", "Award", "Trophy", "Target", "Crosshair", "Eye", "EyeOff",
    "Search", "Maximize", "Minimize", "Move", "ArrowRight", "ArrowUp", "Rocket",
)

PROMPT_KEYS = {
    "COMPARISON_GRAPH": "extraction.comparison_graph",
    "FEATURE_GRID": "extraction.feature_grid",
    "HERO": "extraction.hero",
}
DEFAULT_PROMPT_KEY = "extraction.feature_grid"
CUSTOM_HTML_PROMPT_KEY = "extraction.custom_html"

CUSTOM_HTML_MAX_CHARS = 8000
FALLBACK_PROMPT_MAX_CHARS = 1000


def _section_type(section: Any) -> str:
    return section.get("type") if isinstance(section, dict) else section


def _fallback_prompt(section_type: str, file_content: str) -> str:
    logger.warning("No extraction prompt loaded for %s, using a generic one", section_type)
    return (
        f"Generate JSON for {section_type} from content: "
        f"{file_content[:FALLBACK_PROMPT_MAX_CHARS]}..."
    )


def _custom_html_prompt(section: Any, file_content: str, prompt_service: PromptService) -> str:
    content = section.get("content") if isinstance(section, dict) else None
    fields = (content or {}).get("schema") or []
    schema_description = "\n".join(
        f'- "{f["key"]}": {f.get("description") or f.get("label") or f["key"]} '
        f'(Type: {f.get("type", "text")})'
        for f in fields
    )
    schema_fields = ",\n  ".join(f'"{f["key"]}": "extracted value"' for f in fields)

    template = prompt_service.get(CUSTOM_HTML_PROMPT_KEY)
    if not template:
        return _fallback_prompt("CUSTOM_HTML", file_content)
    return (
        template.replace("{{schemaFields}}", schema_fields)
        .replace("{{schemaDescription}}", schema_description)
        .replace("{{fileContent}}", file_content[:CUSTOM_HTML_MAX_CHARS])
    )


def get_extraction_prompt(section: Any, file_content: str, prompt_service: PromptService) -> str:
    """
    Builds the prompt that extracts ``section`` data from ``file_content``.

    Args:
        section: A section type string, or a section dict with ``type`` (and,
            for ``CUSTOM_HTML``, ``content.schema``).
        file_content: Raw text of the uploaded file.
        prompt_service: Source of the ``extraction.*`` templates.
    """
    section_type = _section_type(section)
    if section_type == "CUSTOM_HTML":
        return _custom_html_prompt(section, file_content, prompt_service)

    template = prompt_service.get(PROMPT_KEYS.get(section_type, DEFAULT_PROMPT_KEY))
    if not template:
        return _fallback_prompt(section_type, file_content)

    prompt = template.replace("{{fileContent}}", file_content)
    if section_type == "FEATURE_GRID":
        prompt = prompt.replace("{{availableIcons}}", ", ".join(AVAILABLE_ICONS))
    return prompt


def _all_items(data: Any, fields: dict) -> bool:
    return isinstance(data, list) and all(
        isinstance(item, dict)
        and all(isinstance(item.get(key), types) for key, types in fields.items())
        for item in data
    )


def validate_extracted_data(data: Any, section_type: str) -> bool:
    """Checks that extracted data has the shape ``section_type`` renders."""
    if not data:
        return False

    if section_type == "CUSTOM_HTML":
        return isinstance(data, dict)
    if section_type == "COMPARISON_GRAPH":
        number = (int, float)
        return _all_items(data, {"name": str, "iops": number, "throughput": number})
    if section_type == "FEATURE_GRID":
        return _all_items(data, {"icon": str, "title": str, "description": str})
    if section_type == "HERO":
        return (
            isinstance(data, dict)
            and isinstance(data.get("badge"), str)
            and isinstance(data.get("title"), dict)
            and isinstance(data["title"].get("line1"), str)
            and isinstance(data["title"].get("highlight"), str)
            and isinstance(data.get("subtitle"), str)
        )
    return False
