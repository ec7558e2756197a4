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

"""AI-assisted content for website sections."""

import csv
import functools
import io
import json
import logging
import re
from typing import Any, Callable, Optional

from content import summaries
from content.extraction_prompts import get_extraction_prompt, validate_extracted_data
from content.prompt_service import PromptService
from models.api_config import AIConfig
from shared.attachments import Attachment
from shared.errors import ExtractionError, MalformedResponseError, ValidationError

logger = logging.getLogger(__name__)

# Share of the context window a text attachment may use before it is summarized.
SAFE_DOCUMENT_FRACTION = 0.4

SECTION_SCHEMAS = {
    "HERO": (
        """
    - badge: Short text for a badge (e.g., "New Feature")
    - title: { line1: "Main headline", highlight: "Highlighted word" }
    - subtitle: Descriptive text (1-2 sentences)
    - primaryCta: Text for primary button
    - secondaryCta: Text for secondary button
    """,
        {
            "badge": "2.0 Release",
            "title": {"line1": "Future of", "highlight": "Storage"},
            "subtitle": "Experience lightning fast data transfer.",
            "primaryCta": "Get Started",
            "secondaryCta": "Learn More",
        },
    ),
    "FEATURE_GRID": (
        """
    - features: Array of objects, each with:
      - icon: Icon name (one of: Star, Shield, Zap, Cloud, Server, Database, Lock, Globe, Smartphone, Laptop)
      - title: Short feature title
      - description: Feature description
    """,
        {
            "features": [
                {"icon": "Zap", "title": "Fast", "description": "Super fast speed."},
                {"icon": "Shield", "title": "Secure", "description": "Bank-grade security."},
            ]
        },
    ),
    "COMPARISON_GRAPH": (
        """
    - title: Graph section title
    - description: Detailed explanation of the comparison
    - data: Array of objects with:
      - name: Product/Competitor name
      - iops: Number (integer)
      - throughput: Number (integer)
    """,
        {
            "title": "Performance Comparison",
            "description": "See how we stack up.",
            "data": [
                {"name": "Us", "iops": 50000, "throughput": 1200},
                {"name": "Them", "iops": 10000, "throughput": 500},
            ],
        },
    ),
}

_FIELD_TYPE_HINTS = {
    "image": "image URL",
    "textarea": "longer text (paragraph)",
    "url": "URL",
}


def extract_json_from_response(text: str) -> Any:
    """
    Pulls the JSON payload out of a model response.

    Raises:
        MalformedResponseError: If no parsable JSON is found.
    """
    try:
        code_block = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
        if code_block:
            return json.loads(code_block.group(1).strip())

        bare = re.search(r"(\[[\s\S]*\]|\{[\s\S]*\})", text)
        if bare:
            return json.loads(bare.group(1))
    except ValueError as exc:
        raise MalformedResponseError(f"Invalid JSON in AI response: {exc}") from exc

    raise MalformedResponseError("Could not extract valid JSON from AI response")


def _to_int(value: Optional[str]) -> int:
    match = re.match(r"\s*-?\d+", value or "")
    return int(match.group(0)) if match else 0


def parse_csv_fallback(csv_text: str, section_type: str) -> list:
    """
    Parses CSV rows for sections whose content is a simple table.

    Raises:
        ValidationError: For too few rows or an unsupported section type.
    """
    lines = [line for line in csv_text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise ValidationError("File must contain a header row and at least one data row.")

    reader = csv.reader(io.StringIO("\n".join(lines)), skipinitialspace=True)
    rows = list(reader)
    headers = [h.strip().lower().replace('"', "").replace("'", "") for h in rows[0]]
    parsed = []
    for values in rows[1:]:
        values = [v.strip() for v in values]
        parsed.append(
            {header: values[i] if i < len(values) else None for i, header in enumerate(headers)}
        )

    if section_type == "COMPARISON_GRAPH":
        return [
            {
                "name": row.get("name") or "Unknown",
                "iops": _to_int(row.get("iops")),
                "throughput": _to_int(row.get("throughput")),
            }
            for row in parsed
        ]
    if section_type == "FEATURE_GRID":
        return [
            {
                "icon": row.get("icon") or "Star",
                "title": row.get("title") or "Untitled Feature",
                "description": row.get("description") or "",
            }
            for row in parsed
        ]
    raise ValidationError("Unsupported section type for CSV fallback")


def extract_data_with_ai(
    file_content: str,
    section: Any,
    gateway,
    prompt_service: PromptService,
    build_prompt: Optional[Callable[[Any, str], str]] = None,
) -> dict:
    """
    Extracts section data from an uploaded file, AI first, CSV second.

    ``build_prompt(section, file_content)`` defaults to the section's
    ``extraction.*`` prompt. AI output that does not have the section's
    shape counts as a failed extraction.

    Returns:
        dict: ``{"data": ..., "method": "ai" | "csv"}``.
    """
    section_type = section.get("type") if isinstance(section, dict) else section
    if build_prompt is None:
        build_prompt = functools.partial(get_extraction_prompt, prompt_service=prompt_service)

    try:
        prompt = build_prompt(section, file_content)
        prompt = f"{prompt_service.get_system_prompt()}\n\n{prompt}"
        response = gateway.generate_content(prompt)
        data = extract_json_from_response(response)
        if not validate_extracted_data(data, section_type):
            raise MalformedResponseError(
                f"Extracted data does not match the {section_type} layout"
            )
        return {"data": data, "method": "ai"}
    except Exception as ai_error:
        logger.warning("AI extraction failed, trying CSV fallback: %s", ai_error)
        try:
            return {"data": parse_csv_fallback(file_content, section_type), "method": "csv"}
        except ValidationError as csv_error:
            raise ExtractionError(
                f"AI extraction failed: {ai_error}\n\n"
                f"CSV fallback also failed: {csv_error}\n\n"
                "Tip: For CSV format, use headers: name,iops,throughput (for graphs) "
                "or icon,title,description (for features)"
            ) from csv_error


def _custom_html_schema(current_content: dict) -> tuple:
    fields = current_content.get("schema") or []
    if not fields:
        description = """
    A JSON object with keys matching the section's content fields.
    Common fields might include title, subtitle, image_url, etc.
    """
        return description, {"title": "Custom Section", "description": "Generated content"}

    lines = []
    example = {}
    for field in fields:
        hint = _FIELD_TYPE_HINTS.get(field.get("type"), "text")
        lines.append(f"- {field['key']}: {field.get('label', field['key'])} ({hint})")
        if field.get("type") == "image":
            example[field["key"]] = "https://example.com/image.jpg"
        elif field.get("type") == "textarea":
            example[field["key"]] = "A detailed description or paragraph of content."
        else:
            example[field["key"]] = f"{field.get('label', field['key'])} content"

    description = "\n    A JSON object with these exact keys:\n    " + "\n    ".join(lines) + "\n"
    return description, example


def section_schema(section_type: str, current_content: Optional[dict] = None) -> tuple:
    """Returns ``(schema_description, example_json)`` for a section type."""
    if section_type == "CUSTOM_HTML":
        description, example = _custom_html_schema(current_content or {})
    elif section_type in SECTION_SCHEMAS:
        description, example = SECTION_SCHEMAS[section_type]
    else:
        raise ValidationError(f"Unsupported section type for AI generation: {section_type}")
    return description, json.dumps(example, indent=4)


def make_section_prompt(
    system_prompt: str,
    section_type: str,
    user_prompt: str,
    schema_description: str,
    example_json: str,
    attachment: Optional[Attachment],
) -> str:
    attachment_note = ""
    if attachment:
        kind = "image" if attachment.is_image else "file"
        attachment_note = f"(Refer to the attached {kind} for context)"
    return f"""
    {system_prompt}

    TASK: Generate JSON content for a website section of type: {section_type}.

    The user wants content about: "{user_prompt}"
    {attachment_note}

    IMPORTANT: You MUST include ALL fields listed below. Do not skip any field.

    Required JSON structure (include EVERY field):
    {schema_description}

    RULES:
    1. Return ONLY raw JSON - no markdown, no backticks, no explanations
    2. Include ALL fields listed above - every single one
    3. Generate creative, relevant content for each field based on the user's request

    Example format:
    {example_json}
    """


def _fit_attachment(
    attachment: Attachment,
    gateway,
    config: AIConfig,
    on_progress: Optional[Callable[[str], None]],
) -> Attachment:
    context_limit = summaries.get_context_limit(config)
    safe_limit = int(context_limit * SAFE_DOCUMENT_FRACTION)
    document_tokens = summaries.estimate_token_count(attachment.text)
    logger.info(
        "Context check: limit=%d safe=%d document=%d tokens",
        context_limit,
        safe_limit,
        document_tokens,
    )
    if document_tokens <= safe_limit:
        return attachment

    if on_progress:
        on_progress("Document too large, summarizing...")
    summarized = summaries.summarize_document_for_context(
        attachment.text,
        safe_limit,
        summaries.gateway_chunk_summarizer(gateway),
        context_limit,
        on_progress,
    )
    return attachment.with_text(summarized, name=f"{attachment.name} (Summarized)")


def generate_section_content(
    section_type: str,
    user_prompt: str,
    gateway,
    config: AIConfig,
    prompt_service: PromptService,
    current_content: Optional[dict] = None,
    attachment: Optional[Attachment] = None,
    on_progress: Optional[Callable[[str], None]] = None,
) -> Any:
    """
    Generates JSON content for one website section.

    Image attachments are only forwarded to Gemini. For OpenAI-compatible
    providers a text attachment larger than 40% of the context window is
    summarized before it is sent.

    Raises:
        ValidationError: For unsupported section types.
        MalformedResponseError: If the model answer has no parsable JSON.
    """
    schema_description, example_json = section_schema(section_type, current_content)

    effective = attachment
    if attachment and attachment.is_image and not config.is_gemini:
        logger.warning(
            "Image attachments are only supported with Gemini, skipping %s", attachment.name
        )
        effective = None

    if effective and effective.text and not config.is_gemini:
        effective = _fit_attachment(effective, gateway, config, on_progress)

    prompt = make_section_prompt(
        prompt_service.get_content_filling_prompt(),
        section_type,
        user_prompt,
        schema_description,
        example_json,
        effective,
    )
    logger.debug(
        "Section prompt: %d chars, ~%d tokens",
        len(prompt),
        summaries.estimate_token_count(prompt),
    )

    if on_progress:
        on_progress("Generating content...")
    payload = {"text": prompt, "attachments": [effective]} if effective else prompt
    response = gateway.generate_content(payload)
    return extract_json_from_response(response)
