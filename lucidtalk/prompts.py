"""Prompt templates used when requesting summaries."""

from __future__ import annotations

from typing import Dict, Optional

DEFAULT_TEMPLATE = "meeting-notes"
DEFAULT_CUSTOM_PROMPT = "Summarize the following transcript."

PROMPT_TEMPLATES: Dict[str, str] = {
    "meeting-notes": "Generate comprehensive meeting notes with key points and decisions.",
    "action-items": "Extract action items and assignments from the meeting.",
    "study-notes": "Create study notes with key concepts and definitions.",
    "interview": "Summarize interview with key insights and responses.",
}


def resolve_prompt(template: Optional[str], custom_prompt: Optional[str] = None) -> str:
    """Return the prompt text for ``template``.

    ``custom`` uses ``custom_prompt`` verbatim. Unknown names fall back to the
    meeting notes prompt.
    """

    if template == "custom":
        return custom_prompt or DEFAULT_CUSTOM_PROMPT
    return PROMPT_TEMPLATES.get(template or DEFAULT_TEMPLATE, PROMPT_TEMPLATES[DEFAULT_TEMPLATE])


def template_names() -> tuple[str, ...]:
    return (*PROMPT_TEMPLATES, "custom")
