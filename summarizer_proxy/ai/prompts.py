"""Prompt construction for the summarize and slide routes.

User text is interpolated verbatim; nothing here escapes or truncates it.
"""

from __future__ import annotations

from typing import Dict, List

STYLE_BULLETS = "bullets"
STYLE_HEADLINE = "headline"
STYLE_PARAGRAPH = "paragraph"

DEFAULT_LENGTH = "medium"
DEFAULT_STYLE = STYLE_PARAGRAPH

SUMMARY_SYSTEM_PROMPT = "You are a helpful summarization assistant."
SLIDES_SYSTEM_PROMPT = "You are an expert presentation creator."

_STYLE_MODIFIERS = {
    STYLE_BULLETS: "Format the summary as concise bullet points.",
    STYLE_HEADLINE: "Provide a one-line headline.",
}
_PARAGRAPH_MODIFIER = "Provide a concise paragraph summary."

_SLIDE_FORMAT = "\n".join(
    [
        "Format each slide as:",
        "Title: <slide title>",
        "Content: <bullet points>",
        "Image: <image description>",
    ]
)

Message = Dict[str, str]


def build_summary_instruction(length: str = DEFAULT_LENGTH, style: str = DEFAULT_STYLE) -> str:
    """Return the instruction line for a summary request.

    Unknown styles get the paragraph modifier rather than an error.
    """

    modifier = _STYLE_MODIFIERS.get(style, _PARAGRAPH_MODIFIER)
    return f"Summarize the following article in a {length} summary. {modifier}"


def build_summary_prompt(text: str, length: str = DEFAULT_LENGTH, style: str = DEFAULT_STYLE) -> str:
    instruction = build_summary_instruction(length, style)
    return f"{instruction}\n\nArticle:\n\n{text}"


def build_slides_prompt(text: str, language: str) -> str:
    return f"Create slides in {language} from this text: {text}. {_SLIDE_FORMAT}"


def summary_messages(text: str, length: str = DEFAULT_LENGTH, style: str = DEFAULT_STYLE) -> List[Message]:
    return [
        {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
        {"role": "user", "content": build_summary_prompt(text, length, style)},
    ]


def slides_messages(text: str, language: str) -> List[Message]:
    return [
        {"role": "system", "content": SLIDES_SYSTEM_PROMPT},
        {"role": "user", "content": build_slides_prompt(text, language)},
    ]
