"""Prompt templates for article enhancement."""

from __future__ import annotations

from typing import Sequence

from ..domain.errors import EnhancementFailedError

ENHANCEMENT_SYSTEM_PROMPT = (
    "You are a helpful assistant that enhances article content. Focus on improving readability, "
    "structure, and engagement while preserving the original meaning and style."
)

REFERENCE_SEPARATOR = "\n\n---\n\n"


def format_reference(link: str, content: str) -> str:
    return f"SOURCE URL: {link}\nCONTENT: {content}"


def build_enhancement_prompt(original_content: str, references: Sequence[str] = ()) -> str:
    """Build the user prompt; references may be empty."""
    if not isinstance(original_content, str) or not original_content.strip():
        raise EnhancementFailedError("Invalid or missing original content")

    valid = [r for r in references if isinstance(r, str) and r.strip()]
    reference_block = ("REFERENCES:\n" + REFERENCE_SEPARATOR.join(valid)) if valid else ""

    return (
        "Enhance the following article while maintaining its core message and style.\n"
        "Improve formatting, structure, and clarity. Add relevant subheadings where appropriate.\n"
        "\n"
        'CRITICAL REQUIREMENT: At the very bottom of the enhanced article, you MUST add a "References" section.\n'
        "List the reference articles provided below with their URLs if available.\n"
        "\n"
        "ORIGINAL ARTICLE:\n"
        f"{original_content.strip()}\n"
        "\n"
        f"{reference_block}\n"
        "\n"
        "ENHANCED ARTICLE:"
    )
