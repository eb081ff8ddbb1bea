from __future__ import annotations

import os
from typing import Iterable, List, Optional
from urllib.parse import quote

LOVABLE_BASE_URL = os.getenv("LOVABLE_BASE_URL", "https://lovable.dev/build")

FEEDBACK_HEADER = "Please apply these updates based on user feedback:"


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_prompt(
    description: Optional[str],
    extracted_content: Optional[str],
    guidelines: Iterable[str],
    feedback: Iterable[str],
) -> str:
    """
    Assemble the generation prompt. Sections whose source is empty are left
    out; guidelines and feedback keep their given order, and every feedback
    entry gets a line even when it is an empty string.
    """
    sections: List[str] = []
    if description:
        sections.append(f"User description: {description}")
    if extracted_content:
        sections.append(f"Content from source: {extracted_content}")
    guideline_list = list(guidelines or [])
    if guideline_list:
        sections.append("Design guidelines:\n" + _bullets(guideline_list))
    feedback_list = list(feedback or [])
    if feedback_list:
        sections.append(f"{FEEDBACK_HEADER}\n" + _bullets(feedback_list))
    return "\n\n".join(sections).strip()


def build_lovable_url(prompt: str) -> str:
    # surrogatepass keeps encoding total for strings decoded from escaped JSON
    return f"{LOVABLE_BASE_URL}?prompt={quote(prompt, safe='', errors='surrogatepass')}"
