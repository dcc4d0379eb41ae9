from __future__ import annotations

from papersmith.prompts.paper import (
    OUTLINE_SYSTEM_PROMPT,
    SECTION_SYSTEM_PROMPT,
    build_outline_prompt,
    build_section_prompt,
)

__all__ = [
    "OUTLINE_SYSTEM_PROMPT",
    "SECTION_SYSTEM_PROMPT",
    "build_outline_prompt",
    "build_section_prompt",
]
