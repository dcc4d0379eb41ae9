from __future__ import annotations

OUTLINE_SYSTEM_PROMPT = (
    "You are an elite academic research assistant. Use web search to understand what is "
    "current about the topic before proposing a structure. "
    "You MUST output ONLY raw JSON without markdown code fences (no ```json, no ```)."
)

SECTION_SYSTEM_PROMPT = (
    "You are an academic writer. Use web search for up-to-date, verifiable information. "
    "Write in Markdown."
)

_OUTLINE_SCHEMA = """{
  "title": "A catchy, academic title",
  "abstract": "A brief summary of what the paper will discuss (approx 100 words)",
  "sections": [
    {
      "title": "Section Title",
      "description_for_image": "A precise prompt for a vector diagram or infographic that visually explains the section's concept"
    }
  ]
}"""


def build_outline_prompt(topic: str) -> str:
    """Build the user prompt asking for a paper outline as JSON."""

    lines = [
        f'Create a comprehensive and structured outline for a research paper on the topic: "{topic}".',
        "",
        "The output must be a valid JSON object with the following schema:",
        _OUTLINE_SCHEMA,
        "",
        "Ensure there are at least 4-6 substantial sections excluding the abstract.",
        "Image descriptions should request a 'Vector Diagram' or 'Infographic' (flowcharts, "
        "system architecture, data flow). Avoid generic photorealistic images unless the "
        "section is about historical context.",
        "Return strictly raw JSON.",
    ]
    return "\n".join(lines)


def build_section_prompt(*, paper_title: str, section_title: str, abstract: str) -> str:
    """Build the user prompt asking for one section's prose."""

    lines = [
        f'Write detailed, academic and engaging content for the section titled "{section_title}" '
        f'of a research paper titled "{paper_title}".',
        "",
        f"Context (Abstract): {abstract or '<none>'}",
        "",
        "Requirements:",
        "- Use Markdown formatting (headers, bold, lists).",
        "- Use **bold** for key terms, definitions and important figures.",
        "- Use *italics* for emphasis or when introducing new terminology.",
        "- Be informative and professional, and use up-to-date information.",
        "- Aim for about 300-500 words.",
        "- Focus strictly on this section. Do not repeat the section title.",
    ]
    return "\n".join(lines)
