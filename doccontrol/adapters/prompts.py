"""Prompt texts for the content generator."""

from __future__ import annotations

from doccontrol.dto.generated_outline import GenerationRequest
from doccontrol.enum.ai_options import RefineAction, Tone
from doccontrol.enum.doc_level import DocLevel

TONE_INSTRUCTIONS = {
    Tone.STANDARD: (
        "Objective and precise. Use normative wording such as 'shall', 'must' and 'ensure', "
        "following the usual ISO procedure writing style."
    ),
    Tone.HR: (
        "Professional but approachable and easy to read. Focus on communication and guidance, "
        "and state employee rights and obligations clearly."
    ),
    Tone.OFFICIAL: (
        "Highly formal administrative correspondence style with strict formatting "
        "and conventional official phrasing."
    ),
}

_FORMAT_RULES = """\
### Formatting rules (STRICTLY FOLLOW)

1. Mermaid flowcharts (essential for procedures):
   - If the document is "Level 2: Procedure" or describes a complex process,
     you MUST include a Mermaid flowchart of the steps.
   - Use `graph TD` (top-down) syntax, wrapped in a ```mermaid ... ``` block.
   - Example:
     ```mermaid
     graph TD
       A((Start)) --> B[Step one]
       B --> C{Acceptable?}
       C -- Yes --> D[Approve]
       C -- No --> E[Return]
       D --> F((End))
     ```

2. Markdown tables (essential for forms and records):
   - If the document is "Level 4: Form / Record", do not use plain lists;
     you MUST lay the form out as Markdown tables with header row,
     check items, result column and remarks.

3. Emphasis:
   - Use **bold** for key responsibilities, actions or deadlines.
   - Use > blockquotes for notes, warnings or important policy statements.
   - Use ordered or unordered lists for detailed steps.
"""

_STRUCTURE = {
    "manual_procedure": (
        "The structure MUST contain:\n"
        "  1. Purpose\n  2. Scope\n  3. Definitions\n"
        "  4. Process Flow (insert the MERMAID diagram here)\n"
        "  5. Detailed Procedure\n  6. Responsibilities"
    ),
    "form": (
        "Present a printable form: header information (unit / date / staff), "
        "the main body as a MARKDOWN TABLE, and a signature area at the end."
    ),
    "letter": (
        "Use the standard official letter layout: [Subject], [Explanation], [Action]. "
        "Use placeholders such as {{RECIPIENT}} and {{DATE}}."
    ),
}


def _structure_for(request: GenerationRequest) -> str:
    if request.category == "admin":
        return _STRUCTURE["letter"]
    if request.level == DocLevel.FORM:
        return _STRUCTURE["form"]
    return _STRUCTURE["manual_procedure"]


def outline_prompt(request: GenerationRequest, *, language: str = "English") -> str:
    return (
        "You are a senior ISO 9001:2015 consultant and technical writer.\n"
        "Produce professional, well-structured document content for:\n"
        f"Topic: {request.topic}\n"
        f"Document level: {request.level.label}\n"
        f"Category: {request.category}\n"
        f"Tone: {request.tone.value} ({TONE_INSTRUCTIONS[request.tone]})\n"
        f"Background: {request.guidance}\n\n"
        f"{_FORMAT_RULES}\n"
        "### Content\n"
        f"{_structure_for(request)}\n\n"
        f"Write in {language}. Answer with JSON only: "
        '{"sections": [{"title": "...", "content": "..."}]}'
    )


def refine_prompt(text: str, action: RefineAction, *, language: str = "English") -> str:
    if action == RefineAction.POLISH:
        task = (
            "Task: polish the following ISO document passage.\n"
            "Goal: fix grammar, raise professionalism, keep an objective and precise ISO tone.\n"
            "Rules:\n"
            "1. Keep the existing Markdown formatting (tables, bold, diagrams).\n"
            "2. Remove redundant words.\n"
            "3. Return ONLY the polished text, without introduction or explanation."
        )
    elif action == RefineAction.CHECK:
        task = (
            "Task: review the following ISO document passage for compliance and completeness.\n"
            "Goal: find vague responsibilities, undefined scope or potential ISO 9001 nonconformities.\n"
            "Rules:\n"
            "1. List 3-5 concrete improvement points or warnings.\n"
            "2. Use a bullet list.\n"
            "3. If nothing is wrong, answer: \"Structure conforms to the standard, no obvious gaps.\""
        )
    else:
        task = (
            "Task: rewrite the following text as formal official business correspondence.\n"
            "Goal: formal administrative wording that conveys authority.\n"
            "Rules:\n"
            "1. Structure it as Subject, Explanation and Action where applicable.\n"
            "2. Return ONLY the rewritten text, without explanation."
        )
    return f"{task}\nWrite in {language}.\n\nOriginal:\n{text}"
