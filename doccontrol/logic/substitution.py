"""
Template substitution & reference resolution.

Stored section text keeps its tokens; resolution happens only when a view is
rendered, so the same document renders correctly under any variable profile.

Token grammar:
    {{KEY}}         variable from the active VariableProfile
    [[REF:<id>]]    link to another document in the collection

The two grammars cannot overlap or nest, so they are resolved independently.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional

from doccontrol.models.document_models import Document
from doccontrol.models.variable_profile import VariableProfile

REFERENCE_PATTERN = re.compile(r"\[\[REF:(.*?)\]\]")
VARIABLE_PATTERN = re.compile(r"\{\{([^{}]+?)\}\}")

BROKEN_REFERENCE_TEMPLATE = "[BROKEN REFERENCE: {ref}]"
BROKEN_REFERENCE_PATTERN = re.compile(r"\[BROKEN REFERENCE: [^\]]*\]")


def variable_token(key: str) -> str:
    return "{{" + key + "}}"


def reference_token(doc_id: str) -> str:
    return f"[[REF:{doc_id}]]"


def reference_fragment(doc: Document) -> str:
    """Display text for a resolved reference."""
    return f"{doc.title} ({doc.doc_number})"


def substitute_variables(text: str, variables: Mapping[str, str]) -> str:
    """
    Replace every ``{{KEY}}`` in one pass; an empty value shows the bare key
    instead of a gap. Tokens inside substituted values are not expanded again,
    and unknown keys stay as they are.
    """

    def _sub(m: re.Match) -> str:
        key = m.group(1)
        if key not in variables:
            return m.group(0)
        return variables[key] or key

    return VARIABLE_PATTERN.sub(_sub, text)


def resolve_references(text: str, known_documents: Iterable[Document]) -> str:
    """Replace every ``[[REF:id]]``; unknown ids become a visible broken-reference marker."""
    by_id = {d.id: d for d in known_documents}

    def _sub(m: re.Match) -> str:
        target = by_id.get(m.group(1))
        if target is None:
            return BROKEN_REFERENCE_TEMPLATE.format(ref=m.group(1))
        return reference_fragment(target)

    return REFERENCE_PATTERN.sub(_sub, text)


def resolve(text: str, profile: Optional[VariableProfile], known_documents: Iterable[Document]) -> str:
    """Render-time resolution of one section body. Never raises on unknown tokens."""
    if not text:
        return ""
    if profile is not None:
        text = substitute_variables(text, profile.variables)
    return resolve_references(text, known_documents)


# ----------------- Inspection ----------------------------------------------
def find_references(text: str) -> List[str]:
    return REFERENCE_PATTERN.findall(text or "")


def find_variables(text: str) -> List[str]:
    return VARIABLE_PATTERN.findall(text or "")


def broken_references(text: str, known_documents: Iterable[Document]) -> List[str]:
    known = {d.id for d in known_documents}
    return [ref for ref in find_references(text) if ref not in known]


def unresolved_variables(text: str, profile: Optional[VariableProfile]) -> List[str]:
    """Keys used in *text* that the profile does not define."""
    defined = set(profile.variables) if profile else set()
    return [key for key in find_variables(text) if key not in defined]


# ----------------- Editor-side insertion -------------------------------------
def append_variable_token(text: str, key: str) -> str:
    return (text or "") + variable_token(key)


def append_reference_token(text: str, doc_id: str) -> str:
    return (text or "") + reference_token(doc_id)
