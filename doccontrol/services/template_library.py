"""
Template library: seeded system templates plus templates saved by users.

Templates are stored as ``Document`` objects flagged ``is_template``; creating
a document from one goes through ``Document.from_template`` in the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from doccontrol.enum.doc_level import DocLevel
from doccontrol.exceptions.errors import ValidationError
from doccontrol.models.document_models import Document, Section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateEntry:
    id: str
    document: Document
    description: str = ""
    is_system: bool = False

    @property
    def title(self) -> str:
        return self.document.title


def _tpl(tpl_id: str, title: str, category: str, level: DocLevel, description: str, sections) -> TemplateEntry:
    doc = Document(
        id=tpl_id,
        title=title,
        doc_number="",
        category=category,
        level=level,
        sections=[Section(id=str(i), title=t, content=c) for i, (t, c) in enumerate(sections, start=1)],
        is_template=True,
    )
    return TemplateEntry(id=tpl_id, document=doc, description=description, is_system=True)


def system_templates() -> List[TemplateEntry]:
    return [
        _tpl(
            "tpl-quality-manual", "Quality Manual", "iso", DocLevel.MANUAL,
            "ISO 9001:2015 high-level structure: context, leadership commitment and operations overview.",
            [
                ("1.0 Context of the Organization",
                 "Internal and external issues (SWOT).\n\n"
                 "| Aspect | Strengths | Weaknesses | Opportunities | Threats |\n"
                 "| :--- | :--- | :--- | :--- | :--- |\n"
                 "| **Internal** | Technical lead, senior team | Low automation | - | - |\n"
                 "| **External** | - | - | Growing demand | Raw material prices |"),
                ("2.0 Quality Policy",
                 "> **Quality policy statement:**\n"
                 "> {{COMPANY_NAME}} is committed to continually improving its quality management system.\n\n"
                 "**Objectives:**\n1. Customer satisfaction of 95% or more.\n2. Defect rate below 0.1%."),
                ("3.0 Organization",
                 "Top-level structure:\n\n"
                 "```mermaid\ngraph TD\n  CEO[{{CEO}}] --> MR[Management Representative]\n"
                 "  CEO --> Sales[Sales]\n  CEO --> Prod[Production]\n  CEO --> QA[Quality Assurance]\n"
                 "  CEO --> Admin[Administration]\n```"),
                ("4.0 Planning & Operation",
                 "Risks and resources are managed in a PDCA cycle. "
                 "Detailed processes are defined in the level 2 procedures."),
            ],
        ),
        _tpl(
            "tpl-sop", "Standard Operating Procedure", "iso", DocLevel.PROCEDURE,
            "Level 2 procedure skeleton with process flowchart and responsibilities.",
            [
                ("1.0 Purpose", "This procedure defines the {{PROCESS_NAME}} process to ensure stable, compliant results."),
                ("2.0 Scope", "Applies to all related activities performed by {{DEPARTMENT}}."),
                ("3.0 Process Flow",
                 "```mermaid\ngraph TD\n  Start((Start)) --> Step1[10. Receive request]\n"
                 "  Step1 --> Check{20. Data complete?}\n  Check -- Yes --> Step2[30. Perform work]\n"
                 "  Check -- No --> Error[Report / return]\n  Error --> Step1\n"
                 "  Step2 --> QC[40. Self-inspection]\n  QC --> End((End))\n```"),
                ("4.0 Definitions",
                 "- **Project Manager (PM)**: coordinates the project schedule.\n"
                 "- **N.C.**: non-conformity."),
                ("5.0 Procedure",
                 "### 5.1 Receive request\nThe responsible unit checks the request for completeness.\n\n"
                 "### 5.2 Perform work\nFollow the work instruction and record the results.\n\n"
                 "### 5.3 Deviations\nStop work and inform the supervisor immediately."),
                ("6.0 References",
                 "- [[REF:WI-001]] Machine operation instruction\n"
                 "- [[REF:FORM-002]] Corrective action record"),
            ],
        ),
        _tpl(
            "tpl-work-instruction", "Work Instruction", "iso", DocLevel.WORK_INSTRUCTION,
            "Step-by-step instruction for a single task including a troubleshooting table.",
            [
                ("1.0 Preparation",
                 "1. Switch on the power supply.\n2. Wear personal protective equipment.\n"
                 "3. Check that the panel shows \"READY\"."),
                ("2.0 Steps",
                 "1. Load material into inlet A.\n2. Press the green \"START\" button.\n"
                 "3. Keep the temperature at 150 °C ± 5 °C.\n4. Press the red \"STOP\" button when done."),
                ("3.0 Troubleshooting",
                 "| Symptom | Possible cause | Action |\n| :--- | :--- | :--- |\n"
                 "| Does not start | Loose power cable | Check socket and fuse |\n"
                 "| Overheating | Fan failure | Clean the filter, report if persistent |"),
                ("4.0 Notices",
                 "> **Warning:** never reach under the cover while the machine runs.\n"
                 "> **Note:** perform 5S cleaning after every shift."),
            ],
        ),
        _tpl(
            "tpl-official-letter", "Official Letter", "admin", DocLevel.FORM,
            "Formal outgoing letter with subject, explanation and proposed action.",
            [
                ("Letter Details",
                 "| Date | {{DATE}} | Reference | {{DOC_ID}} |\n| :--- | :--- | :--- | :--- |\n"
                 "| **Priority** | Normal | **Classification** | Internal |"),
                ("Subject", "Regarding {{SUBJECT}}, for your information."),
                ("Explanation",
                 "1. Issued in accordance with {{REFERENCE_DOC}}.\n2. This letter explains ...\n"
                 "3. Supporting documents are enclosed."),
                ("Proposed Action", "To be announced and implemented upon approval."),
                ("Distribution", "**To:** {{RECIPIENT}}\n**Cc:** Administration, Internal Audit"),
            ],
        ),
        _tpl(
            "tpl-checklist", "General Checklist", "iso", DocLevel.FORM,
            "Printable inspection checklist with result table and sign-off fields.",
            [
                ("Header",
                 "| Equipment | {{TARGET_NAME}} | Date | {{DATE}} |\n| :--- | :--- | :--- | :--- |\n"
                 "| **Inspector** | {{AUTHOR}} | **Supervisor** | |"),
                ("Checklist",
                 "| No. | Item | Criterion | Result | Remark |\n| :---: | :--- | :--- | :---: | :--- |\n"
                 "| 1 | Housekeeping | No clutter, dry floor | [ ] | |\n"
                 "| 2 | Zero setting | Gauges read 0 | [ ] | |\n"
                 "| 3 | Safety guards | Covers work | [ ] | |"),
                ("Deviations", "Describe any failed item:"),
                ("Sign-off",
                 "> Retain this record for 3 years.\n\n"
                 "**Inspector:** ____________________\n\n**Supervisor:** ____________________"),
            ],
        ),
    ]


class TemplateLibrary:
    def __init__(self, seed: Optional[List[TemplateEntry]] = None) -> None:
        self._items: Dict[str, TemplateEntry] = {
            t.id: t for t in (seed if seed is not None else system_templates())
        }

    def list(self, *, category: Optional[str] = None) -> List[TemplateEntry]:
        # user templates first, newest first
        user = [t for t in reversed(list(self._items.values())) if not t.is_system]
        system = [t for t in self._items.values() if t.is_system]
        return [t for t in user + system if category is None or t.document.category == category]

    def get(self, template_id: str) -> Optional[TemplateEntry]:
        return self._items.get(template_id)

    def require(self, template_id: str) -> TemplateEntry:
        entry = self._items.get(template_id)
        if entry is None:
            raise ValidationError(f"Unknown template: {template_id!r}")
        return entry

    def add_user_template(self, template: Document, *, description: str = "") -> TemplateEntry:
        if not template.is_template:
            raise ValidationError("Only template documents can be added to the library.")
        entry = TemplateEntry(id=template.id, document=template, description=description, is_system=False)
        self._items[entry.id] = entry
        logger.info("User template saved: %s (%s)", template.title, template.id)
        return entry

    def remove(self, template_id: str) -> None:
        entry = self.require(template_id)
        if entry.is_system:
            raise ValidationError(f"System template '{entry.title}' cannot be removed.")
        del self._items[template_id]
