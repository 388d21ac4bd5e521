"""
===============================================================================
ReportLabExporter – render a resolved document view to PDF
-------------------------------------------------------------------------------
Implementation
    - reportlab platypus builds the control sheet (metadata, sign-off table,
      revision history) followed by the document body.
    - Documents that are not approved get a diagonal watermark overlay,
      rendered with the reportlab canvas and merged onto every page with pypdf.
===============================================================================
"""
from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Protocol, Tuple
from xml.sax.saxutils import escape

from pypdf import PdfReader, PdfWriter
from reportlab.lib import colors
from reportlab.lib.colors import Color
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4, LETTER, LEGAL
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import PageBreak, Paragraph, Preformatted, SimpleDocTemplate, Spacer, Table, TableStyle

from doccontrol.dto.export_result import ExportArtifact
from doccontrol.dto.render_view import RenderedDocumentView
from doccontrol.exceptions.errors import ExportError
from doccontrol.logic.markup import Align, Block, BlockKind, split_bold

logger = logging.getLogger(__name__)

PAGE_SIZES = {"A4": A4, "LETTER": LETTER, "LEGAL": LEGAL}


class DocumentExporter(Protocol):
    def export(self, view: RenderedDocumentView, filename: str) -> ExportArtifact:
        """Raises ExportError when the artifact cannot be produced."""
        ...


def inline_markup(text: str) -> str:
    """Escape text for reportlab paragraphs and turn ``**bold**`` into <b> tags."""
    return "".join(f"<b>{escape(part)}</b>" if bold else escape(part) for part, bold in split_bold(text))


class ReportLabExporter:
    """PDF exporter writing into a fixed output directory."""

    def __init__(
        self,
        output_dir: Path,
        *,
        page_size: str = "A4",
        font_name: str = "Helvetica",
        font_path: str = "",
        watermark_unapproved: bool = True,
        watermark_text: str = "UNCONTROLLED COPY",
        create_missing_dir: bool = False,
    ) -> None:
        self.output_dir = Path(output_dir)
        try:
            self.page_size = PAGE_SIZES[page_size.upper()]
        except KeyError:
            raise ExportError(f"Unsupported page size: {page_size!r}") from None
        self.font_name = font_name
        self.font_path = font_path
        self.watermark_unapproved = watermark_unapproved
        self.watermark_text = watermark_text
        self.create_missing_dir = create_missing_dir
        self._font_ready = not font_path

    # ------------------------------------------------------------------ #
    def export(self, view: RenderedDocumentView, filename: str) -> ExportArtifact:
        target_dir = self._ensure_output_dir()
        path = target_dir / filename
        try:
            self._ensure_font()
            pdf = self.render(view)
            if self.watermark_unapproved and not view.is_controlled:
                pdf = self.apply_watermark(pdf, self.watermark_text)
            path.write_bytes(pdf)
        except ExportError:
            raise
        except Exception as ex:
            logger.error("PDF export of %s failed: %s", view.doc_number, ex)
            raise ExportError(f"Could not write {filename}: {ex}") from ex

        logger.info("Exported %s (%d bytes)", path, len(pdf))
        return ExportArtifact(path=path, filename=filename, size_bytes=len(pdf))

    def render(self, view: RenderedDocumentView) -> bytes:
        buf = BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=self.page_size,
            leftMargin=2 * cm,
            rightMargin=2 * cm,
            topMargin=2 * cm,
            bottomMargin=2 * cm,
            title=view.title,
            author=view.organisation,
            subject=f"{view.doc_number} v{view.version}",
        )
        styles = self._styles()
        story: List = []
        story.extend(self._control_sheet(view, styles))
        story.append(PageBreak())
        for section in view.sections:
            story.append(Paragraph(inline_markup(section.title), styles["section"]))
            for block in section.blocks:
                story.extend(self._block(block, styles))
            story.append(Spacer(1, 0.4 * cm))
        doc.build(story)
        return buf.getvalue()

    @staticmethod
    def apply_watermark(pdf: bytes, text: str) -> bytes:
        reader = PdfReader(BytesIO(pdf))
        writer = PdfWriter()
        overlays: Dict[Tuple[float, float], object] = {}
        for page in reader.pages:
            w = float(page.mediabox.width)
            h = float(page.mediabox.height)
            key = (round(w, 1), round(h, 1))
            if key not in overlays:
                overlays[key] = PdfReader(BytesIO(_overlay(w, h, text))).pages[0]
            writer.add_page(page).merge_page(overlays[key])
        out = BytesIO()
        writer.write(out)
        return out.getvalue()

    # ---- helpers ---- #
    def _ensure_output_dir(self) -> Path:
        if not self.output_dir.is_dir():
            if not self.create_missing_dir:
                raise ExportError(f"Output directory does not exist: {self.output_dir}")
            try:
                self.output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as ex:
                raise ExportError(f"Cannot create output directory {self.output_dir}: {ex}") from ex
        return self.output_dir

    def _ensure_font(self) -> None:
        if self._font_ready:
            return
        try:
            pdfmetrics.registerFont(TTFont(self.font_name, self.font_path))
        except Exception as ex:
            raise ExportError(f"Cannot load font {self.font_path}: {ex}") from ex
        self._font_ready = True

    def _styles(self) -> Dict[str, ParagraphStyle]:
        base = getSampleStyleSheet()
        # keep the stock bold/italic faces unless a TTF font was configured
        f = {"fontName": self.font_name} if self.font_path else {}
        return {
            "title": ParagraphStyle("dc-title", parent=base["Title"], **f),
            "meta": ParagraphStyle("dc-meta", parent=base["Normal"], **f, fontSize=9, leading=12),
            "label": ParagraphStyle("dc-label", parent=base["Heading4"], **f, spaceBefore=10),
            "section": ParagraphStyle("dc-section", parent=base["Heading2"], **f),
            "h2": ParagraphStyle("dc-h2", parent=base["Heading3"], **f),
            "h3": ParagraphStyle("dc-h3", parent=base["Heading4"], **f),
            "body": ParagraphStyle("dc-body", parent=base["BodyText"], **f),
            "bullet": ParagraphStyle("dc-bullet", parent=base["BodyText"], **f,
                                     leftIndent=14, bulletIndent=4),
            "quote": ParagraphStyle("dc-quote", parent=base["BodyText"], **f, leftIndent=16,
                                    textColor=colors.HexColor("#475569"), borderPadding=4,
                                    borderColor=colors.HexColor("#cbd5e1"), borderWidth=0),
            "code": ParagraphStyle("dc-code", parent=base["Code"], fontSize=8, leading=10),
            "cell": ParagraphStyle("dc-cell", parent=base["BodyText"], **f, fontSize=9, leading=11),
        }

    def _control_sheet(self, view: RenderedDocumentView, styles) -> List:
        cell = styles["cell"]
        rows = [
            ["Organisation", view.organisation, "Document No.", view.doc_number],
            ["Category", view.category_name, "Version", view.version],
            ["Level", view.level_label, "Status", view.status.upper()],
            ["Department", view.department, "", ""],
        ]
        meta = Table([[Paragraph(escape(str(v)), cell) for v in r] for r in rows], hAlign="LEFT")
        meta.setStyle(_grid())

        sig_rows = [["Role", "Name", "Date", "Signed"]]
        sig_rows += [[s.role, s.name or "-", s.date or "-", "yes" if s.signed else "pending"] for s in view.signatures]
        signatures = Table([[Paragraph(escape(str(v)), cell) for v in r] for r in sig_rows], hAlign="LEFT")
        signatures.setStyle(_grid(header=True))

        story: List = [
            Paragraph(inline_markup(view.title), styles["title"]),
            meta,
            Paragraph("Sign-off", styles["label"]),
            signatures,
        ]
        if view.revisions:
            rev_rows = [["Version", "Date", "Description", "Author"]]
            rev_rows += [[r.version, r.date, r.description, r.author] for r in view.revisions]
            history = Table([[Paragraph(escape(str(v)), cell) for v in r] for r in rev_rows], hAlign="LEFT")
            history.setStyle(_grid(header=True))
            story += [Paragraph("Revision history", styles["label"]), history]
        if view.approval_hash:
            story.append(Paragraph(f"Integrity hash: {escape(view.approval_hash)}", styles["meta"]))
        return story

    def _block(self, block: Block, styles) -> List:
        if block.kind == BlockKind.HEADING:
            return [Paragraph(inline_markup(block.text), styles["h2" if block.level <= 2 else "h3"])]
        if block.kind == BlockKind.BULLET:
            return [Paragraph(inline_markup(block.text), styles["bullet"], bulletText="•")]
        if block.kind == BlockKind.NUMBERED:
            return [Paragraph(inline_markup(block.text), styles["bullet"], bulletText=f"{block.number}.")]
        if block.kind == BlockKind.QUOTE:
            return [Paragraph(inline_markup(block.text), styles["quote"])]
        if block.kind == BlockKind.DIAGRAM:
            return [Preformatted(block.text, styles["code"]), Spacer(1, 0.2 * cm)]
        if block.kind == BlockKind.TABLE:
            return [self._table(block, styles), Spacer(1, 0.2 * cm)]
        return [Paragraph(inline_markup(block.text), styles["body"])]

    def _table(self, block: Block, styles) -> Table:
        width = max([len(block.header or ())] + [len(r) for r in block.rows]) or 1
        rows = ([list(block.header)] if block.header else []) + [list(r) for r in block.rows]
        cell_styles = {
            Align.LEFT: styles["cell"],
            Align.CENTER: ParagraphStyle("dc-cell-c", parent=styles["cell"], alignment=TA_CENTER),
            Align.RIGHT: ParagraphStyle("dc-cell-r", parent=styles["cell"], alignment=TA_RIGHT),
        }
        data = []
        for r in rows:
            r = r + [""] * (width - len(r))
            data.append([
                Paragraph(inline_markup(v), cell_styles[block.alignments[i] if i < len(block.alignments) else Align.LEFT])
                for i, v in enumerate(r[:width])
            ])
        table = Table(data, hAlign="LEFT", repeatRows=1 if block.header else 0)
        table.setStyle(_grid(header=bool(block.header)))
        return table


def _grid(header: bool = False) -> TableStyle:
    cmds = [
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#94a3b8")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    if header:
        cmds.append(("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#e2e8f0")))
    return TableStyle(cmds)


def _overlay(width_pt: float, height_pt: float, text: str) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=(width_pt, height_pt))

    # semi-transparent grey text diagonally across the page
    c.saveState()
    c.translate(width_pt / 2.0, height_pt / 2.0)
    c.rotate(45)
    c.setFillColor(Color(0.2, 0.2, 0.2, alpha=0.15))
    c.setFont("Helvetica-Bold", 48)
    c.drawCentredString(0, 0, text)
    c.restoreState()

    # footer label
    c.setFillColor(Color(0.1, 0.1, 0.1, alpha=0.25))
    c.setFont("Helvetica", 10)
    c.drawString(1.5 * cm, 1.5 * cm, text)

    c.showPage()
    c.save()
    return buf.getvalue()
