"""
Contract renderer.

Turns a ContractRequest into the bytes of a Master Services Agreement +
Statement of Work ``.docx``. Output depends only on the request, the loaded
assets and the injected clock, so the same inputs give the same bytes.
"""

from __future__ import annotations

import io
import logging
import zipfile
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor, Twips

from src.documents.assets import ContractAssets
from src.documents.templates import TEMPLATES, ContractTemplate, fill
from src.integrations.contracts.interfaces import ContractRequest
from src.utils.config_loader import ProviderIdentity

logger = logging.getLogger(__name__)

FONT = "Space Grotesk"
BLACK = "000000"
DARK_GRAY = "333333"
MEDIUM_GRAY = "666666"
LIGHT_GRAY = "999999"
WHITE = "FFFFFF"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContractRenderer:
    def __init__(
        self,
        assets: Optional[ContractAssets] = None,
        clock: Clock = utc_now,
        provider: Optional[ProviderIdentity] = None,
    ) -> None:
        self.assets = assets or ContractAssets()
        self.clock = clock
        self.provider = provider or ProviderIdentity()

    def render(self, request: ContractRequest) -> bytes:
        template = TEMPLATES[request.contract_type]
        stamp = self.clock().replace(microsecond=0)

        doc = Document()
        self._setup_page(doc)
        self._title_page(doc, request, template)
        self._page_break(doc)
        self._agreement(doc, request, template)
        self._page_break(doc)
        self._statement_of_work(doc, request, template)
        self._page_break(doc)
        self._signatures(doc, request)

        props = doc.core_properties
        props.author = self.provider.company
        props.last_modified_by = self.provider.company
        props.title = f"{request.variant_label} MSA & SOW - {request.client_company}"
        props.revision = 1
        props.created = stamp
        props.modified = stamp
        props.last_printed = stamp

        buffer = io.BytesIO()
        doc.save(buffer)
        content = _pin_zip_timestamps(buffer.getvalue(), stamp)
        logger.info("Contract rendered: %s (%d bytes)", request.file_name, len(content))
        return content

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _setup_page(self, doc) -> None:
        normal = doc.styles["Normal"]
        normal.font.name = FONT
        normal.font.size = Pt(10)
        rpr = normal.element.get_or_add_rPr()
        rpr.get_or_add_rFonts().set(qn("w:eastAsia"), FONT)

        section = doc.sections[0]
        section.page_width = Inches(8.5)
        section.page_height = Inches(11)
        for side in ("top_margin", "bottom_margin", "left_margin", "right_margin"):
            setattr(section, side, Inches(1))

        header = section.header.paragraphs[0]
        header.alignment = WD_ALIGN_PARAGRAPH.RIGHT
        _run(header, self.provider.company, size=7.5, color=LIGHT_GRAY, italic=True)
        _run(header, "  |  ", size=7.5, color=LIGHT_GRAY)
        _run(header, "Confidential", size=7.5, color=LIGHT_GRAY, italic=True)

        footer = section.footer.paragraphs[0]
        footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _run(footer, "Page ", size=7.5, color=LIGHT_GRAY)
        _page_number_field(_run(footer, "", size=7.5, color=LIGHT_GRAY))

    def _title_page(self, doc, request: ContractRequest, template: ContractTemplate) -> None:
        _spacer(doc, before=2400 if not self.assets.logo_png else 1200)
        if self.assets.logo_png:
            _add_picture(_paragraph(doc, after=240, align=WD_ALIGN_PARAGRAPH.CENTER), self.assets.logo_png, Inches(1.5))

        wordmark, suffix = _split_company(self.provider.company)
        _run(_paragraph(doc, after=40, align=WD_ALIGN_PARAGRAPH.CENTER), wordmark.upper(), size=30, bold=True)
        if suffix:
            _run(_paragraph(doc, after=80, align=WD_ALIGN_PARAGRAPH.CENTER), suffix, size=13, bold=True, color=MEDIUM_GRAY)
        _border(_paragraph(doc, after=360, align=WD_ALIGN_PARAGRAPH.CENTER), ("bottom",), size=6, space=12)

        _run(_paragraph(doc, after=60, align=WD_ALIGN_PARAGRAPH.CENTER), "MASTER SERVICES AGREEMENT", size=14, bold=True)
        _run(_paragraph(doc, after=60, align=WD_ALIGN_PARAGRAPH.CENTER), "&", size=12, color=MEDIUM_GRAY)
        _run(_paragraph(doc, after=260, align=WD_ALIGN_PARAGRAPH.CENTER), "STATEMENT OF WORK", size=14, bold=True)
        _run(_paragraph(doc, after=100, align=WD_ALIGN_PARAGRAPH.CENTER), template.subtitle, size=11, bold=True, color=DARK_GRAY)
        _run(_paragraph(doc, after=500, align=WD_ALIGN_PARAGRAPH.CENTER), request.formatted_date, color=MEDIUM_GRAY)

        prepared = _paragraph(doc, after=60, align=WD_ALIGN_PARAGRAPH.CENTER)
        _run(prepared, "Prepared for  ", color=MEDIUM_GRAY)
        _run(prepared, request.client_company, bold=True)
        _run(
            _paragraph(doc, after=60, align=WD_ALIGN_PARAGRAPH.CENTER),
            f"{request.client_name}, {request.client_title}",
            color=MEDIUM_GRAY,
        )

    def _agreement(self, doc, request: ContractRequest, template: ContractTemplate) -> None:
        intro = _paragraph(doc, before=200, after=200, line=1.15)
        _run(intro, "This Master Services Agreement and Statement of Work (collectively, this “Agreement”) "
                    "is entered into as of ", color=DARK_GRAY)
        _run(intro, request.formatted_date, bold=True)
        _run(intro, " by and between ", color=DARK_GRAY)
        _run(intro, self.provider.company, bold=True)
        _run(intro, " (“Service Provider”) and ", color=DARK_GRAY)
        _run(intro, request.client_company, bold=True)
        _run(intro, " (“Client”).", color=DARK_GRAY)

        _banner(doc, "MASTER SERVICES AGREEMENT")
        values = self._values(request)
        for number, (title, text) in enumerate(template.sections, start=1):
            heading = _paragraph(doc, before=380, after=160)
            _border(heading, ("bottom",), size=3, space=6)
            _run(heading, f"Section {number}:  ", size=11, bold=True)
            _run(heading, title, size=11, bold=True)
            _body(doc, fill(text, **values))

    def _statement_of_work(self, doc, request: ContractRequest, template: ContractTemplate) -> None:
        values = self._values(request)
        _banner(doc, "STATEMENT OF WORK")

        _heading(doc, "Project Overview")
        _body(doc, template.overview)
        _heading(doc, template.scope_heading)
        _body(doc, request.scope.strip() or template.scope_fallback)
        for heading, text in template.sow_extra:
            _heading(doc, heading)
            _body(doc, text)

        _heading(doc, "Investment")
        for label, text in template.investment:
            p = _paragraph(doc, after=140, line=1.15)
            _run(p, label, bold=True)
            _run(p, fill(text, **values), color=DARK_GRAY)
        if template.investment_note:
            _body(doc, template.investment_note)

    def _signatures(self, doc, request: ContractRequest) -> None:
        _banner(doc, "SIGNATURES")
        _body(doc, "IN WITNESS WHEREOF, the parties have executed this Agreement as of the date first written above.")

        _run(_paragraph(doc, before=400, after=100), "SERVICE PROVIDER", size=10.5, bold=True)
        self._signature_block(
            doc,
            name=self.provider.signer_name,
            title=self.provider.signer_title,
            company=self.provider.company,
            signed_on=request.formatted_date,
            image=self.assets.signature_png,
        )

        _run(_paragraph(doc, before=400, after=100), "CLIENT", size=10.5, bold=True)
        self._signature_block(
            doc,
            name=request.client_name,
            title=request.client_title,
            company=request.client_company,
        )

    def _signature_block(
        self,
        doc,
        name: str,
        title: str,
        company: str,
        signed_on: Optional[str] = None,
        image: Optional[bytes] = None,
    ) -> None:
        _spacer(doc, before=400)
        line = _paragraph(doc, after=8)
        _border(line, ("bottom",), size=3, space=1)
        if not (image and _add_picture(line, image, Inches(2.1))):
            _run(line, " ", color=WHITE)
        _run(_paragraph(doc, after=30), "Signature", size=8.5, color=MEDIUM_GRAY, italic=True)

        _spacer(doc, before=200)
        date_line = _paragraph(doc, after=8)
        _border(date_line, ("bottom",), size=3, space=1)
        _run(date_line, signed_on or " ", color=DARK_GRAY if signed_on else WHITE)
        _run(_paragraph(doc, after=30), "Date", size=8.5, color=MEDIUM_GRAY, italic=True)

        _run(_paragraph(doc, before=140, after=30), name, bold=True)
        _run(_paragraph(doc, after=30), title, color=MEDIUM_GRAY)
        _run(_paragraph(doc, after=30), company, color=MEDIUM_GRAY)

    def _values(self, request: ContractRequest) -> dict:
        return {
            "provider": self.provider.company,
            "company": request.client_company,
            "date": request.formatted_date,
            "amount": request.formatted_amount,
        }

    @staticmethod
    def _page_break(doc) -> None:
        doc.add_paragraph().add_run().add_break(WD_BREAK.PAGE)


# ---------------------------------------------------------------------------
# python-docx helpers
# ---------------------------------------------------------------------------

def _paragraph(doc, before: int = 0, after: int = 0, line: Optional[float] = None, align=None):
    p = doc.add_paragraph()
    fmt = p.paragraph_format
    if before:
        fmt.space_before = Twips(before)
    fmt.space_after = Twips(after)
    if line:
        fmt.line_spacing = line
    if align is not None:
        p.alignment = align
    return p


def _spacer(doc, before: int) -> None:
    _paragraph(doc, before=before)


def _run(paragraph, text: str, size: float = 10, color: str = BLACK, bold: bool = False, italic: bool = False):
    run = paragraph.add_run(text)
    run.font.name = FONT
    run.font.size = Pt(size)
    run.font.color.rgb = RGBColor.from_string(color)
    run.font.bold = bold
    run.font.italic = italic
    return run


def _body(doc, text: str) -> None:
    _run(_paragraph(doc, after=160, line=1.15), text, color=DARK_GRAY)


def _heading(doc, text: str) -> None:
    _run(_paragraph(doc, before=340, after=140), text, size=12, bold=True)


def _banner(doc, text: str) -> None:
    p = _paragraph(doc, before=200, after=240, align=WD_ALIGN_PARAGRAPH.CENTER)
    _border(p, ("top", "bottom"), size=4, space=8)
    _run(p, text, size=12, bold=True)


# Elements that must follow w:pBdr inside w:pPr
_PBDR_SUCCESSORS = (
    "w:shd", "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap", "w:overflowPunct",
    "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN", "w:bidi", "w:adjustRightInd", "w:snapToGrid",
    "w:spacing", "w:ind", "w:contextualSpacing", "w:mirrorIndents", "w:suppressOverlap", "w:jc",
    "w:textDirection", "w:textAlignment", "w:textboxTightWrap", "w:outlineLvl", "w:divId", "w:cnfStyle",
    "w:rPr", "w:sectPr", "w:pPrChange",
)


def _border(paragraph, sides: Iterable[str], size: int, space: int, color: str = BLACK) -> None:
    ppr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    for side in sides:
        edge = OxmlElement(f"w:{side}")
        edge.set(qn("w:val"), "single")
        edge.set(qn("w:sz"), str(size))
        edge.set(qn("w:space"), str(space))
        edge.set(qn("w:color"), color)
        borders.append(edge)
    ppr.insert_element_before(borders, *_PBDR_SUCCESSORS)


def _page_number_field(run) -> None:
    begin = OxmlElement("w:fldChar")
    begin.set(qn("w:fldCharType"), "begin")
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = "PAGE"
    end = OxmlElement("w:fldChar")
    end.set(qn("w:fldCharType"), "end")
    run._r.append(begin)
    run._r.append(instr)
    run._r.append(end)


def _add_picture(paragraph, png: bytes, width) -> bool:
    try:
        paragraph.add_run().add_picture(io.BytesIO(png), width=width)
    except Exception as e:
        logger.warning(f"Image could not be embedded, rendering text only: {e}")
        return False
    return True


def _split_company(company: str):
    for suffix in ("LLC", "Inc.", "Inc", "Ltd", "Ltd."):
        if company.endswith(" " + suffix):
            return company[: -len(suffix) - 1], suffix
    return company, ""


def _pin_zip_timestamps(content: bytes, stamp: datetime) -> bytes:
    """Rewrite the package with every entry dated ``stamp``."""
    date_time = (max(stamp.year, 1980), stamp.month, stamp.day, stamp.hour, stamp.minute, stamp.second)
    out = io.BytesIO()
    with zipfile.ZipFile(io.BytesIO(content)) as src, zipfile.ZipFile(out, "w", zipfile.ZIP_DEFLATED) as dst:
        for item in src.infolist():
            info = zipfile.ZipInfo(item.filename, date_time=date_time)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o600 << 16
            dst.writestr(info, src.read(item.filename))
    return out.getvalue()
