"""
PDF Renderer — paginated A4 rendition of a ReportContent.

Walks the same ReportContent as the Markdown renderer, section for section,
through a PageWriter. The only structural addition is the lead image, which
is decoded off the event loop and embedded below the report header. A bad
image never aborts the report: it is logged and replaced by a notice line.
"""
import asyncio
import base64
import io
import logging
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader

from specmate import config
from specmate.models.analysis import Material
from specmate.services.entity_generator import Consultant, Supplier
from specmate.services.grouping_engine import ReportContent
from specmate.services.markdown_renderer import (
    ALTERNATIVES_NOTE,
    COMPLIANCE_NOTICE,
    CONSULTANTS_INTRO,
    NATIONAL_INTRO,
    NO_LOCAL_SUPPLIERS,
    SUPPLIERS_INTRO,
)
from specmate.services.page_writer import PageWriter, TraceLine
from specmate.services.taxonomy import (
    CODE_COMPLIANCE_REQUIREMENTS,
    TIER_HEADINGS,
    TIER_SUMMARY_LABELS,
    TIERS,
)

logger = logging.getLogger("specmate-pdf")

IMAGE_PLACEHOLDER = "Image could not be included in PDF"
ALLOWED_IMAGE_FORMATS = ["PNG", "JPEG"]
FS = config.FONT_SIZES

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)


@dataclass
class RenderedDocument:
    pdf_bytes: bytes
    page_count: int
    trace: List[TraceLine] = field(default_factory=list)


# ── Image handling ────────────────────────────────────────────────────────────

def decode_image(source: str) -> Tuple[ImageReader, int, int]:
    """
    Decode a base64 PNG/JPEG data URL into a reportlab ImageReader.

    Image references arrive in the request body, so anything other than an
    inline data URL (file paths, http URLs) is rejected rather than resolved.
    Raises ValueError / OSError for anything that cannot be decoded.
    """
    if not source:
        raise ValueError("Empty image reference")
    match = _DATA_URL.match(source)
    if not match:
        raise ValueError("Image reference is not a data URL")
    if not match.group("b64"):
        raise ValueError("Only base64 data URLs are supported")
    raw = base64.b64decode(match.group("data"), validate=False)
    img = Image.open(io.BytesIO(raw), formats=ALLOWED_IMAGE_FORMATS)
    img.load()
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    width, height = img.size
    if not width or not height:
        raise ValueError("Image has no pixels")
    return ImageReader(img), width, height


def fit_image_box(width: float, height: float,
                  max_w: float = config.IMAGE_MAX_WIDTH_MM,
                  max_h: float = config.IMAGE_MAX_HEIGHT_MM) -> Tuple[float, float]:
    """
    Size in mm for an image of (width, height) pixels, one pixel per mm.

    Larger images shrink to fit the box with the aspect ratio kept; smaller
    ones are drawn at their natural size, never enlarged.
    """
    scale = min(1.0, max_w / width, max_h / height)
    return width * scale, height * scale


# ── Renderer ──────────────────────────────────────────────────────────────────

class PdfReportRenderer:
    """Renders one ReportContent into PDF bytes."""

    async def render(self, content: ReportContent) -> RenderedDocument:
        w = PageWriter(footer_text=f"Generated by {content.product_name}")

        self._header(w, content)
        if content.lead_image:
            await self._lead_image(w, content.lead_image)
        self._brief(w, content)
        self._location(w, content)
        self._summary(w, content)
        self._divisions(w, content)
        self._rollups(w, content)
        self._compliance(w, content)
        self._recommendations(w, content)
        self._consultants(w, content)
        self._suppliers(w, content)

        w.spacing(5)
        w.text(f"Report generated by {content.product_name}", FS["body"], bold=True, style="closing")

        pdf_bytes = w.finish()
        logger.info(f"PDF rendered: {w.page_count} pages, {len(pdf_bytes)} bytes")
        return RenderedDocument(pdf_bytes=pdf_bytes, page_count=w.page_count, trace=w.trace)

    # ── Sections ──────────────────────────────────────────────────────────

    @staticmethod
    def _section(w: PageWriter, title: str, size: float = FS["h2"]):
        w.spacing(8)
        w.text(title, size, bold=True, style="heading")
        w.spacing(3)

    def _header(self, w: PageWriter, content: ReportContent):
        w.text(content.title, FS["h1"], bold=True, style="title")
        w.spacing(3)
        w.label_value("Generated: ", content.generated_label)
        if content.image_count > 1:
            w.label_value("Images Analyzed: ", str(content.image_count))
            w.text(f"Analyzed {content.image_count} images (showing first image)",
                   FS["small"], color=config.SUBTLE, style="note")
        w.spacing(3)

    async def _lead_image(self, w: PageWriter, source: str):
        try:
            reader, px_w, px_h = await asyncio.to_thread(decode_image, source)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning(f"Lead image could not be decoded: {e}")
            w.text(IMAGE_PLACEHOLDER, FS["small"], color=config.MUTED, style="note")
            w.spacing(5)
            return
        width_mm, height_mm = fit_image_box(px_w, px_h)
        w.image(reader, width_mm * mm, height_mm * mm)

    def _brief(self, w: PageWriter, content: ReportContent):
        if not content.has_brief:
            return
        self._section(w, "Project Brief")
        if content.brief_intent:
            w.text("Project Intent & Constraints:", FS["body"], bold=True, style="label")
            self._intent_lines(w, content.brief_intent)
        else:
            w.text("Brief Summary:", FS["body"], bold=True, style="label")
            w.text(content.brief_text)

    @staticmethod
    def _intent_lines(w: PageWriter, intent: str):
        """Intent arrives as light Markdown: '**Label:** value' lines and '- ' bullets."""
        for raw in intent.split("\n"):
            line = raw.strip()
            if not line:
                continue
            if line.startswith("**") and ":**" in line:
                label, _, value = line.partition(":**")
                w.label_value(label.replace("**", "").strip() + ": ", value.strip())
            elif line.startswith("- "):
                w.bullet(line[2:].strip())
            else:
                w.text(line.replace("**", ""))

    def _location(self, w: PageWriter, content: ReportContent):
        location = content.location
        if location is None:
            return
        self._section(w, "Project Location")
        w.label_value("Project Location: ", location.input)
        if location.jurisdiction:
            w.label_value("Jurisdiction: ", location.jurisdiction)
        if location.building_code:
            w.label_value("Building Code: ", location.building_code)

    def _summary(self, w: PageWriter, content: ReportContent):
        self._section(w, "Project Summary")
        w.bullet(f"Total materials identified: {content.total_materials}")
        for tier in TIERS:
            w.bullet(f"{TIER_SUMMARY_LABELS[tier]}: {content.tier_counts[tier]} materials")

    def _divisions(self, w: PageWriter, content: ReportContent):
        self._section(w, "Materials Analysis by CSI MasterFormat Division")
        for group in content.divisions:
            w.spacing(5)
            w.text(group.heading, FS["h3"], bold=True, style="division")
            for tier, bucket in group.non_empty_tiers():
                w.spacing(3)
                w.text(TIER_HEADINGS[tier], FS["h4"], bold=True,
                       color=config.TIER_COLORS[tier], style="tier")
                for material in bucket:
                    w.spacing(3)
                    self._material_card(w, content, material)

    def _material_card(self, w: PageWriter, content: ReportContent, material: Material):
        w.text(material.name, FS["h4"], bold=True,
               color=config.TIER_COLORS[material.tier], style="material")
        w.spacing(2)
        w.label_value("CSI Division: ", material.division_key)
        w.label_value("Description: ", material.description)
        w.text("Properties:", FS["body"], bold=True, style="label")
        for prop in material.properties:
            w.bullet(prop)
        w.label_value("Feasibility Notes: ", material.reasoning)

        sustainability = content.sustainability_for(material)
        if sustainability:
            w.label_value("Sustainability Notes: ", sustainability)

        compliance = content.code_compliance_for(material)
        if compliance:
            w.label_value("Code Compliance: ", compliance)

        alternatives = content.alternatives_for(material)
        if alternatives:
            w.text("Alternative Materials:", FS["body"], bold=True, style="label")
            for i, alt in enumerate(alternatives, 1):
                w.spacing(1)
                w.text(f"{i}. {alt.name}", FS["body"], bold=True, style="alternative", indent=5 * mm)
                w.label_value("Description: ", alt.description)
                w.label_value("Tradeoffs: ", alt.tradeoffs)

    def _rollups(self, w: PageWriter, content: ReportContent):
        self._section(w, "Summary by Tier")
        for rollup in content.rollups:
            w.spacing(2)
            w.text(rollup.heading, FS["h4"], bold=True,
                   color=config.TIER_COLORS[rollup.tier], style="rollup")
            for key, names in rollup.by_division:
                w.bullet(f"{key}: {', '.join(names)}")

    def _compliance(self, w: PageWriter, content: ReportContent):
        location = content.location
        if location is None:
            return
        self._section(w, "Building Code Compliance Summary")
        w.label_value("Project Location: ", location.input)
        if location.jurisdiction:
            w.label_value("Jurisdiction: ", location.jurisdiction)
        if location.building_code:
            w.label_value("Applicable Codes: ", location.building_code)
        w.spacing(3)
        w.text("Code Compliance by Material", FS["h4"], bold=True, style="subheading")
        w.text("Materials are subject to local building codes and may require:")
        for req in CODE_COMPLIANCE_REQUIREMENTS:
            w.bullet(req)
        w.spacing(2)
        w.label_value("Important: ", COMPLIANCE_NOTICE)

    def _recommendations(self, w: PageWriter, content: ReportContent):
        self._section(w, "Recommendations")
        w.text("Next Steps:", FS["body"], bold=True, style="label")
        for line in content.recommendations:
            w.bullet(line)
        if content.include_alternatives:
            w.spacing(2)
            w.text("Alternative Materials:", FS["body"], bold=True, style="label")
            w.text(ALTERNATIVES_NOTE)

    def _consultants(self, w: PageWriter, content: ReportContent):
        self._section(w, "Appendix: Elite Consultants by Tier", FS["h1"])
        w.text(CONSULTANTS_INTRO)
        for section in content.consultant_sections:
            w.spacing(8)
            w.text(section.heading, FS["h3"], bold=True,
                   color=config.TIER_COLORS[section.tier], style="appendix-section")
            for consultant in section.consultants:
                w.spacing(4)
                self._consultant_card(w, consultant)

    @staticmethod
    def _consultant_card(w: PageWriter, consultant: Consultant):
        w.text(consultant.name, FS["h4"], bold=True, style="consultant")
        w.label_value("Firm: ", consultant.firm)
        w.label_value("Specialty: ", consultant.specialty)
        w.label_value("Email: ", consultant.email)
        w.label_value("Phone: ", consultant.phone)
        if consultant.website:
            w.label_value("Website: ", consultant.website)
        w.label_value("Disciplines: ", ", ".join(consultant.disciplines))

    def _suppliers(self, w: PageWriter, content: ReportContent):
        appendix = content.supplier_appendix
        if appendix is None:
            return
        self._section(w, "Appendix: Material Suppliers by Tier", FS["h1"])
        w.text(SUPPLIERS_INTRO)
        for section in appendix.sections:
            w.spacing(8)
            w.text(section.heading, FS["h3"], bold=True,
                   color=config.TIER_COLORS[section.tier], style="appendix-section")
            if not section.suppliers:
                w.text(NO_LOCAL_SUPPLIERS, color=config.MUTED, style="note")
            for supplier in section.suppliers:
                w.spacing(4)
                self._supplier_card(w, supplier)
        if appendix.national:
            w.spacing(8)
            w.text("National Suppliers (High-Quality Options)", FS["h3"], bold=True,
                   style="appendix-section")
            w.text(NATIONAL_INTRO)
            for supplier in appendix.national:
                w.spacing(4)
                self._supplier_card(w, supplier)

    @staticmethod
    def _supplier_card(w: PageWriter, supplier: Supplier):
        w.text(supplier.name, FS["h4"], bold=True, style="supplier")
        w.label_value("Company: ", supplier.company)
        w.label_value("Location: ", supplier.location_label)
        w.label_value("Material Types: ", ", ".join(supplier.material_types))
        w.label_value("Specialties: ", ", ".join(supplier.specialties))
        w.label_value("Email: ", supplier.email)
        w.label_value("Phone: ", supplier.phone)
        if supplier.website:
            w.label_value("Website: ", supplier.website)
