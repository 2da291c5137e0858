"""
Grouping & Ordering Engine — canonical division/tier ordering and the
ReportContent model shared by the Markdown and PDF renderers.

Canonical ordering:
  - divisions ascending by the integer value of the CSI number, ties kept in
    encounter order (stable sort; unparseable numbers sort last)
  - within a division, tier 1 → 2 → 3, input order kept inside each tier

Both renderers consume one ReportContent built here. They never sort,
filter or generate appendix entities on their own, so the two outputs
cannot drift apart in content.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from specmate import config
from specmate.models.analysis import Alternative, Analysis, Material, ProjectLocation
from specmate.services.entity_generator import (
    Consultant,
    Supplier,
    consultants_for,
    suppliers_for,
)
from specmate.services.taxonomy import (
    LOCATION_ADVICE,
    TIER_ADVICE,
    TIER_COLOR_NAMES,
    TIER_ROLLUP_LABELS,
    TIERS,
)

logger = logging.getLogger("specmate-grouping")

_LEADING_NUMBER = re.compile(r"^\s*(\d+)")


@dataclass
class DivisionGroup:
    number: str
    name: str
    tiers: Dict[int, List[Material]] = field(default_factory=lambda: {t: [] for t in TIERS})

    @property
    def key(self) -> str:
        return f"{self.number} - {self.name}"

    @property
    def heading(self) -> str:
        return f"Division {self.number} - {self.name.upper()}"

    @property
    def sort_value(self) -> float:
        match = _LEADING_NUMBER.match(self.number or "")
        return int(match.group(1)) if match else float("inf")

    def bucket(self, tier: int) -> List[Material]:
        return self.tiers.get(tier, [])

    def non_empty_tiers(self) -> List[Tuple[int, List[Material]]]:
        return [(t, self.tiers[t]) for t in TIERS if self.tiers[t]]

    @property
    def materials(self) -> List[Material]:
        return [m for t in TIERS for m in self.tiers[t]]

    def as_tuple(self) -> Tuple[str, List[Material], List[Material], List[Material]]:
        return self.key, self.tiers[1], self.tiers[2], self.tiers[3]


def group_materials(materials: Sequence[Material]) -> List[DivisionGroup]:
    """Partition materials by exact division key, in canonical order."""
    groups: Dict[str, DivisionGroup] = {}
    for material in materials:
        key = material.division_key
        if key not in groups:
            groups[key] = DivisionGroup(number=material.csi_number, name=material.csi_division)
        # Out-of-range tiers cannot reach here: the Material model rejects them
        groups[key].tiers[material.tier].append(material)

    # dicts keep insertion order and sorted() is stable, so ties stay in encounter order
    return sorted(groups.values(), key=lambda g: g.sort_value)


def materials_in_tier(groups: Sequence[DivisionGroup], tier: int) -> List[Material]:
    """All materials of one tier, in canonical division order."""
    return [m for g in groups for m in g.bucket(tier)]


# ── Shared content model ──────────────────────────────────────────────────────

@dataclass
class TierRollup:
    tier: int
    label: str
    count: int
    by_division: List[Tuple[str, List[str]]]  # (division key, material names)

    @property
    def heading(self) -> str:
        return f"{self.label} ({self.count} materials)"


@dataclass
class ConsultantSection:
    tier: int
    consultants: List[Consultant]

    @property
    def heading(self) -> str:
        return f"{TIER_COLOR_NAMES[self.tier]} Consultants (Tier {self.tier} Materials)"


@dataclass
class SupplierSection:
    tier: int
    suppliers: List[Supplier]  # local entries only

    @property
    def heading(self) -> str:
        return f"{TIER_COLOR_NAMES[self.tier]} Suppliers (Tier {self.tier} Materials)"


@dataclass
class SupplierAppendix:
    sections: List[SupplierSection]
    national: List[Supplier]

    @property
    def all_suppliers(self) -> List[Supplier]:
        return [s for sec in self.sections for s in sec.suppliers] + list(self.national)


@dataclass
class ReportContent:
    title: str
    product_name: str
    generated_at: datetime
    image_urls: List[str]
    brief_intent: Optional[str]
    brief_text: Optional[str]
    location: Optional[ProjectLocation]
    total_materials: int
    tier_counts: Dict[int, int]
    divisions: List[DivisionGroup]
    rollups: List[TierRollup]
    recommendations: List[str]
    consultant_sections: List[ConsultantSection]
    supplier_appendix: Optional[SupplierAppendix]
    include_sustainability: bool = False
    include_alternatives: bool = False

    # ── Header ────────────────────────────────────────────────────────────

    @property
    def generated_label(self) -> str:
        return self.generated_at.strftime("%d %b %Y %H:%M UTC")

    @property
    def file_stamp(self) -> str:
        return report_stamp(self.generated_at)

    @property
    def image_count(self) -> int:
        return len(self.image_urls)

    @property
    def lead_image(self) -> Optional[str]:
        return self.image_urls[0] if self.image_urls else None

    @property
    def has_brief(self) -> bool:
        return bool(self.brief_intent or self.brief_text)

    @property
    def include_code_compliance(self) -> bool:
        return self.location is not None

    # ── Per-material visibility ───────────────────────────────────────────

    def sustainability_for(self, material: Material) -> Optional[str]:
        if self.include_sustainability and material.sustainability_notes:
            return material.sustainability_notes
        return None

    def code_compliance_for(self, material: Material) -> Optional[str]:
        if self.include_code_compliance and material.code_compliance:
            return material.code_compliance
        return None

    def alternatives_for(self, material: Material) -> List[Alternative]:
        if self.include_alternatives and material.alternatives:
            return list(material.alternatives)
        return []

    # ── Ordering projections ──────────────────────────────────────────────

    def material_sequence(self) -> List[Tuple[str, int, str]]:
        """(division key, tier, material name) in canonical order."""
        return [
            (g.key, tier, m.name)
            for g in self.divisions
            for tier, bucket in g.non_empty_tiers()
            for m in bucket
        ]


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def report_stamp(ts: datetime) -> str:
    """Filesystem-safe UTC stamp used in download filenames."""
    return _as_utc(ts).strftime("%Y-%m-%dT%H-%M-%S")


def _brief_fields(analysis: Analysis) -> Tuple[Optional[str], Optional[str]]:
    brief = analysis.brief
    if brief is None:
        return None, None
    intent = (brief.intent or "").strip()
    if intent:
        return intent, None
    text = (brief.text or "").strip()
    if text and len(text) < config.BRIEF_TEXT_LIMIT:
        return None, text
    return None, None


def _rollups(groups: Sequence[DivisionGroup]) -> List[TierRollup]:
    rollups = []
    for tier in TIERS:
        by_division = [(g.key, [m.name for m in g.bucket(tier)]) for g in groups if g.bucket(tier)]
        count = sum(len(names) for _, names in by_division)
        if count:
            rollups.append(TierRollup(tier, TIER_ROLLUP_LABELS[tier], count, by_division))
    return rollups


def _supplier_appendix(
    groups: Sequence[DivisionGroup], location: Optional[ProjectLocation]
) -> Optional[SupplierAppendix]:
    """Suppliers for tier 1 and 2 materials; requires a project location."""
    if location is None:
        return None
    sections: List[SupplierSection] = []
    national: Dict[str, Supplier] = {}
    for tier in (1, 2):
        tier_materials = materials_in_tier(groups, tier)
        if not tier_materials:
            continue
        generated = suppliers_for(tier_materials, location, tier)
        sections.append(SupplierSection(tier, [s for s in generated if s.rating == "local"]))
        for s in generated:
            if s.rating == "national":
                national.setdefault(s.company, s)
    if not sections:
        return None
    return SupplierAppendix(sections=sections, national=list(national.values()))


def build_report_content(analysis: Analysis) -> ReportContent:
    """Project an Analysis into the content model both renderers walk."""
    groups = group_materials(analysis.materials)
    tier_counts = {t: sum(1 for m in analysis.materials if m.tier == t) for t in TIERS}
    intent, text = _brief_fields(analysis)

    recommendations = [TIER_ADVICE[t] for t in TIERS if tier_counts[t]]
    if analysis.location is not None:
        recommendations.extend(LOCATION_ADVICE)

    consultant_sections = []
    for tier in TIERS:
        tier_materials = materials_in_tier(groups, tier)
        if tier_materials:
            divisions = list(dict.fromkeys(m.csi_division for m in tier_materials))
            consultant_sections.append(ConsultantSection(tier, consultants_for(divisions, tier)))

    content = ReportContent(
        title=config.REPORT_TITLE,
        product_name=config.PRODUCT_NAME,
        generated_at=_as_utc(analysis.timestamp),
        image_urls=list(analysis.image_urls),
        brief_intent=intent,
        brief_text=text,
        location=analysis.location,
        total_materials=len(analysis.materials),
        tier_counts=tier_counts,
        divisions=groups,
        rollups=_rollups(groups),
        recommendations=recommendations,
        consultant_sections=consultant_sections,
        supplier_appendix=_supplier_appendix(groups, analysis.location),
        include_sustainability=analysis.include_sustainability,
        include_alternatives=analysis.include_alternatives,
    )
    logger.debug(
        f"Report content: {content.total_materials} materials in {len(groups)} divisions, "
        f"{sum(len(s.consultants) for s in consultant_sections)} consultants"
    )
    return content

