"""
Derived-Entity Generator — synthesizes the consultant and supplier appendices.

Nothing here is random. Every entry is a pure function of
(tier, specialty or category, index): names come from fixed round-robin
pools, phone numbers from arithmetic offsets into a per-tier template, and
contact handles from a slug of the specialty/category. Two calls with the
same inputs therefore return equal lists, which the report tests rely on.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from specmate.models.analysis import Material, ProjectLocation
from specmate.services.taxonomy import (
    DIVISION_SPECIALTIES,
    DIVISION_SUPPLIER_TYPES,
    GENERIC_SPECIALTY,
    GENERIC_SUPPLIER_TYPE,
)

logger = logging.getLogger("specmate-entities")

NATIONAL_LOCATION = "National Distribution"
DEFAULT_REGION = "Local Area"
MAX_SUPPLIER_TYPES_PER_DIVISION = 2
MAX_NATIONAL_SUPPLIERS = 3
# National suppliers are also added when the material set spans more than this many divisions
NATIONAL_DIVISION_THRESHOLD = 3


@dataclass
class Consultant:
    name: str
    firm: str
    specialty: str
    email: str
    phone: str
    website: Optional[str] = None
    disciplines: List[str] = field(default_factory=list)


@dataclass
class Supplier:
    name: str
    company: str
    location: str
    material_types: List[str]
    email: str
    phone: str
    website: Optional[str] = None
    rating: str = "local"  # local | national
    specialties: List[str] = field(default_factory=list)

    @property
    def location_label(self) -> str:
        return f"{self.location} ({'Local' if self.rating == 'local' else 'National'})"


@dataclass(frozen=True)
class _ConsultantProfile:
    limit: int
    title: str
    first_names: tuple
    surnames: tuple
    firm_suffix: str
    specialty_suffix: str
    mailbox: str
    domain_suffix: str
    phone_exchange: int
    phone_line: int
    extra_disciplines: tuple = ()


# Tier 1: established practices; tier 2: customisation specialists;
# tier 3: research labs for materials that do not exist yet.
_CONSULTANT_PROFILES: dict[int, _ConsultantProfile] = {
    1: _ConsultantProfile(
        limit=3,
        title="Dr. ",
        first_names=("Sarah", "Michael", "Jennifer"),
        surnames=("Chen", "Rodriguez", "Thompson"),
        firm_suffix="Associates",
        specialty_suffix="",
        mailbox="contact",
        domain_suffix="associates",
        phone_exchange=200,
        phone_line=1000,
    ),
    2: _ConsultantProfile(
        limit=4,
        title="",
        first_names=("James", "Patricia", "Robert", "Linda"),
        surnames=("Anderson", "Martinez", "Wilson", "Garcia"),
        firm_suffix="Custom Solutions",
        specialty_suffix=" & Custom Fabrication",
        mailbox="info",
        domain_suffix="custom",
        phone_exchange=300,
        phone_line=2000,
        extra_disciplines=("Custom Fabrication",),
    ),
    3: _ConsultantProfile(
        limit=5,
        title="Prof. ",
        first_names=("David", "Elizabeth", "Christopher", "Maria", "Daniel"),
        surnames=("Lee", "Brown", "Davis", "Miller", "Taylor"),
        firm_suffix="Innovation Lab",
        specialty_suffix=" R&D & Advanced Materials",
        mailbox="research",
        domain_suffix="innovation",
        phone_exchange=400,
        phone_line=3000,
        extra_disciplines=("Materials R&D", "Innovation Consulting"),
    ),
}

_LOCAL_FIRST_NAMES = ("John", "Sarah", "Michael", "Emily")
_LOCAL_SURNAMES = ("Smith", "Johnson", "Williams", "Brown")
_NATIONAL_FIRST_NAMES = ("David", "Jennifer", "Robert")
_NATIONAL_SURNAMES = ("Anderson", "Martinez", "Taylor")


def _slug(text: str) -> str:
    """Lowercase alphanumerics only, usable in email local parts and domains."""
    return re.sub(r"[^a-z0-9]", "", (text or "").lower())


def _unique(values: Iterable[str]) -> List[str]:
    """Deduplicate while keeping first-seen order."""
    return list(dict.fromkeys(v for v in values if v is not None))


def resolve_specialties(divisions: Iterable[str]) -> List[str]:
    """Union of consulting specialties for the given CSI division names."""
    specialties: List[str] = []
    for division in divisions:
        specialties.extend(DIVISION_SPECIALTIES.get(division, [GENERIC_SPECIALTY]))
    return _unique(specialties)


def supplier_types_for(division: str) -> List[str]:
    return DIVISION_SUPPLIER_TYPES.get(division, [GENERIC_SUPPLIER_TYPE])


# ── Consultants ───────────────────────────────────────────────────────────────

def consultant_for(tier: int, specialty: str, index: int) -> Optional[Consultant]:
    """Build the consultant at ``index`` for a tier; None for an unknown tier."""
    profile = _CONSULTANT_PROFILES.get(tier)
    if profile is None:
        return None
    slug = _slug(specialty)
    first = profile.first_names[index % len(profile.first_names)]
    last = profile.surnames[index % len(profile.surnames)]
    domain = f"{slug}{profile.domain_suffix}.com"
    return Consultant(
        name=f"{profile.title}{first} {last}",
        firm=f"{specialty} {profile.firm_suffix}",
        specialty=f"{specialty}{profile.specialty_suffix}",
        email=f"{profile.mailbox}@{domain}",
        phone=f"+1 (555) {profile.phone_exchange + index}-{profile.phone_line + index * 100:04d}",
        website=f"www.{domain}",
        disciplines=[specialty, *profile.extra_disciplines],
    )


def consultants_for(divisions: Iterable[str], tier: int) -> List[Consultant]:
    """
    Recommended consultants for a tier, drawn from the specialties governing
    ``divisions``. Tier 1 yields up to 3 entries, tier 2 up to 4, tier 3 up to 5.
    """
    profile = _CONSULTANT_PROFILES.get(tier)
    if profile is None:
        logger.warning(f"No consultant profile for tier {tier!r}")
        return []
    specialties = resolve_specialties(divisions)[:profile.limit]
    return [consultant_for(tier, specialty, i) for i, specialty in enumerate(specialties)]


# ── Suppliers ─────────────────────────────────────────────────────────────────

def local_supplier(
    division: str, supplier_type: str, division_index: int, type_index: int, region: str
) -> Supplier:
    pool_index = (division_index + type_index) % len(_LOCAL_FIRST_NAMES)
    domain = f"{_slug(supplier_type)}{_slug(region)}.com"
    return Supplier(
        name=f"{_LOCAL_FIRST_NAMES[pool_index]} {_LOCAL_SURNAMES[pool_index]}",
        company=f"{region} {supplier_type}",
        location=region,
        material_types=[division],
        email=f"sales@{domain}",
        phone=f"+1 ({555 + division_index}) {200 + type_index}-{1000 + division_index * 100:04d}",
        website=f"www.{domain}",
        rating="local",
        specialties=[supplier_type, division],
    )


def national_supplier(division: str, index: int) -> Supplier:
    supplier_type = supplier_types_for(division)[0]
    domain = f"national{_slug(supplier_type)}.com"
    return Supplier(
        name=f"{_NATIONAL_FIRST_NAMES[index % 3]} {_NATIONAL_SURNAMES[index % 3]}",
        company=f"National {supplier_type} Solutions",
        location=NATIONAL_LOCATION,
        material_types=[division],
        email=f"info@{domain}",
        phone=f"+1 (800) {555 + index}-{1000 + index * 100:04d}",
        website=f"www.{domain}",
        rating="national",
        specialties=[supplier_type, "Premium Products", "Custom Solutions"],
    )


def suppliers_for(
    materials: Sequence[Material], location: Optional[ProjectLocation], tier: int
) -> List[Supplier]:
    """
    Local suppliers (up to two categories per division) followed by national
    suppliers when the tier is 2 or the materials span more than three divisions.
    """
    divisions = _unique(m.csi_division for m in materials)
    region = location.region if location is not None else DEFAULT_REGION

    suppliers = [
        local_supplier(division, supplier_type, div_idx, type_idx, region)
        for div_idx, division in enumerate(divisions)
        for type_idx, supplier_type in enumerate(
            supplier_types_for(division)[:MAX_SUPPLIER_TYPES_PER_DIVISION]
        )
    ]

    if tier == 2 or len(divisions) > NATIONAL_DIVISION_THRESHOLD:
        suppliers.extend(
            national_supplier(division, i)
            for i, division in enumerate(divisions[:MAX_NATIONAL_SUPPLIERS])
        )

    return suppliers
