"""Markdown Renderer — flowing text rendition of a ReportContent."""
from typing import List

from specmate.models.analysis import Material
from specmate.services.entity_generator import Consultant, Supplier
from specmate.services.grouping_engine import ReportContent
from specmate.services.taxonomy import (
    CODE_COMPLIANCE_REQUIREMENTS,
    TIER_HEADINGS,
    TIER_SUMMARY_LABELS,
    TIERS,
)

CONSULTANTS_INTRO = (
    "The following consultants are recommended for the disciplines governing "
    "the identified materials in this analysis."
)
SUPPLIERS_INTRO = (
    "The following suppliers are recommended for Tier 1 and Tier 2 materials. "
    "Suppliers are prioritized by proximity to the project location, with national "
    "suppliers listed when local options are limited."
)
NATIONAL_INTRO = (
    "The following national suppliers offer high-quality products and may provide "
    "better options when local suppliers are limited:"
)
NO_LOCAL_SUPPLIERS = "No local suppliers found. Consider national suppliers listed below."
COMPLIANCE_NOTICE = (
    "Review all materials with local building officials and code consultants before "
    "specifying. Code requirements vary by jurisdiction and project type."
)
ALTERNATIVES_NOTE = "Consider the suggested alternatives for cost, schedule, or performance optimization."

RULE = "---\n\n"


def _material_section(content: ReportContent, material: Material) -> str:
    out = [f"##### {material.name}\n"]
    out.append(f"- **CSI Division:** {material.division_key}\n")
    out.append(f"- **Description:** {material.description}\n")
    out.append("- **Properties:**\n")
    out.extend(f"  - {prop}\n" for prop in material.properties)
    out.append(f"- **Feasibility Notes:** {material.reasoning}\n")

    sustainability = content.sustainability_for(material)
    if sustainability:
        out.append(f"- **Sustainability Notes:** {sustainability}\n")

    compliance = content.code_compliance_for(material)
    if compliance:
        out.append(f"- **Code Compliance:** {compliance}\n")

    alternatives = content.alternatives_for(material)
    if alternatives:
        out.append("- **Alternative Materials:**\n")
        for i, alt in enumerate(alternatives, 1):
            out.append(f"  {i}. **{alt.name}**\n")
            out.append(f"     - Description: {alt.description}\n")
            out.append(f"     - Tradeoffs: {alt.tradeoffs}\n")

    out.append("\n")
    return "".join(out)


def _consultant_entry(consultant: Consultant) -> str:
    entry = f"#### {consultant.name}\n"
    entry += f"- **Firm:** {consultant.firm}\n"
    entry += f"- **Specialty:** {consultant.specialty}\n"
    entry += f"- **Email:** {consultant.email}\n"
    entry += f"- **Phone:** {consultant.phone}\n"
    if consultant.website:
        entry += f"- **Website:** {consultant.website}\n"
    entry += f"- **Disciplines:** {', '.join(consultant.disciplines)}\n\n"
    return entry


def _supplier_entry(supplier: Supplier) -> str:
    entry = f"#### {supplier.name}\n"
    entry += f"- **Company:** {supplier.company}\n"
    entry += f"- **Location:** {supplier.location_label}\n"
    entry += f"- **Material Types:** {', '.join(supplier.material_types)}\n"
    entry += f"- **Specialties:** {', '.join(supplier.specialties)}\n"
    entry += f"- **Email:** {supplier.email}\n"
    entry += f"- **Phone:** {supplier.phone}\n"
    if supplier.website:
        entry += f"- **Website:** {supplier.website}\n"
    entry += "\n"
    return entry


def render_markdown(content: ReportContent) -> str:
    """Render the report as Markdown. Identical content yields identical bytes."""
    parts: List[str] = [f"# {content.title}\n\n"]
    parts.append(f"**Generated:** {content.generated_label}\n")
    if content.image_count > 1:
        parts.append(f"**Images Analyzed:** {content.image_count}\n")
    parts.append("\n")

    # Brief
    if content.has_brief:
        parts.append("## Project Brief\n\n")
        if content.brief_intent:
            parts.append(f"**Project Intent & Constraints:**\n{content.brief_intent}\n\n")
        else:
            parts.append(f"**Brief Summary:**\n{content.brief_text}\n\n")
        parts.append(RULE)

    # Location
    location = content.location
    if location is not None:
        parts.append("## Project Location\n\n")
        parts.append(f"**Project Location:** {location.input}\n")
        if location.jurisdiction:
            parts.append(f"**Jurisdiction:** {location.jurisdiction}\n")
        if location.building_code:
            parts.append(f"**Building Code:** {location.building_code}\n")
        parts.append("\n")

    # Counts
    parts.append("## Project Summary\n\n")
    parts.append(f"- Total materials identified: {content.total_materials}\n")
    for tier in TIERS:
        parts.append(f"- {TIER_SUMMARY_LABELS[tier]}: {content.tier_counts[tier]} materials\n")
    parts.append("\n")
    parts.append(RULE)

    # Divisions
    parts.append("## Materials Analysis by CSI MasterFormat Division\n\n")
    for group in content.divisions:
        parts.append(f"### {group.heading}\n\n")
        for tier, bucket in group.non_empty_tiers():
            parts.append(f"#### {TIER_HEADINGS[tier]}\n\n")
            parts.extend(_material_section(content, m) for m in bucket)
        parts.append("\n")

    # Roll-up
    parts.append(RULE)
    parts.append("## Summary by Tier\n\n")
    for rollup in content.rollups:
        parts.append(f"### {rollup.heading}\n")
        for key, names in rollup.by_division:
            parts.append(f"- {key}: {', '.join(names)}\n")
        parts.append("\n")

    # Building code compliance
    if location is not None:
        parts.append(RULE)
        parts.append("## Building Code Compliance Summary\n\n")
        parts.append(f"**Project Location:** {location.input}\n")
        if location.jurisdiction:
            parts.append(f"**Jurisdiction:** {location.jurisdiction}\n")
        if location.building_code:
            parts.append(f"**Applicable Codes:** {location.building_code}\n")
        parts.append("\n### Code Compliance by Material\n\n")
        parts.append("Materials are subject to local building codes and may require:\n")
        parts.extend(f"- {req}\n" for req in CODE_COMPLIANCE_REQUIREMENTS)
        parts.append(f"\n**Important:** {COMPLIANCE_NOTICE}\n\n")

    # Recommendations
    parts.append(RULE)
    parts.append("## Recommendations\n\n")
    parts.append("**Next Steps:**\n")
    parts.extend(f"- {line}\n" for line in content.recommendations)
    parts.append("\n")
    if content.include_alternatives:
        parts.append(f"**Alternative Materials:**\n{ALTERNATIVES_NOTE}\n\n")

    # Consultants appendix
    parts.append(RULE)
    parts.append("## Appendix: Elite Consultants by Tier\n\n")
    parts.append(f"{CONSULTANTS_INTRO}\n\n")
    for section in content.consultant_sections:
        parts.append(f"### {section.heading}\n\n")
        parts.extend(_consultant_entry(c) for c in section.consultants)
        parts.append("\n")

    # Suppliers appendix
    appendix = content.supplier_appendix
    if appendix is not None:
        parts.append(RULE)
        parts.append("## Appendix: Material Suppliers by Tier\n\n")
        parts.append(f"{SUPPLIERS_INTRO}\n\n")
        for section in appendix.sections:
            parts.append(f"### {section.heading}\n\n")
            if section.suppliers:
                parts.extend(_supplier_entry(s) for s in section.suppliers)
            else:
                parts.append(f"*{NO_LOCAL_SUPPLIERS}*\n\n")
            parts.append("\n")
        if appendix.national:
            parts.append("### National Suppliers (High-Quality Options)\n\n")
            parts.append(f"{NATIONAL_INTRO}\n\n")
            parts.extend(_supplier_entry(s) for s in appendix.national)
            parts.append("\n")

    parts.append(f"**Report generated by {content.product_name}**\n")
    return "".join(parts)
