"""
Taxonomy tables — static CSI MasterFormat lookups used to synthesize the
consultant and supplier appendices. Pure data, no logic.
"""

# ── CSI division name → consulting specialties ────────────────────────────────
DIVISION_SPECIALTIES: dict[str, list[str]] = {
    "Concrete": ["Structural Engineering", "Concrete Technology", "Materials Science"],
    "Masonry": ["Masonry Engineering", "Structural Engineering", "Historic Preservation"],
    "Metals": ["Structural Engineering", "Metallurgy", "Fabrication Engineering"],
    "Wood, Plastics, and Composites": ["Structural Engineering", "Wood Technology", "Composite Materials"],
    "Thermal and Moisture Protection": ["Building Envelope", "Moisture Control", "Energy Efficiency"],
    "Openings": ["Fenestration Engineering", "Building Envelope", "Daylighting Design"],
    "Finishes": ["Interior Design", "Acoustics", "Fire Safety Engineering"],
    "Specialties": ["Specialty Engineering", "Custom Fabrication", "Product Development"],
    "Special Construction": ["Specialty Engineering", "Innovation Consulting", "R&D"],
    "Fire Suppression": ["Fire Protection Engineering", "Life Safety", "Code Compliance"],
    "Plumbing": ["Plumbing Engineering", "Mechanical Engineering", "Water Systems"],
    "HVAC": ["Mechanical Engineering", "Energy Efficiency", "Indoor Air Quality"],
    "Electrical": ["Electrical Engineering", "Lighting Design", "Power Systems"],
    "Exterior Improvements": ["Landscape Architecture", "Site Engineering", "Hardscape Design"],
}
GENERIC_SPECIALTY = "General Consulting"


# ── CSI division name → supplier categories ───────────────────────────────────
DIVISION_SUPPLIER_TYPES: dict[str, list[str]] = {
    "Concrete": ["Ready-Mix Concrete", "Precast Concrete", "Concrete Products"],
    "Masonry": ["Brick & Block", "Stone Suppliers", "Masonry Products"],
    "Metals": ["Steel Fabricators", "Metal Suppliers", "Architectural Metals"],
    "Wood, Plastics, and Composites": ["Lumber Suppliers", "Composite Materials", "Engineered Wood"],
    "Thermal and Moisture Protection": ["Roofing Materials", "Insulation", "Waterproofing"],
    "Openings": ["Windows & Doors", "Glazing Systems", "Hardware"],
    "Finishes": ["Flooring", "Wall Finishes", "Ceiling Systems"],
    "Specialties": ["Custom Fabrication", "Specialty Products", "Architectural Elements"],
}
GENERIC_SUPPLIER_TYPE = "General Building Materials"


# ── Tier vocabulary ───────────────────────────────────────────────────────────
TIERS: tuple[int, ...] = (1, 2, 3)

# Division sub-section headings
TIER_HEADINGS: dict[int, str] = {
    1: "Tier 1: Readily Available",
    2: "Tier 2: Requires Customization",
    3: "Tier 3: Custom Development Required",
}

# Project summary count labels
TIER_SUMMARY_LABELS: dict[int, str] = {
    1: "Tier 1 (Readily Available)",
    2: "Tier 2 (Requires Customization)",
    3: "Tier 3 (Custom Development)",
}

# Summary-by-tier roll-up headings
TIER_ROLLUP_LABELS: dict[int, str] = {
    1: "Tier 1: Readily Available",
    2: "Tier 2: Requires Customization",
    3: "Tier 3: Custom Development",
}

TIER_COLOR_NAMES: dict[int, str] = {1: "Green", 2: "Yellow", 3: "Red"}

TIER_ADVICE: dict[int, str] = {
    1: "Tier 1 materials can proceed to specification immediately",
    2: "Tier 2 materials require consultation with manufacturers/fabricators",
    3: "Tier 3 materials need R&D phase or alternative solutions",
}

LOCATION_ADVICE: list[str] = [
    "Submit materials list to local building department for preliminary review",
    "Engage code consultant for jurisdiction-specific requirements",
]

CODE_COMPLIANCE_REQUIREMENTS: list[str] = [
    "Product approvals (ICC-ES reports, FM approvals, UL listings)",
    "Fire testing and ratings per ASTM standards",
    "Structural engineering stamps and calculations",
    "Special inspection requirements",
    "Local amendments and jurisdictional variations",
]
