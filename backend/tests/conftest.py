"""
conftest.py — Shared pytest fixtures for the SpecMate report service test suite.

No network or external service fixtures are defined here. Analyses are built
in memory; PDF output goes to pytest's tmp_path.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``specmate.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import base64
import io
import os
import sys

import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any specmate imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


TIMESTAMP = "2026-10-19T14:05:09Z"


# ---------------------------------------------------------------------------
# Material / analysis builders
# ---------------------------------------------------------------------------

@pytest.fixture
def make_material():
    """
    Factory for Material models with sensible defaults.

    Usage: make_material("Brick Veneer", tier=1, csi_number="04", csi_division="Masonry")
    """
    from specmate.models.analysis import Material

    def _make(name, tier=1, csi_number="08", csi_division="Openings", **overrides):
        data = {
            "name": name,
            "description": f"{name} description.",
            "properties": ["Durable", "Low maintenance"],
            "tier": tier,
            "reasoning": f"{name} feasibility reasoning.",
            "csi_division": csi_division,
            "csi_number": csi_number,
        }
        data.update(overrides)
        return Material(**data)

    return _make


@pytest.fixture
def make_analysis():
    """Factory for Analysis models; materials are required, everything else optional."""
    from specmate.models.analysis import Analysis

    def _make(materials, **overrides):
        data = {
            "image_urls": [],
            "materials": materials,
            "timestamp": TIMESTAMP,
            "include_sustainability": False,
            "include_alternatives": False,
        }
        data.update(overrides)
        return Analysis(**data)

    return _make


@pytest.fixture
def location():
    from specmate.models.analysis import ProjectLocation
    return ProjectLocation(
        input="350 5th Ave, New York",
        coordinates={"lat": 40.7484, "lng": -73.9857},
        jurisdiction="New York, NY, USA",
        building_code="IBC 2021",
    )


@pytest.fixture
def png_data_url():
    """A real 40×30 PNG encoded as a data URL."""
    from PIL import Image
    buf = io.BytesIO()
    Image.new("RGB", (40, 30), (180, 120, 60)).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def scenario_analysis(make_material, make_analysis):
    """
    Two materials, no location, no brief, both flags off:
      - Standing Seam Metal Roof (tier 1, Division 07)
      - Photochromic Glass Panel (tier 3, Division 08)
    """
    return make_analysis([
        make_material("Standing Seam Metal Roof", tier=1, csi_number="07",
                      csi_division="Thermal and Moisture Protection"),
        make_material("Photochromic Glass Panel", tier=3, csi_number="08",
                      csi_division="Openings"),
    ])


@pytest.fixture
def full_analysis(make_material, make_analysis, location, png_data_url):
    """
    Mixed-tier analysis across four divisions with location, brief, both flags
    enabled, two images and alternatives / sustainability / compliance data.
    """
    from specmate.models.analysis import Alternative, ProjectBrief

    alternatives = [
        Alternative(name="Fibre Cement Panel", description="Rainscreen panel.",
                    tradeoffs="Lower cost, heavier."),
        Alternative(name="Terracotta Baguette", description="Extruded clay.",
                    tradeoffs="Longer lead time."),
    ]
    materials = [
        make_material("Glass Curtain Wall", tier=2, csi_number="08", csi_division="Openings",
                      sustainability_notes="Low-e coating reduces cooling load.",
                      code_compliance="Meets IECC fenestration U-factor limits.",
                      alternatives=alternatives),
        make_material("Cast-in-Place Concrete", tier=1, csi_number="03", csi_division="Concrete",
                      sustainability_notes="30% fly-ash replacement."),
        make_material("Living Moss Facade", tier=3, csi_number="32",
                      csi_division="Exterior Improvements"),
        make_material("Aluminium Storefront", tier=1, csi_number="08", csi_division="Openings"),
        make_material("Weathering Steel Screen", tier=2, csi_number="05", csi_division="Metals",
                      code_compliance="Structural calcs required."),
    ]
    return make_analysis(
        materials,
        image_urls=[png_data_url, png_data_url],
        include_sustainability=True,
        include_alternatives=True,
        location=location,
        brief=ProjectBrief(
            text="Mixed-use podium with a green facade.",
            intent="**Project Type:** Mixed-use\n**Budget:** Moderate\n- Prioritise local sourcing",
        ),
    )


@pytest.fixture
def report_engine(tmp_path):
    """ReportEngine staging previews under pytest's tmp_path."""
    from specmate.services.report_engine import ReportEngine
    return ReportEngine(preview_dir=str(tmp_path / "previews"))


# ---------------------------------------------------------------------------
# Output parsing helpers
# ---------------------------------------------------------------------------

def markdown_triples(markdown: str):
    """(division heading, tier, material name) triples from the Markdown body."""
    triples = []
    division = tier = None
    in_body = False
    for line in markdown.splitlines():
        if line.startswith("## "):
            in_body = line == "## Materials Analysis by CSI MasterFormat Division"
            continue
        if not in_body:
            continue
        if line.startswith("### Division "):
            division = line[len("### "):]
        elif line.startswith("#### Tier "):
            tier = int(line[len("#### Tier ")])
        elif line.startswith("##### "):
            triples.append((division, tier, line[len("##### "):]))
    return triples


def pdf_triples(trace):
    """Same triples, read from the PDF writer trace (wrapped lines re-joined)."""
    blocks = []
    for entry in trace:
        if blocks and blocks[-1][0] == entry.style and entry.style in ("division", "material", "tier"):
            blocks[-1] = (entry.style, f"{blocks[-1][1]} {entry.text}")
        else:
            blocks.append((entry.style, entry.text))

    triples = []
    division = tier = None
    for style, text in blocks:
        if style == "division":
            division = text
        elif style == "tier":
            tier = int(text[len("Tier ")])
        elif style == "material":
            triples.append((division, tier, text))
    return triples


@pytest.fixture
def triples_from():
    """Expose the parsing helpers to test modules as a fixture."""
    return {"markdown": markdown_triples, "pdf": pdf_triples}
