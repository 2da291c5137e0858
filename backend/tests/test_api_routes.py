"""
test_api_routes.py — HTTP-level tests for the report and log endpoints.

The app is exercised through starlette's TestClient. The report engine and
preview registry dependencies are overridden so previews land in tmp_path
and no state leaks between tests.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from specmate.api.report_routes import PreviewRegistry, get_preview_registry, get_report_engine
from specmate.main import app
from specmate.services.report_engine import PreviewHandle, ReportEngine

SCENARIO_PAYLOAD = {
    "imageUrls": [],
    "materials": [
        {
            "name": "Standing Seam Metal Roof",
            "description": "Interlocking metal roof panels.",
            "properties": ["Durable"],
            "tier": 1,
            "reasoning": "Stocked regionally.",
            "csiDivision": "Thermal and Moisture Protection",
            "csiNumber": "07",
        },
        {
            "name": "Photochromic Glass Panel",
            "description": "Glass that darkens in sunlight.",
            "properties": ["Adaptive"],
            "tier": 3,
            "reasoning": "No commercial supplier at facade scale.",
            "csiDivision": "Openings",
            "csiNumber": "08",
        },
    ],
    "timestamp": "2026-10-19T14:05:09Z",
    "includeSustainability": False,
    "includeAlternatives": False,
}


class _FailingRenderer:
    async def render(self, content):
        raise RuntimeError("canvas exploded")


@pytest.fixture
def registry():
    return PreviewRegistry()


@pytest.fixture
def client(tmp_path, registry):
    engine = ReportEngine(preview_dir=str(tmp_path / "previews"))
    app.dependency_overrides[get_report_engine] = lambda: engine
    app.dependency_overrides[get_preview_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()
    registry.release_all()


# ===========================================================================
# Class 1: Downloads
# ===========================================================================

class TestDownloads:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"
        assert resp.json()["product"] == "SpecMate"

    def test_markdown_download(self, client):
        resp = client.post("/api/reports/markdown", json=SCENARIO_PAYLOAD)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/markdown")
        assert 'filename="material-analysis-2026-10-19T14-05-09.txt"' in resp.headers["content-disposition"]
        assert resp.text.count("### Division 07") == 1
        assert "Tier 3 (Custom Development): 1 materials" in resp.text

    def test_pdf_download(self, client):
        resp = client.post("/api/reports/pdf", json=SCENARIO_PAYLOAD)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.content.startswith(b"%PDF")
        assert int(resp.headers["x-page-count"]) >= 1
        assert resp.headers["content-disposition"].startswith("attachment;")

    def test_snake_case_payload_accepted(self, client):
        payload = {
            "image_urls": [],
            "materials": [{
                "name": "Aluminium Storefront",
                "tier": 1,
                "csi_division": "Openings",
                "csi_number": "08",
            }],
            "timestamp": "2026-10-19T14:05:09Z",
        }
        assert client.post("/api/reports/markdown", json=payload).status_code == 200

    def test_invalid_tier_rejected(self, client):
        bad = {**SCENARIO_PAYLOAD, "materials": [{**SCENARIO_PAYLOAD["materials"][0], "tier": 4}]}
        assert client.post("/api/reports/markdown", json=bad).status_code == 422

    def test_pdf_failure_returns_500(self, client, tmp_path):
        app.dependency_overrides[get_report_engine] = lambda: ReportEngine(
            preview_dir=str(tmp_path), renderer=_FailingRenderer()
        )
        resp = client.post("/api/reports/pdf", json=SCENARIO_PAYLOAD)
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Report generation failed"

    def test_request_id_header(self, client):
        resp = client.get("/health")
        assert resp.headers.get("x-request-id")


# ===========================================================================
# Class 2: Previews
# ===========================================================================

class TestPreviews:

    def test_preview_lifecycle(self, client, registry):
        created = client.post("/api/reports/preview", json=SCENARIO_PAYLOAD)
        assert created.status_code == 200
        body = created.json()
        assert body["filename"].endswith(".pdf")
        assert len(registry) == 1

        shown = client.get(body["url"])
        assert shown.status_code == 200
        assert shown.content.startswith(b"%PDF")
        assert shown.headers["content-disposition"].startswith("inline;")

        released = client.delete(body["url"])
        assert released.json() == {"status": "released", "preview_id": body["preview_id"]}
        assert len(registry) == 0
        assert client.get(body["url"]).status_code == 404

    def test_unknown_preview(self, client):
        assert client.get("/api/reports/preview/nope").status_code == 404
        assert client.delete("/api/reports/preview/nope").status_code == 404

    def test_preview_staging_failure_returns_503(self, client, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        app.dependency_overrides[get_report_engine] = lambda: ReportEngine(
            preview_dir=str(blocker / "previews")
        )
        resp = client.post("/api/reports/preview", json=SCENARIO_PAYLOAD)
        assert resp.status_code == 503

    def test_preview_generation_failure_returns_500(self, client, tmp_path):
        app.dependency_overrides[get_report_engine] = lambda: ReportEngine(
            preview_dir=str(tmp_path), renderer=_FailingRenderer()
        )
        assert client.post("/api/reports/preview", json=SCENARIO_PAYLOAD).status_code == 500


# ===========================================================================
# Class 3: Report generation log
# ===========================================================================

class TestReportLog:

    def test_log_report(self, client):
        resp = client.post("/api/logs/report", json={"logId": "abc123", "format": "both"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": "Report generation logged"}

    def test_missing_fields(self, client):
        resp = client.post("/api/logs/report", json={"format": "pdf"})
        assert resp.status_code == 400

    def test_unknown_format_rejected(self, client):
        resp = client.post("/api/logs/report", json={"logId": "abc123", "format": "docx"})
        assert resp.status_code == 422


# ===========================================================================
# Class 4: Request tracing
# ===========================================================================

class TestRequestTracing:

    def test_report_log_line_carries_response_request_id(self, client, caplog):
        caplog.set_level(logging.INFO, logger="specmate-report-routes")
        resp = client.post("/api/reports/markdown", json=SCENARIO_PAYLOAD)
        request_id = resp.headers["x-request-id"]
        records = [r for r in caplog.records if r.name == "specmate-report-routes"]
        assert records
        assert all(r.request_id == request_id for r in records)
        assert records[-1].report_format == "markdown"

    def test_pdf_log_line_carries_request_id(self, client, caplog):
        caplog.set_level(logging.INFO, logger="specmate-report-routes")
        resp = client.post("/api/reports/pdf", json=SCENARIO_PAYLOAD)
        served = [r for r in caplog.records
                  if r.name == "specmate-report-routes" and r.getMessage().startswith("PDF report served")]
        assert len(served) == 1
        assert served[0].request_id == resp.headers["x-request-id"]
        assert served[0].report_format == "pdf"

    def test_client_request_id_reused(self, client, caplog):
        caplog.set_level(logging.INFO, logger="specmate-log-routes")
        resp = client.post(
            "/api/logs/report",
            json={"logId": "abc123", "format": "pdf"},
            headers={"X-Request-ID": "client-trace-0001"},
        )
        assert resp.headers["x-request-id"] == "client-trace-0001"
        (record,) = [r for r in caplog.records if r.name == "specmate-log-routes"]
        assert record.request_id == "client-trace-0001"
        assert record.log_id == "abc123"

    def test_malformed_client_request_id_replaced(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "not valid; injected"})
        assert resp.headers["x-request-id"] != "not valid; injected"
        assert len(resp.headers["x-request-id"]) == 32


# ===========================================================================
# Class 5: Preview registry bounds
# ===========================================================================

def _handle(tmp_path, name):
    path = tmp_path / f"{name}.pdf"
    path.write_bytes(b"%PDF-1.4 stub")
    return PreviewHandle(str(path), f"{name}.pdf", 1)


class TestPreviewRegistryBounds:

    def test_oldest_released_when_limit_exceeded(self, tmp_path):
        registry = PreviewRegistry(max_open=2, ttl_seconds=3600)
        first, second, third = (_handle(tmp_path, n) for n in ("a", "b", "c"))
        for handle in (first, second, third):
            registry.add(handle)
        assert len(registry) == 2
        assert first.released
        assert not (tmp_path / "a.pdf").exists()
        assert registry.get(first.preview_id) is None
        assert registry.get(third.preview_id) is third

    def test_expired_previews_released(self, tmp_path):
        registry = PreviewRegistry(max_open=10, ttl_seconds=60)
        stale, fresh = _handle(tmp_path, "stale"), _handle(tmp_path, "fresh")
        fresh.created_at = stale.created_at + 30
        registry.add(stale)
        registry.add(fresh)
        assert registry.prune(now=stale.created_at + 61) == 1
        assert stale.released
        assert not (tmp_path / "stale.pdf").exists()
        assert len(registry) == 1
        assert not fresh.released
        assert (tmp_path / "fresh.pdf").exists()

    def test_expired_preview_returns_404(self, client, registry):
        created = client.post("/api/reports/preview", json=SCENARIO_PAYLOAD).json()
        registry.get(created["preview_id"]).created_at -= registry.ttl_seconds + 1
        assert client.get(created["url"]).status_code == 404
        assert len(registry) == 0
