"""
test_report_engine.py — Unit tests for the ReportEngine entry point.

Tests cover:
  - Filenames derived from the analysis timestamp
  - Markdown and PDF documents
  - Error mapping: renderer failure → ReportGenerationError,
    staging failure → PreviewUnavailableError
  - Preview handle lifecycle (read, release, context manager)
"""

import asyncio
import os

import pytest

from specmate.services.report_engine import (
    PreviewUnavailableError,
    ReportEngine,
    ReportError,
    ReportGenerationError,
)


class _FailingRenderer:
    async def render(self, content):
        raise RuntimeError("canvas exploded")


# ===========================================================================
# Class 1: Documents
# ===========================================================================

class TestDocuments:

    def test_filenames(self, report_engine, scenario_analysis):
        assert report_engine.filename_for(scenario_analysis, "pdf") == "material-analysis-2026-10-19T14-05-09.pdf"
        assert report_engine.filename_for(scenario_analysis, "txt") == "material-analysis-2026-10-19T14-05-09.txt"

    def test_markdown(self, report_engine, scenario_analysis):
        report = report_engine.build_markdown(scenario_analysis)
        assert report.startswith("# Material Feasibility Analysis Report")

    def test_pdf_document(self, report_engine, full_analysis):
        document = asyncio.run(report_engine.build_document(full_analysis))
        assert document.content.startswith(b"%PDF")
        assert document.filename == "material-analysis-2026-10-19T14-05-09.pdf"
        assert document.media_type == "application/pdf"
        assert document.page_count >= 2

    def test_renderer_failure_maps_to_generation_error(self, tmp_path, scenario_analysis):
        engine = ReportEngine(preview_dir=str(tmp_path), renderer=_FailingRenderer())
        with pytest.raises(ReportGenerationError) as exc_info:
            asyncio.run(engine.build_document(scenario_analysis))
        assert str(exc_info.value) == "Report generation failed"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_error_hierarchy(self):
        assert issubclass(ReportGenerationError, ReportError)
        assert issubclass(PreviewUnavailableError, ReportError)


# ===========================================================================
# Class 2: Preview handles
# ===========================================================================

class TestPreviewHandle:

    def test_handle_written_to_preview_dir(self, report_engine, scenario_analysis):
        handle = asyncio.run(report_engine.build_preview_handle(scenario_analysis))
        assert os.path.dirname(handle.path) == report_engine.preview_dir
        assert handle.read_bytes().startswith(b"%PDF")
        assert handle.filename.endswith(".pdf")
        assert handle.page_count >= 1
        handle.release()

    def test_release_removes_file(self, report_engine, scenario_analysis):
        handle = asyncio.run(report_engine.build_preview_handle(scenario_analysis))
        handle.release()
        assert handle.released
        assert not os.path.exists(handle.path)
        with pytest.raises(PreviewUnavailableError):
            handle.read_bytes()

    def test_release_twice_is_harmless(self, report_engine, scenario_analysis):
        handle = asyncio.run(report_engine.build_preview_handle(scenario_analysis))
        handle.release()
        handle.release()
        assert handle.released

    def test_context_manager_releases(self, report_engine, scenario_analysis):
        with asyncio.run(report_engine.build_preview_handle(scenario_analysis)) as handle:
            path = handle.path
            assert os.path.exists(path)
        assert not os.path.exists(path)

    def test_handles_are_independent(self, report_engine, scenario_analysis):
        first = asyncio.run(report_engine.build_preview_handle(scenario_analysis))
        second = asyncio.run(report_engine.build_preview_handle(scenario_analysis))
        assert first.preview_id != second.preview_id
        assert first.path != second.path
        first.release()
        assert os.path.exists(second.path)
        second.release()

    def test_unwritable_preview_dir(self, tmp_path, scenario_analysis):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        engine = ReportEngine(preview_dir=str(blocker / "previews"))
        with pytest.raises(PreviewUnavailableError):
            asyncio.run(engine.build_preview_handle(scenario_analysis))

    def test_generation_failure_not_masked_as_preview_error(self, tmp_path, scenario_analysis):
        engine = ReportEngine(preview_dir=str(tmp_path), renderer=_FailingRenderer())
        with pytest.raises(ReportGenerationError):
            asyncio.run(engine.build_preview_handle(scenario_analysis))
