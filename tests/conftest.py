"""
Shared fixtures for the PDF service tests.
"""

import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pdf_service import webapi
from pdf_service.conversion import ConversionService, RendererError
from pdf_service.conversion.adapters import LocalStaging

PDF_HEADER = b"%PDF-1.4\n"


class FakeRenderer:
    """Stands in for Chromium: the 'PDF' is a PDF header followed by the staged HTML."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.calls: list[tuple[Path, Path, str | None]] = []

    def render(self, input_path: Path, output_path: Path, title: str | None = None) -> bytes:
        self.calls.append((input_path, output_path, title))
        html = input_path.read_bytes()
        if self.delay:
            time.sleep(self.delay)
        output_path.write_bytes(PDF_HEADER + html)
        return output_path.read_bytes()


class FailingRenderer:
    def __init__(self, output: str = "[0101/000000.000:ERROR] cannot open display") -> None:
        self.output = output

    def render(self, input_path: Path, output_path: Path, title: str | None = None) -> bytes:
        # leave a partial output behind, as a crashing browser might
        output_path.write_bytes(b"%PDF-partial")
        raise RendererError(f"chromium failed: exit status 1, output: {self.output}", output=self.output)


@pytest.fixture
def staging_dir(tmp_path):
    d = tmp_path / "staging"
    d.mkdir()
    return d


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def service(staging_dir, fake_renderer):
    return ConversionService(LocalStaging(str(staging_dir)), fake_renderer, max_concurrent=2, queue_timeout=1.0)


@pytest.fixture
def client(monkeypatch, service):
    """Test client whose app is wired to the fake-renderer service."""
    monkeypatch.setattr(webapi, "SERVICE", service)
    return TestClient(webapi.app)
