"""Unit tests for modules/og_image.py"""

import subprocess
from pathlib import Path

import pytest

from mdsocial.core.errors import ProcessingError
from mdsocial.core.models import load_document
from mdsocial.modules import og_image
from mdsocial.modules.og_image import OgImageProcessor


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


@pytest.fixture(name="background")
def background_fixture(tmp_path):
    p = tmp_path / "bg.png"
    p.write_bytes(PNG_BYTES)
    return p


@pytest.fixture(name="fake_resvg")
def fake_resvg_fixture(monkeypatch):
    """Pretend resvg is installed; record calls and write the PNG it would produce."""
    calls = []
    monkeypatch.setattr(og_image.shutil, "which", lambda name: f"/usr/bin/{name}")

    def _run(cmd, **kwargs):
        calls.append(cmd)
        Path(cmd[2]).write_bytes(PNG_BYTES)
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(og_image.subprocess, "run", _run)
    return calls


@pytest.fixture(name="doc")
def doc_fixture(write_doc, tmp_path):
    path = write_doc("posts/hello.md", "---\ntitle: Tom & Jerry\ndate: 2024-01-01T00:00:00Z\n---\nBody\n")
    return load_document(path, tmp_path)


def test_disabled_without_resvg(monkeypatch, background, doc, tmp_path):
    """A missing resvg disables the processor; process() is then a no-op."""
    monkeypatch.setattr(og_image.shutil, "which", lambda name: None)
    proc = OgImageProcessor(background)
    assert proc.disabled
    proc.process(doc)
    assert not doc.dirty
    assert not (tmp_path / "posts" / "hello.svg").exists()


def test_disabled_without_background(fake_resvg, doc):
    proc = OgImageProcessor("")
    assert proc.disabled
    proc.process(doc)
    assert fake_resvg == []
    assert not doc.dirty


def test_render_escapes_and_embeds(fake_resvg, background, doc):
    """The card carries the escaped title, the date, and the background as a data URI."""
    svg = OgImageProcessor(background).render(doc)
    assert "Tom &amp; Jerry" in svg
    assert "2024-01-01" in svg
    assert "data:image/png;base64," in svg
    assert 'width="1200"' in svg


def test_process_writes_card_and_records_path(fake_resvg, background, doc, tmp_path):
    proc = OgImageProcessor(background)
    proc.process(doc)

    svg_path = tmp_path / "posts" / "hello.svg"
    png_path = tmp_path / "posts" / "hello.png"
    assert svg_path.exists() and png_path.exists()
    assert fake_resvg == [["/usr/bin/resvg", str(svg_path), str(png_path)]]
    assert doc.metadata["ogImage"] == "posts/hello.png"
    assert doc.dirty


def test_process_idempotent_without_overwrite(fake_resvg, background, doc):
    """An existing card is left alone unless overwrite is set."""
    proc = OgImageProcessor(background)
    proc.process(doc)
    doc.dirty = False
    proc.process(doc)
    assert len(fake_resvg) == 1
    assert not doc.dirty


def test_process_overwrite_regenerates_without_dirtying(fake_resvg, background, doc):
    """With overwrite the card is rebuilt, but an unchanged key does not dirty the document."""
    proc = OgImageProcessor(background, overwrite=True)
    proc.process(doc)
    doc.dirty = False
    proc.process(doc)
    assert len(fake_resvg) == 2
    assert not doc.dirty


def test_custom_key(fake_resvg, background, doc):
    OgImageProcessor(background, key="image").process(doc)
    assert doc.metadata["image"] == "posts/hello.png"


def test_resvg_failure_raises(monkeypatch, fake_resvg, background, doc):
    def _fail(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, output="", stderr="bad svg")

    monkeypatch.setattr(og_image.subprocess, "run", _fail)
    with pytest.raises(ProcessingError, match="bad svg"):
        OgImageProcessor(background).process(doc)
    assert "ogImage" not in doc.metadata


def test_missing_background_file_raises(fake_resvg, doc, tmp_path):
    with pytest.raises(ProcessingError, match="background"):
        OgImageProcessor(tmp_path / "missing.png").process(doc)
