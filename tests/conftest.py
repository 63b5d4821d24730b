"""Root test configuration: shared document-writing fixture and env isolation"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_env(tmp_path, monkeypatch):
    """Run from a clean tmp directory with no MDSOCIAL_* variables leaking in."""
    for name in list(os.environ):
        if name.startswith("MDSOCIAL_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(name="write_doc")
def write_doc_fixture(tmp_path):
    """Write UTF-8 text to a path relative to tmp_path and return the Path."""
    def _write(rel: str, text: str):
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(text.encode("utf-8"))
        return p
    return _write
