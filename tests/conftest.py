"""Shared fixtures for the extraction tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from vue_i18n_extract.key_store import KeyStore
from vue_i18n_extract.script_rewriter import ScriptRewriter
from vue_i18n_extract.template_rewriter import TemplateRewriter


@pytest.fixture
def store() -> KeyStore:
    """Empty store with the increment strategy."""
    return KeyStore()


@pytest.fixture
def template_rewriter(store: KeyStore) -> TemplateRewriter:
    return TemplateRewriter(store)


@pytest.fixture
def script_rewriter(store: KeyStore) -> ScriptRewriter:
    return ScriptRewriter(store)


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative path: text}`` under tmp_path and return tmp_path."""

    def _write(files: dict[str, str]) -> Path:
        for rel, text in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(text.encode("utf-8"))
        return tmp_path

    return _write
