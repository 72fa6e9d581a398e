# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides settings without .env and generated files on disk. No network
access: every HTTP collaborator is served by httpx.MockTransport (see
helpers.mock_client).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from helpers import make_pdf
from matingest.config.settings import Settings
from matingest.logging.context import clear_context


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def pdf_file(tmp_path: Path) -> Path:
    """A 3-page PDF on disk."""
    return make_pdf(tmp_path / "lecture_notes-week1.pdf", pages=3)


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "reading-list.txt"
    path.write_text("chapter one\nchapter two\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_log_context():
    yield
    clear_context()
