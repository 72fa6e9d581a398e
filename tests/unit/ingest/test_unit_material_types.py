# tests/unit/ingest/test_unit_material_types.py — v1
"""Tests for ingest/material_types.py — type inference."""

from __future__ import annotations

import pytest

from matingest.ingest.material_types import type_from_extension, type_from_filename, type_from_url


class TestTypeFromFilename:
    @pytest.mark.parametrize("name,expected", [
        ("notes.pdf", "pdf"),
        ("essay.DOCX", "docs"),
        ("deck.pptx", "ppt"),
        ("grades.xlsx", "excel"),
        ("photo.jpeg", "image"),
        ("lecture.mp4", "video"),
        ("archive.zip", "other"),
        ("README", "other"),
    ])
    def test_extensions(self, name, expected):
        assert type_from_filename(name) == expected

    def test_extension_with_dot(self):
        assert type_from_extension(".csv") == "excel"

    def test_none(self):
        assert type_from_extension(None) == "other"


class TestTypeFromUrl:
    @pytest.mark.parametrize("url,expected", [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "youtube"),
        ("https://youtu.be/dQw4w9WgXcQ", "youtube"),
        ("https://drive.google.com/file/d/abc/view", "gdrive"),
        ("https://docs.google.com/document/d/abc/edit", "gdrive"),
        ("https://vimeo.com/12345", "video"),
        ("https://en.wikipedia.org/wiki/Python", "article"),
        ("https://medium.com/@me/post", "article"),
        ("https://example.com/files/syllabus.pdf", "pdf"),
        ("https://example.com/", "other"),
    ])
    def test_hosts(self, url, expected):
        assert type_from_url(url) == expected
