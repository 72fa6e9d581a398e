# tests/unit/ingest/test_unit_parser.py — v1
"""Tests for ingest/parser.py — delimited link lists and file selections."""

from __future__ import annotations

import pytest

from matingest.config.settings import Settings
from matingest.core.models import LOADING_TITLE
from matingest.ingest.parser import (
    BatchParser,
    detect_delimiter,
    file_handle,
    file_handle_from_bytes,
    pick_title_and_url,
    split_fields,
    split_lines,
)


def _structure(report):
    """Item fields that must be identical across parses (ids excluded)."""
    return [
        (i.title, i.locator, i.detected_type, i.material_type, i.fallback_title)
        for i in report.items
    ]


class TestHelpers:
    def test_split_lines_drops_blanks(self):
        assert split_lines("a\r\n\n  b  \n\t\n") == ["a", "b"]

    @pytest.mark.parametrize("line,expected", [
        ("Intro\thttps://a.org", "\t"),
        ("Intro;https://a.org", ";"),
        ("Intro,https://a.org", ","),
        ("https://a.org", ","),
    ])
    def test_detect_delimiter(self, line, expected):
        assert detect_delimiter(line) == expected

    def test_split_fields_quoted(self):
        assert split_fields('"Intro, part 1", https://a.org', ",") == ["Intro, part 1", "https://a.org"]

    def test_split_fields_trailing_empty(self):
        assert split_fields("https://a.org,,", ",") == ["https://a.org"]

    def test_pick_single_field(self):
        assert pick_title_and_url(["https://a.org"]) == ("", "https://a.org")

    def test_pick_url_first(self):
        assert pick_title_and_url(["https://a.org", "Intro"]) == ("Intro", "https://a.org")

    def test_pick_title_first(self):
        assert pick_title_and_url(["Intro", "https://a.org"]) == ("Intro", "https://a.org")

    def test_pick_neither_looks_like_link(self):
        assert pick_title_and_url(["Intro", "Outro"]) == ("Intro", "Outro")

    def test_pick_extra_fields_fold_into_title(self):
        title, url = pick_title_and_url(["Week 1", "Intro", "https://a.org"])
        assert (title, url) == ("Week 1, Intro", "https://a.org")


class TestParseLinks:
    def test_spec_scenario(self):
        text = "Intro,https://youtu.be/abc12345678\nhttps://drive.google.com/drive/folders/F1"
        report = BatchParser().parse_links(text)
        assert report.accepted_count == 2
        assert report.rejected_count == 0
        first, second = report.items
        assert first.title == "Intro"
        assert first.detected_type == "video-embed"
        assert second.title == LOADING_TITLE
        assert second.detected_type == "cloud-folder"

    def test_empty_text(self):
        report = BatchParser().parse_links("   \n\n")
        assert report.accepted_count == 0
        assert report.rejected_count == 0

    def test_header_rejected(self):
        report = BatchParser().parse_links("Title,URL\nIntro,https://a.org")
        assert report.accepted_count == 1
        assert report.rejected[0].reason == "header"

    def test_tab_and_semicolon(self):
        tab = BatchParser().parse_links("Intro\thttps://a.org\nOutro\thttps://b.org")
        semi = BatchParser().parse_links("Intro;https://a.org")
        assert [i.title for i in tab.items] == ["Intro", "Outro"]
        assert semi.items[0].locator == "https://a.org"

    def test_url_without_scheme(self):
        report = BatchParser().parse_links("Notes,example.com/notes")
        assert report.items[0].locator == "https://example.com/notes"

    def test_empty_url_line_rejected(self):
        report = BatchParser().parse_links('Intro,https://a.org\n"",""')
        assert report.accepted_count == 1
        assert report.rejected[0].reason == "empty_url"

    def test_order_preserved(self):
        urls = [f"https://example.com/{n}" for n in range(5)]
        report = BatchParser().parse_links("\n".join(urls))
        assert [i.locator for i in report.items] == urls

    def test_cap_exceeded(self):
        text = "\n".join(f"https://example.com/{n}" for n in range(60))
        report = BatchParser().parse_links(text)
        assert report.accepted_count == 50
        assert report.rejected_count == 10
        assert all(r.reason == "over_limit" for r in report.rejected)

    def test_cap_counts_existing_items(self):
        parser = BatchParser(Settings(_env_file=None, max_batch_links=5))
        report = parser.parse_links("https://a.org\nhttps://b.org\nhttps://c.org", existing_count=4)
        assert report.accepted_count == 1
        assert report.rejected_count == 2

    def test_deterministic(self):
        text = "Intro,https://youtu.be/abc12345678\nexample.com/a.pdf\nhttps://drive.google.com/file/d/X/view"
        parser = BatchParser()
        first = parser.parse_links(text)
        second = parser.parse_links(text)
        assert _structure(first) == _structure(second)
        assert {i.id for i in first.items}.isdisjoint({i.id for i in second.items})


class TestParseFiles:
    def test_accepts_files(self, pdf_file, text_file):
        report = BatchParser().parse_files([pdf_file, text_file])
        assert report.accepted_count == 2
        assert report.items[0].title == "Lecture Notes Week1"
        assert report.items[0].material_type == "pdf"
        assert report.items[1].material_type == "docs"

    def test_missing_file_rejected(self, tmp_path):
        report = BatchParser().parse_files([tmp_path / "nope.pdf"])
        assert report.accepted_count == 0
        assert report.rejected[0].reason == "unreadable"

    def test_too_large_rejected(self, tmp_path):
        parser = BatchParser(Settings(_env_file=None, max_file_size_mb=1))
        big = tmp_path / "big.bin"
        big.write_bytes(b"\0" * (1024 * 1024 + 1))
        report = parser.parse_files([big])
        assert report.accepted_count == 0
        assert report.rejected[0].reason == "too_large"

    def test_twenty_first_file_rejected(self, tmp_path):
        paths = []
        for n in range(21):
            path = tmp_path / f"file{n}.txt"
            path.write_text("x")
            paths.append(path)
        parser = BatchParser()
        first = parser.parse_files(paths[:20])
        assert first.accepted_count == 20
        second = parser.parse_files(paths[20:], existing_count=first.accepted_count)
        assert second.accepted_count == 0
        assert second.rejected[0].reason == "over_limit"

    def test_rejected_files_do_not_consume_capacity(self, tmp_path):
        parser = BatchParser(Settings(_env_file=None, max_batch_files=1))
        good = tmp_path / "good.txt"
        good.write_text("x")
        report = parser.parse_files([tmp_path / "missing.txt", good])
        assert report.accepted_count == 1

    def test_rejected_temp_file_is_released(self):
        parser = BatchParser(Settings(_env_file=None, max_batch_files=1))
        kept = file_handle_from_bytes("a.txt", b"a")
        dropped = file_handle_from_bytes("b.txt", b"b")
        report = parser.parse_files([kept, dropped])
        try:
            assert report.accepted_count == 1
            assert dropped.temp.released
            assert not dropped.path.exists()
            assert not kept.temp.released
        finally:
            kept.temp.release()


class TestFileHandles:
    def test_from_path(self, pdf_file):
        handle = file_handle(pdf_file)
        assert handle.filename == pdf_file.name
        assert handle.content_type == "application/pdf"
        assert handle.size_bytes == pdf_file.stat().st_size
        assert handle.temp is None

    def test_directory_is_not_a_file(self, tmp_path):
        with pytest.raises(OSError):
            file_handle(tmp_path)

    def test_from_bytes(self):
        handle = file_handle_from_bytes("slides.pdf", b"%PDF-")
        try:
            assert handle.path.read_bytes() == b"%PDF-"
            assert handle.path.suffix == ".pdf"
            assert handle.size_bytes == 5
        finally:
            handle.temp.release()
