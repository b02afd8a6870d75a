"""Tests for small utilities."""

import pytest

from velai.utils.helpers import display_name_for, get_file_extension, sanitize_filename, unique_ids


@pytest.mark.parametrize(
    "filename, expected",
    [("cv.PDF", "pdf"), ("archive.tar.gz", "gz"), ("README", ""), ("", "")],
)
def test_get_file_extension(filename, expected):
    assert get_file_extension(filename) == expected


def test_sanitize_filename():
    assert sanitize_filename("My CV (final).pdf") == "My_CV_final.pdf"
    assert len(sanitize_filename("a" * 300 + ".pdf")) == 255


def test_display_name_precedence():
    path = "documents/1/resume/1730000000000.pdf"
    assert display_name_for("cv.pdf", {"original_name": "CV.pdf"}, path) == "cv.pdf"
    assert display_name_for(None, {"original_name": "CV.pdf"}, path) == "CV.pdf"
    assert display_name_for(None, {}, path) == "1730000000000.pdf"
    assert display_name_for(None, None, None) == ""


def test_unique_ids_keeps_first_seen_order():
    assert unique_ids(["b", "a", "b", None, "", "c"]) == ["b", "a", "c"]
    assert unique_ids(None) == []
