"""Unit tests for the letter/legal page image cache."""

import pytest

from core.exceptions import InvalidInputError
from models.session import PaperSize
from services.cache_store import (
    ImageCacheStore,
    normalized_pdf_path,
    sanitize_basename,
    validate_basename,
)

from conftest import write_png


BASENAME = "1733221530123-report"


class TestBasenames:

    def test_validate_accepts_safe_names(self):
        assert validate_basename(BASENAME) == BASENAME

    @pytest.mark.parametrize("bad", ["", "../etc", "a b", "x.png", None])
    def test_validate_rejects_unsafe_names(self, bad):
        with pytest.raises(InvalidInputError):
            validate_basename(bad)

    def test_sanitize_strips_everything_else(self):
        assert sanitize_basename("../12-a b.pdf") == "12-abpdf"
        assert sanitize_basename("../..") == ""
        assert sanitize_basename(None) == ""


class TestLookup:
    """Page matching and ordering."""

    def test_numeric_order(self, cache_store, cached_pages):
        """Test page 10 sorts after page 2."""
        cached_pages("letter", BASENAME, {10: [], 2: [], 1: []})

        pages = cache_store.lookup("letter", BASENAME)

        assert [p.page_index for p in pages] == [1, 2, 10]
        assert pages[0].url == f"/cache/letter/{BASENAME}_1.png"

    def test_filter_by_pages(self, cache_store, cached_pages):
        cached_pages("legal", BASENAME, {1: [], 2: [], 3: []})

        pages = cache_store.lookup(PaperSize.LEGAL, BASENAME, {2, 3, 7})

        assert [p.page_index for p in pages] == [2, 3]

    def test_other_uploads_are_ignored(self, cache_store, cached_pages):
        cached_pages("letter", BASENAME, {1: []})
        cached_pages("letter", "999-other", {1: [], 2: []})

        assert len(cache_store.lookup("letter", BASENAME)) == 1

    def test_legacy_dash_names_match(self, cache_store):
        """Test pages left by older releases are still found."""
        write_png(cache_store.partition_dir("letter") / f"{BASENAME}-3.png")

        pages = cache_store.lookup("letter", BASENAME)

        assert [p.page_index for p in pages] == [3]

    def test_canonical_wins_over_legacy_duplicate(self, cache_store, cached_pages):
        write_png(cache_store.partition_dir("letter") / f"{BASENAME}-1.png")
        cached_pages("letter", BASENAME, {1: []})

        pages = cache_store.lookup("letter", BASENAME)

        assert len(pages) == 1
        assert pages[0].filename == f"{BASENAME}_1.png"

    def test_missing_partition_is_empty(self, tmp_path):
        store = ImageCacheStore(tmp_path / "never-created")
        assert store.lookup("letter", BASENAME) == []

    def test_unknown_paper_raises(self, cache_store):
        with pytest.raises(ValueError):
            cache_store.lookup("a4", BASENAME)


class TestClearAndInvalidate:

    def test_clear_removes_only_images(self, cache_store, cached_pages):
        cached_pages("letter", BASENAME, {1: [], 2: []})
        cached_pages("letter", "999-other", {1: []})
        keep = cache_store.partition_dir("letter") / "notes.txt"
        keep.write_text("keep me")

        assert cache_store.clear("letter") == 3
        assert cache_store.lookup("letter", "999-other") == []
        assert keep.exists()

    def test_clear_missing_partition(self, tmp_path):
        assert ImageCacheStore(tmp_path / "nothing").clear(PaperSize.LEGAL) == 0

    def test_invalidate_both_partitions_and_side_files(self, cache_store, cached_pages, tmp_path):
        """Test invalidate drops pages of both sizes plus normalized PDFs."""
        upload_dir = tmp_path / "uploads"
        upload_dir.mkdir()
        cached_pages("letter", BASENAME, {1: [], 2: []})
        cached_pages("legal", BASENAME, {1: [], 2: []})
        cached_pages("legal", "999-other", {1: []})
        write_png(cache_store.partition_dir("legal") / f"{BASENAME}-9.png")
        for paper in PaperSize:
            normalized_pdf_path(upload_dir, BASENAME, paper).write_bytes(b"%PDF")

        removed = cache_store.invalidate(BASENAME, upload_dir=upload_dir)

        assert removed == 7
        for paper in PaperSize:
            assert cache_store.lookup(paper, BASENAME) == []
            assert not normalized_pdf_path(upload_dir, BASENAME, paper).exists()
        assert len(cache_store.lookup("legal", "999-other")) == 1

    def test_invalidate_rejects_unsafe_basename(self, cache_store):
        with pytest.raises(InvalidInputError):
            cache_store.invalidate("../x")


class TestPublish:

    def test_publish_moves_staged_files(self, cache_store, tmp_path):
        staging = tmp_path / "cache" / ".staging" / "letter"
        staged = [
            write_png(staging / f"{BASENAME}_1.png"),
            write_png(staging / f"{BASENAME}_2.png"),
        ]

        page_set = cache_store.publish(PaperSize.LETTER, BASENAME, staged)

        assert len(page_set) == 2
        assert page_set.urls == [
            f"/cache/letter/{BASENAME}_1.png",
            f"/cache/letter/{BASENAME}_2.png",
        ]
        assert not any(path.exists() for path in staged)

    def test_normalized_pdf_path(self, tmp_path):
        path = normalized_pdf_path(tmp_path, BASENAME, PaperSize.LEGAL)
        assert path.name == f"{BASENAME}_legal.pdf"
