from pathlib import Path
import textwrap

import pytest

from neetsync.catalog import CatalogLoadError, CatalogLoader, load_catalogs


def write_catalog(path: Path, body: str) -> None:
    path.write_text(textwrap.dedent(body).strip() + "\n", encoding="utf-8")


def test_loader_merges_paths(tmp_path: Path) -> None:
    base = tmp_path / "base"
    base.mkdir()
    override = tmp_path / "override"
    override.mkdir()

    write_catalog(
        base / "blind75.yaml",
        """
        source_url: https://neetcode.io/practice?tab=blind75
        list_name: Blind 75
        entries:
          two-sum:
            title: Two Sum
            category: Arrays & Hashing
            difficulty: Easy
        """,
    )
    write_catalog(
        override / "roadmap.yml",
        """
        source_url: https://neetcode.io/roadmap
        entries:
          two-sum:
            difficulty: easy
          valid-anagram:
            title: Valid Anagram
        """,
    )

    payload = CatalogLoader([base, override]).load_all()

    two_sum = payload.entries["two-sum"]
    assert two_sum.title == "Two Sum"
    assert two_sum.category == "Arrays & Hashing"
    assert two_sum.list_name == "Blind 75"
    assert two_sum.difficulty == "easy"
    assert two_sum.source_url == "https://neetcode.io/roadmap"
    assert payload.entries["valid-anagram"].list_name is None


def test_loader_handles_missing_paths(tmp_path: Path) -> None:
    loader = CatalogLoader([tmp_path, tmp_path / "absent"])
    assert loader.search_paths == [tmp_path]
    assert loader.load_all().entries == {}


def test_empty_file_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "empty.yaml").write_text("", encoding="utf-8")
    assert load_catalogs([tmp_path]).entries == {}


def test_loader_reports_validation_error(tmp_path: Path) -> None:
    write_catalog(
        tmp_path / "broken.yaml",
        """
        entries:
          two-sum:
            title: Two Sum
        """,
    )

    with pytest.raises(CatalogLoadError) as excinfo:
        CatalogLoader([tmp_path]).load_all()
    assert "broken.yaml" in str(excinfo.value)


def test_catalog_entry_becomes_mapping_entry(tmp_path: Path) -> None:
    write_catalog(
        tmp_path / "list.yaml",
        """
        source_url: https://neetcode.io/practice
        entries:
          two-sum:
            category: Arrays & Hashing
        """,
    )

    entry = load_catalogs([tmp_path]).entries["two-sum"].to_mapping_entry()
    assert entry.category == "Arrays & Hashing"
    assert entry.title is None
    assert entry.sources == ["https://neetcode.io/practice"]
