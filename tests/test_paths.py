from __future__ import annotations

from datetime import datetime, timezone

import pytest

from neetsync.storage import MappingEntry, SyncSettings
from neetsync.sync.paths import (
    MAX_NAME_LENGTH,
    build_header,
    extension_for,
    normalize_difficulty,
    resolve,
    resolve_path,
    sanitize,
    slug_to_title,
)


def _settings(**overrides) -> SyncSettings:
    return SyncSettings(repo_full_name="octo/solutions", **overrides)


ARRAYS = MappingEntry(category="Arrays & Hashing", list_name="Blind 75", difficulty="Easy")


@pytest.mark.parametrize(
    "raw",
    [
        "Two Sum",
        'Who: "Wins"? <Maybe> | yes/no \\ *',
        "  spaced   out  ",
        "__already__sanitized__",
        "x" * 250,
        "a " * 80,
    ],
)
def test_sanitize_is_idempotent(raw: str) -> None:
    once = sanitize(raw)
    assert sanitize(once) == once
    assert len(once) <= MAX_NAME_LENGTH


def test_sanitize_strips_invalid_characters() -> None:
    assert sanitize('Best Time: Buy/Sell "Stock"?') == "Best_Time_BuySell_Stock"
    assert sanitize("  __a  b__  ") == "a_b"


def test_slug_to_title() -> None:
    assert slug_to_title("two-sum") == "Two Sum"
    assert slug_to_title("lru-cache") == "Lru Cache"


def test_normalize_difficulty() -> None:
    assert normalize_difficulty("easy") == "Easy"
    assert normalize_difficulty("Medium Level") == "Medium"
    assert normalize_difficulty("impossible") is None
    assert normalize_difficulty(None) is None


def test_unknown_language_uses_txt() -> None:
    assert extension_for("Python3") == "py"
    assert extension_for("brainfuck") == "txt"


def test_flat_mode_ignores_classification() -> None:
    settings = _settings(organization_mode="FLAT")
    path = resolve_path(settings, "two-sum", "Two Sum", "python", ARRAYS, "Easy")
    assert path == "NeetSync/Problems/Two_Sum.py"


def test_auto_mode_uses_list_and_category() -> None:
    path = resolve_path(_settings(), "two-sum", "Two Sum", "python", ARRAYS)
    assert path == "NeetSync/Blind_75/Arrays_And_Hashing/Two_Sum.py"


def test_auto_mode_without_list_folder_and_with_difficulty() -> None:
    settings = _settings(include_list_folder_when_known=False, include_difficulty_folder=True)
    path = resolve_path(settings, "two-sum", "Two Sum", "java", ARRAYS)
    assert path == "NeetSync/Problems/Easy/Arrays_And_Hashing/Two_Sum.java"


def test_auto_mode_unknown_category() -> None:
    path = resolve_path(_settings(), "two-sum", "Two Sum", "python")
    assert path == "NeetSync/Problems/Unsorted/Two_Sum.py"


def test_category_mode() -> None:
    settings = _settings(organization_mode="CATEGORY")
    assert (
        resolve_path(settings, "two-sum", "Two Sum", "go", ARRAYS)
        == "NeetSync/Problems/Arrays_And_Hashing/Two_Sum.go"
    )
    assert resolve_path(settings, "x", "X", "go") == "NeetSync/Problems/Unsorted/X.go"


def test_difficulty_mode() -> None:
    settings = _settings(organization_mode="DIFFICULTY")
    assert (
        resolve_path(settings, "two-sum", "Two Sum", "python", None, "Medium")
        == "NeetSync/Problems/Medium/Two_Sum.py"
    )
    assert (
        resolve_path(settings, "two-sum", "Two Sum", "python")
        == "NeetSync/Problems/Unknown_Difficulty/Two_Sum.py"
    )


def test_filename_can_include_slug() -> None:
    settings = _settings(organization_mode="FLAT", filename_include_slug=True, base_dir="/Solutions/")
    path = resolve_path(settings, "two-sum", "Two Sum", "rust")
    assert path == "Solutions/Problems/two-sum__Two_Sum.rs"


def test_resolution_is_deterministic() -> None:
    settings = _settings()
    first = resolve(settings, "two-sum", "Two Sum", "python", ARRAYS)
    second = resolve(settings, "two-sum", "Two Sum", "python", ARRAYS)
    assert first == second


def test_python_header_uses_hash_comments() -> None:
    header = build_header(
        "two-sum",
        "Two Sum",
        language="python",
        difficulty="Easy",
        runtime="40 ms",
        solved_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    lines = header.splitlines()
    assert lines[0] == "#"
    assert "# Problem: Two Sum" in lines
    assert "# URL: https://neetcode.io/problems/two-sum" in lines
    assert "# Runtime: 40 ms" in lines
    assert "# Solved: 2025-01-01T00:00:00+00:00" in lines
    assert not any(line.startswith("# Memory") for line in lines)
    assert header.endswith("#\n")


def test_header_comment_styles() -> None:
    java = build_header("two-sum", "Two Sum", language="java")
    assert java.startswith("/*\n * Problem: Two Sum\n")
    assert java.endswith(" */\n")

    assert build_header("two-sum", "", language="racket").startswith(";\n; Problem: Two Sum")
    assert build_header("two-sum", "", language="erlang").startswith("%\n")
    assert build_header("two-sum", "", language="brainfuck").startswith("//\n// Problem")
