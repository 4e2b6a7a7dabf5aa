"""Remote path layout and solution file headers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from ..storage.models import MappingEntry, OrganizationMode, SyncSettings

PROBLEM_URL = "https://neetcode.io/problems/{slug}"
MAX_NAME_LENGTH = 100

LANGUAGE_EXTENSIONS: dict[str, str] = {
    "python": "py",
    "python3": "py",
    "javascript": "js",
    "typescript": "ts",
    "java": "java",
    "cpp": "cpp",
    "c++": "cpp",
    "c": "c",
    "csharp": "cs",
    "c#": "cs",
    "go": "go",
    "golang": "go",
    "rust": "rs",
    "swift": "swift",
    "kotlin": "kt",
    "scala": "scala",
    "ruby": "rb",
    "php": "php",
    "dart": "dart",
    "racket": "rkt",
    "elixir": "ex",
    "erlang": "erl",
}
DEFAULT_EXTENSION = "txt"


@dataclass(frozen=True, slots=True)
class CommentStyle:
    start: str
    line: str
    end: str


_BLOCK = CommentStyle("/*", " *", " */")
_HASH = CommentStyle("#", "#", "#")
_SEMICOLON = CommentStyle(";", ";", ";")
_PERCENT = CommentStyle("%", "%", "%")
_SLASHES = CommentStyle("//", "//", "//")

COMMENT_STYLES: dict[str, CommentStyle] = {
    **{
        language: _BLOCK
        for language in (
            "java", "javascript", "typescript", "cpp", "c++", "c", "csharp", "c#",
            "go", "golang", "rust", "swift", "kotlin", "scala", "dart", "php",
        )
    },
    **{language: _HASH for language in ("python", "python3", "ruby", "elixir", "perl")},
    **{language: _SEMICOLON for language in ("racket", "lisp", "scheme")},
    "erlang": _PERCENT,
}

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
_UNDERSCORES = re.compile(r"_+")


@dataclass(frozen=True, slots=True)
class ResolvedPath:
    path: str
    header: str


def sanitize(value: str) -> str:
    """Make ``value`` safe as a single path segment.

    Applying it twice gives the same result as applying it once.
    """

    cleaned = _INVALID_CHARS.sub("", value)
    cleaned = _WHITESPACE.sub("_", cleaned)
    cleaned = _UNDERSCORES.sub("_", cleaned).strip("_")
    return cleaned[:MAX_NAME_LENGTH].strip("_")


def slug_to_title(slug: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def normalize_group_name(name: str) -> str:
    """Folder name for a category or list."""

    return sanitize(name.replace("&", "And").strip())


def normalize_difficulty(difficulty: str | None) -> str | None:
    if not difficulty:
        return None
    lowered = difficulty.lower().strip()
    for bucket in ("Easy", "Medium", "Hard"):
        if bucket.lower() in lowered:
            return bucket
    return None


def extension_for(language: str) -> str:
    return LANGUAGE_EXTENSIONS.get(language.lower().strip(), DEFAULT_EXTENSION)


def comment_style_for(language: str) -> CommentStyle:
    return COMMENT_STYLES.get(language.lower().strip(), _SLASHES)


def build_filename(settings: SyncSettings, slug: str, title: str, language: str) -> str:
    name = sanitize(title or slug_to_title(slug)) or sanitize(slug)
    filename = f"{name}.{extension_for(language)}"
    if settings.filename_include_slug:
        filename = f"{slug}__{filename}"
    return filename


def resolve_path(
    settings: SyncSettings,
    slug: str,
    title: str,
    language: str,
    mapping_entry: MappingEntry | None = None,
    difficulty: str | None = None,
) -> str:
    """Return the repository path for a solution under the configured layout."""

    entry = mapping_entry or MappingEntry()
    category = normalize_group_name(entry.category) if entry.category else None
    list_name = normalize_group_name(entry.list_name) if entry.list_name else None
    bucket = normalize_difficulty(difficulty or entry.difficulty)

    parts = [settings.base_dir]
    mode = settings.organization_mode
    if mode is OrganizationMode.AUTO:
        parts.append(list_name if settings.include_list_folder_when_known and list_name else "Problems")
        if settings.include_difficulty_folder and bucket:
            parts.append(bucket)
        parts.append(category or "Unsorted")
    elif mode is OrganizationMode.CATEGORY:
        parts.extend(["Problems", category or "Unsorted"])
    elif mode is OrganizationMode.DIFFICULTY:
        parts.extend(["Problems", bucket or "Unknown_Difficulty"])
    else:
        parts.append("Problems")

    parts.append(build_filename(settings, slug, title, language))
    return "/".join(parts)


def build_header(
    slug: str,
    title: str,
    *,
    language: str,
    difficulty: str | None = None,
    category: str | None = None,
    list_name: str | None = None,
    runtime: str | None = None,
    memory: str | None = None,
    solved_at: datetime | None = None,
) -> str:
    """Render the metadata comment block prepended to solution files."""

    style = comment_style_for(language)
    fields = [
        ("Problem", title or slug_to_title(slug)),
        ("Slug", slug),
        ("URL", PROBLEM_URL.format(slug=slug)),
        ("Difficulty", difficulty),
        ("Category", category),
        ("List", list_name),
        ("Runtime", runtime),
        ("Memory", memory),
        ("Solved", solved_at.astimezone(timezone.utc).isoformat() if solved_at else None),
    ]
    lines = [style.start]
    lines.extend(f"{style.line} {label}: {value}" for label, value in fields if value)
    lines.append(style.end)
    return "\n".join(lines) + "\n"


def resolve(
    settings: SyncSettings,
    slug: str,
    title: str,
    language: str,
    mapping_entry: MappingEntry | None = None,
    difficulty: str | None = None,
    *,
    runtime: str | None = None,
    memory: str | None = None,
    solved_at: datetime | None = None,
) -> ResolvedPath:
    entry = mapping_entry or MappingEntry()
    return ResolvedPath(
        path=resolve_path(settings, slug, title, language, entry, difficulty),
        header=build_header(
            slug,
            title,
            language=language,
            difficulty=difficulty or entry.difficulty,
            category=entry.category,
            list_name=entry.list_name,
            runtime=runtime,
            memory=memory,
            solved_at=solved_at,
        ),
    )


__all__ = [
    "LANGUAGE_EXTENSIONS",
    "ResolvedPath",
    "build_filename",
    "build_header",
    "comment_style_for",
    "extension_for",
    "normalize_difficulty",
    "normalize_group_name",
    "resolve",
    "resolve_path",
    "sanitize",
    "slug_to_title",
]
