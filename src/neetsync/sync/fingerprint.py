"""Content fingerprints used for submission dedup."""

from __future__ import annotations

import hashlib


def fingerprint(slug: str, language: str, code: str) -> str:
    """Return the hex SHA-256 of ``slug + language + code``."""

    return hashlib.sha256(f"{slug}{language}{code}".encode("utf-8")).hexdigest()


__all__ = ["fingerprint"]
