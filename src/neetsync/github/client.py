"""Async client for the GitHub contents API."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal
from urllib.parse import quote

import aiohttp

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


class GitHubError(RuntimeError):
    """Base class for remote store errors; every subclass is retryable."""


class RemoteUnavailableError(GitHubError):
    """Raised when the API cannot be reached or the request timed out."""


class RemoteCommitError(GitHubError):
    """Raised for a non-2xx response that is not a version conflict."""

    def __init__(self, status: int, body: str, *, path: str | None = None) -> None:
        self.status = status
        self.body = body
        self.path = path
        target = f" for {path}" if path else ""
        super().__init__(f"GitHub API error {status}{target}: {body[:500]}")


class RemoteConflictError(RemoteCommitError):
    """Raised when a write carried a stale version token."""


@dataclass(slots=True)
class RemoteFile:
    """Current revision of a remote file."""

    path: str
    sha: str
    encoded: str | None = None

    def text(self) -> str | None:
        """Decoded file content, or None when the API omitted it."""

        return decode_content(self.encoded) if self.encoded else None


@dataclass(slots=True)
class CommitResult:
    path: str
    status: Literal["created", "updated", "skipped"]

    @property
    def wrote(self) -> bool:
        return self.status != "skipped"


@dataclass(slots=True)
class AccessCheck:
    valid: bool
    error: str | None = None


def encode_content(content: str) -> str:
    """Base64 of the UTF-8 encoded text, as the contents API expects."""

    return base64.b64encode(content.encode("utf-8")).decode("ascii")


def decode_content(encoded: str) -> str:
    return base64.b64decode(encoded.replace("\n", "")).decode("utf-8")


class GitHubClient:
    """Read and write repository files with optimistic concurrency.

    Use as an async context manager; the underlying ``aiohttp.ClientSession`` is
    opened on entry and closed on exit.
    """

    def __init__(
        self,
        token: str,
        repo_full_name: str,
        *,
        api_base: str = GITHUB_API_BASE,
        timeout: float = 20.0,
        session_factory: Callable[[], Any] | None = None,
    ) -> None:
        owner, _, repo = repo_full_name.partition("/")
        if not owner or not repo:
            raise ValueError(f"Invalid repository name '{repo_full_name}', expected 'owner/repo'")
        self.owner = owner
        self.repo = repo
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session_factory = session_factory or self._default_session_factory
        self._session: Any = None

    def _default_session_factory(self) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            timeout=self._timeout,
            headers={
                "Accept": "application/vnd.github.v3+json",
                "Authorization": f"Bearer {self._token}",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
        )

    async def __aenter__(self) -> "GitHubClient":
        if self._session is None:
            self._session = self._session_factory()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def _contents_url(self, path: str) -> str:
        return f"{self._api_base}/repos/{self.owner}/{self.repo}/contents/{quote(path, safe='/')}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> tuple[int, str]:
        if self._session is None:
            raise RuntimeError("GitHubClient must be used as an async context manager")
        try:
            async with self._session.request(method, url, params=params, json=body) as response:
                text = await response.text()
                return response.status, text
        except asyncio.TimeoutError as exc:
            raise RemoteUnavailableError(f"{method} {url} timed out") from exc
        except aiohttp.ClientError as exc:
            raise RemoteUnavailableError(f"{method} {url} failed: {exc}") from exc

    async def get_file(self, path: str, branch: str) -> RemoteFile | None:
        """Return the current revision of ``path`` on ``branch``, or None when absent."""

        status, text = await self._request("GET", self._contents_url(path), params={"ref": branch})
        if status == 404:
            return None
        if not 200 <= status < 300:
            raise RemoteCommitError(status, text, path=path)

        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise RemoteCommitError(status, text, path=path) from exc
        # A directory listing comes back as a list; anything without a sha is not a file.
        if not isinstance(payload, dict) or not isinstance(payload.get("sha"), str):
            raise RemoteCommitError(status, text, path=path)

        encoded = payload.get("content")
        return RemoteFile(
            path=path,
            sha=payload["sha"],
            encoded=encoded if isinstance(encoded, str) else None,
        )

    async def put_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> None:
        """Create or update ``path``; ``sha`` must be the current token when the file exists."""

        body: dict[str, Any] = {
            "message": message,
            "content": encode_content(content),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha

        status, text = await self._request("PUT", self._contents_url(path), body=body)
        if 200 <= status < 300:
            return
        if status == 409 or (status == 422 and "sha" in text.lower()):
            raise RemoteConflictError(status, text, path=path)
        raise RemoteCommitError(status, text, path=path)

    async def verify_access(self) -> AccessCheck:
        """Check that the token can read the configured repository."""

        url = f"{self._api_base}/repos/{self.owner}/{self.repo}"
        try:
            status, text = await self._request("GET", url)
        except RemoteUnavailableError as exc:
            return AccessCheck(valid=False, error=str(exc))
        if 200 <= status < 300:
            return AccessCheck(valid=True)
        return AccessCheck(valid=False, error=f"GitHub API error {status}: {text[:500]}")

    async def commit_file(
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        *,
        overwrite: bool = True,
    ) -> CommitResult:
        """Write ``content`` to ``path`` as exactly one commit.

        The version token is fetched on every call. An existing file is left
        untouched when ``overwrite`` is False.
        """

        existing = await self.get_file(path, branch)
        if existing is not None and not overwrite:
            logger.info("File already exists, skipping", extra={"path": path})
            return CommitResult(path=path, status="skipped")

        await self.put_file(path, content, message, branch, sha=existing.sha if existing else None)
        logger.debug("Committed file", extra={"path": path, "branch": branch})
        return CommitResult(path=path, status="updated" if existing else "created")


class FakeGitHubClient(GitHubClient):
    """In-memory test double that versions files like the contents API."""

    def __init__(  # type: ignore[override]
        self,
        files: dict[str, str] | None = None,
        *,
        failures: list[Exception] | None = None,
        access: AccessCheck | None = None,
    ) -> None:
        self.owner = "fake"
        self.repo = "repo"
        self._session = None
        self.files: dict[str, str] = dict(files or {})
        self.commits: list[dict[str, Any]] = []
        self._failures = list(failures or [])
        self._access = access or AccessCheck(valid=True)

    async def __aenter__(self) -> "FakeGitHubClient":  # type: ignore[override]
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[override]
        return None

    @staticmethod
    def _sha(content: str) -> str:
        return hashlib.sha1(content.encode("utf-8")).hexdigest()

    async def get_file(self, path: str, branch: str) -> RemoteFile | None:  # type: ignore[override]
        if path not in self.files:
            return None
        content = self.files[path]
        return RemoteFile(path=path, sha=self._sha(content), encoded=encode_content(content))

    async def put_file(  # type: ignore[override]
        self,
        path: str,
        content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> None:
        if self._failures:
            raise self._failures.pop(0)
        current = self.files.get(path)
        if current is not None and sha != self._sha(current):
            raise RemoteConflictError(409, f"{path} does not match {sha}", path=path)
        self.files[path] = content
        self.commits.append({"path": path, "message": message, "branch": branch, "sha": sha})

    async def verify_access(self) -> AccessCheck:  # type: ignore[override]
        return self._access


__all__ = [
    "AccessCheck",
    "CommitResult",
    "FakeGitHubClient",
    "GitHubClient",
    "GitHubError",
    "RemoteCommitError",
    "RemoteConflictError",
    "RemoteFile",
    "RemoteUnavailableError",
    "decode_content",
    "encode_content",
]
