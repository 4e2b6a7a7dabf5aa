"""GitHub contents API access."""

from .client import (
    AccessCheck,
    CommitResult,
    FakeGitHubClient,
    GitHubClient,
    GitHubError,
    RemoteCommitError,
    RemoteConflictError,
    RemoteFile,
    RemoteUnavailableError,
    decode_content,
    encode_content,
)

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
