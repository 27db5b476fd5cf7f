"""Typed views of the GitHub webhook bodies the gateway consumes.

Only the fields used during normalization are declared; GitHub sends many
more and msgspec ignores them.
"""

from __future__ import annotations

import datetime as dt

import msgspec


class GitHubUser(msgspec.Struct):
    """Comment author."""

    login: str


class GitHubPusher(msgspec.Struct):
    """Push author as reported in push payloads."""

    name: str


class GitHubRepository(msgspec.Struct, kw_only=True):
    """Repository block shared by push and comment payloads."""

    name: str
    full_name: str
    clone_url: str
    html_url: str
    commits_url: str
    # Epoch seconds on push payloads, ISO-8601 elsewhere.
    pushed_at: int | str | None = None


class GitHubComment(msgspec.Struct, kw_only=True):
    """Commit comment body."""

    commit_id: str
    body: str
    html_url: str
    updated_at: dt.datetime
    user: GitHubUser


class GitHubHeadCommit(msgspec.Struct, kw_only=True):
    """Most recent commit included in a push."""

    id: str
    url: str
    timestamp: dt.datetime | None = None


class CommitCommentPayload(msgspec.Struct, kw_only=True):
    """Body of a ``commit_comment`` webhook."""

    comment: GitHubComment
    repository: GitHubRepository


class PushPayload(msgspec.Struct, kw_only=True):
    """Body of a ``push`` webhook."""

    ref: str
    after: str
    repository: GitHubRepository
    pusher: GitHubPusher
    before: str | None = None
    compare: str = ""
    deleted: bool = False
    forced: bool = False
    head_commit: GitHubHeadCommit | None = None


__all__ = [
    "CommitCommentPayload",
    "GitHubComment",
    "GitHubHeadCommit",
    "GitHubPusher",
    "GitHubRepository",
    "GitHubUser",
    "PushPayload",
]
