"""Commit targets: normalized test requests handed to the engine."""

from __future__ import annotations

import datetime as dt
import typing as typ

import msgspec


class CommitTarget(msgspec.Struct, kw_only=True, frozen=True, tag_field="kind"):
    """Fields common to every webhook-triggered test request.

    The ``kind`` tag is set by the concrete subclass and decides which
    engine handler receives the target.
    """

    repo_id: str
    commit_sha: str
    person_id: str
    timestamp: dt.datetime
    clone_url: str
    commit_url: str
    postback_url: str
    ref: str | None = None
    deliverable_id: str | None = None


class PushTarget(CommitTarget, kw_only=True, frozen=True, tag="push"):
    """Test request created by a push to a branch."""

    before_sha: str | None = None
    forced: bool = False


class CommentTarget(CommitTarget, kw_only=True, frozen=True, tag="comment"):
    """Test request created by a comment on a commit."""

    message: str
    bot_mentioned: bool = False
    flags: tuple[str, ...] = ()


AnyCommitTarget: typ.TypeAlias = PushTarget | CommentTarget


def target_kind(target: CommitTarget) -> str:
    """Return the discriminant tag (``push`` or ``comment``) of ``target``."""
    return typ.cast("str", type(target).__struct_config__.tag)


def to_json_dict(target: CommitTarget) -> dict[str, typ.Any]:
    """Return ``target`` as JSON-compatible builtins, tag included."""
    return msgspec.json.decode(msgspec.json.encode(target))


__all__ = [
    "AnyCommitTarget",
    "CommentTarget",
    "CommitTarget",
    "PushTarget",
    "target_kind",
    "to_json_dict",
]
