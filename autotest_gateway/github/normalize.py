"""Normalize GitHub webhook bodies into commit targets.

``process_comment`` and ``process_push`` accept the decoded JSON body of a
webhook delivery and return the typed request the engine consumes. Bodies
that do not match the typed payload contract raise
:class:`~autotest_gateway.github.errors.NormalizationError`.
"""

from __future__ import annotations

import datetime as dt
import re
import typing as typ

import msgspec

from autotest_gateway.github.errors import NormalizationError
from autotest_gateway.github.models import CommentTarget, PushTarget
from autotest_gateway.github.payloads import CommitCommentPayload, PushPayload

if typ.TYPE_CHECKING:
    from autotest_gateway.github.payloads import GitHubRepository
    from autotest_gateway.portal.protocol import ClassPortal

_FLAG_PATTERN = re.compile(r"#([A-Za-z0-9_-]+)")
_DELIVERABLE_PATTERN = re.compile(r"^[a-z]+\d+$")

_T = typ.TypeVar("_T")


def _convert(body: object, payload_type: type[_T], event: str) -> _T:
    try:
        return msgspec.convert(body, type=payload_type)
    except msgspec.ValidationError as exc:
        raise NormalizationError.invalid_payload(event, str(exc)) from exc


def postback_url(repository: GitHubRepository, commit_sha: str) -> str:
    """Return the comments URL for ``commit_sha`` in ``repository``."""
    commit_url = repository.commits_url.replace("{/sha}", f"/{commit_sha}")
    return f"{commit_url}/comments"


def parse_flags(message: str) -> tuple[str, ...]:
    """Return the lower-cased ``#hashtag`` tokens of ``message`` in order.

    >>> parse_flags("@autobot #D1 #silent")
    ('d1', 'silent')

    """
    return tuple(match.lower() for match in _FLAG_PATTERN.findall(message))


def parse_deliverable(flags: typ.Iterable[str]) -> str | None:
    """Return the first flag shaped like a deliverable id (``d1``, ``proj2``)."""
    return next((flag for flag in flags if _DELIVERABLE_PATTERN.match(flag)), None)


def _is_bot_mentioned(message: str, bot_name: str) -> bool:
    return f"@{bot_name.lower()}" in message.lower()


def process_comment(body: object, *, bot_name: str) -> CommentTarget:
    """Build a :class:`CommentTarget` from a ``commit_comment`` body.

    Parameters
    ----------
    body
        Decoded JSON webhook body.
    bot_name
        Handle that marks a comment as an explicit request to the bot.

    Raises
    ------
    NormalizationError
        If ``body`` does not contain the expected comment fields.

    """
    payload = _convert(body, CommitCommentPayload, "commit_comment")
    comment = payload.comment
    repository = payload.repository
    flags = parse_flags(comment.body)

    return CommentTarget(
        repo_id=repository.full_name,
        commit_sha=comment.commit_id,
        person_id=comment.user.login,
        timestamp=comment.updated_at,
        clone_url=repository.clone_url,
        commit_url=comment.html_url.split("#", 1)[0],
        postback_url=postback_url(repository, comment.commit_id),
        deliverable_id=parse_deliverable(flags),
        message=comment.body,
        bot_mentioned=_is_bot_mentioned(comment.body, bot_name),
        flags=flags,
    )


def _push_timestamp(payload: PushPayload) -> dt.datetime:
    raw = payload.repository.pushed_at
    match raw:
        case int():
            return dt.datetime.fromtimestamp(raw, dt.UTC)
        case str():
            try:
                parsed = dt.datetime.fromisoformat(raw)
            except ValueError as exc:
                raise NormalizationError.invalid_timestamp(raw) from exc
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=dt.UTC)
            return parsed.astimezone(dt.UTC)
        case None if (
            payload.head_commit is not None
            and payload.head_commit.timestamp is not None
        ):
            return payload.head_commit.timestamp.astimezone(dt.UTC)
        case _:
            raise NormalizationError.invalid_timestamp(raw)


async def process_push(body: object, portal: ClassPortal) -> PushTarget | None:
    """Build a :class:`PushTarget` from a ``push`` body.

    Returns ``None`` when the push deleted its branch: there is no commit to
    test and the caller should treat the delivery as a no-op.

    Parameters
    ----------
    body
        Decoded JSON webhook body.
    portal
        Class portal consulted for the current default deliverable.

    Raises
    ------
    NormalizationError
        If ``body`` does not contain the expected push fields.
    ClassPortalError
        If the portal cannot supply its configuration.

    """
    payload = _convert(body, PushPayload, "push")
    if payload.deleted and payload.head_commit is None:
        return None

    repository = payload.repository
    timestamp = _push_timestamp(payload)
    commit_url = (
        payload.head_commit.url if payload.head_commit is not None else payload.compare
    )
    portal_config = await portal.get_configuration()

    return PushTarget(
        repo_id=repository.full_name,
        commit_sha=payload.after,
        person_id=payload.pusher.name,
        timestamp=timestamp,
        clone_url=repository.clone_url,
        commit_url=commit_url,
        postback_url=postback_url(repository, payload.after),
        ref=payload.ref,
        deliverable_id=portal_config.default_deliverable,
        before_sha=payload.before,
        forced=payload.forced,
    )


__all__ = [
    "parse_deliverable",
    "parse_flags",
    "postback_url",
    "process_comment",
    "process_push",
]
