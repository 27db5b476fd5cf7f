"""GitHub webhook classification and normalization.

* **Models** - ``CommitTarget`` and its ``PushTarget``/``CommentTarget``
  variants, the typed requests the engine consumes.
* **Normalization** - ``process_push`` and ``process_comment`` shape webhook
  bodies into targets.
* **Dispatch** - ``WebhookDispatcher`` classifies an event kind and invokes
  the matching engine handler.
"""

from autotest_gateway.github.dispatch import WebhookDispatcher
from autotest_gateway.github.errors import NormalizationError, UnsupportedEventError
from autotest_gateway.github.models import (
    AnyCommitTarget,
    CommentTarget,
    CommitTarget,
    PushTarget,
)
from autotest_gateway.github.normalize import process_comment, process_push

__all__ = [
    "AnyCommitTarget",
    "CommentTarget",
    "CommitTarget",
    "NormalizationError",
    "PushTarget",
    "UnsupportedEventError",
    "WebhookDispatcher",
    "process_comment",
    "process_push",
]
