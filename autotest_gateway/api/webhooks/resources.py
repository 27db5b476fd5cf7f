"""GitHub webhook endpoint.

``POST /githubWebhook`` accepts deliveries from GitHub. The event kind is
read from the ``X-GitHub-Event`` header and the body is JSON.

Responses
---------
* ``ping`` → 200 ``"pong"``; the engine is not touched.
* ``commit_comment`` / ``push`` → 200 with the commit target the gateway
  derived, echoed back for the delivery log on GitHub.
* push of a deleted branch → 400 with a benign message.
* unsupported kind → 400 ``Webhook event not handled.``
* any failure → 400 ``Failed to process commit.``; details are logged, not
  returned, because the sender is untrusted.

"""

from __future__ import annotations

import time
import typing as typ

import falcon

from autotest_gateway.github.dispatch import HANDLED_EVENTS, PING_EVENT
from autotest_gateway.github.models import to_json_dict
from autotest_gateway.logging import (
    get_logger,
    log_error,
    log_exception,
    log_info,
)

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from autotest_gateway.github.dispatch import WebhookDispatcher

__all__ = [
    "BRANCH_DELETED_MESSAGE",
    "FAILURE_MESSAGE",
    "UNHANDLED_EVENT_MESSAGE",
    "GitHubWebhookResource",
]

logger = get_logger(__name__)

PONG = "pong"
BRANCH_DELETED_MESSAGE = "Webhook not handled (if branch was deleted this is normal)"
UNHANDLED_EVENT_MESSAGE = "Webhook event not handled."
FAILURE_MESSAGE = "Failed to process commit."


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class GitHubWebhookResource:
    """Receive GitHub webhook deliveries and hand them to the dispatcher."""

    def __init__(self, dispatcher: WebhookDispatcher) -> None:
        """Configure the resource with the webhook dispatcher."""
        self._dispatcher = dispatcher

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle ``POST /githubWebhook``."""
        start = time.monotonic()
        event = req.get_header("X-GitHub-Event", default="")
        delivery = req.get_header("X-GitHub-Delivery", default="-")
        log_info(logger, "Handling GitHub %r event (delivery %s)", event, delivery)

        if event == PING_EVENT:
            resp.status = falcon.HTTP_200
            resp.media = PONG
            return
        if event not in HANDLED_EVENTS:
            log_error(logger, "Unhandled GitHub event %r (delivery %s)", event, delivery)
            self._reject(resp, UNHANDLED_EVENT_MESSAGE)
            return

        try:
            body = await req.get_media()
            target = await self._dispatcher.dispatch(event, body)
        except Exception as exc:  # noqa: BLE001 - webhook senders only ever see 400
            log_exception(
                logger,
                f"Failed to process GitHub {event!r} event (delivery {delivery}) "
                f"after {_elapsed_ms(start)}ms",
                exc,
            )
            self._reject(resp, FAILURE_MESSAGE)
            return

        if target is None:
            self._reject(resp, BRANCH_DELETED_MESSAGE)
            return

        resp.status = falcon.HTTP_200
        resp.media = to_json_dict(target)
        log_info(
            logger,
            "Handled GitHub %r event for %s@%s in %dms",
            event,
            target.repo_id,
            target.commit_sha,
            _elapsed_ms(start),
        )

    @staticmethod
    def _reject(resp: Response, message: str) -> None:
        resp.status = falcon.HTTP_400
        resp.media = {"title": "Webhook not processed", "description": message}
