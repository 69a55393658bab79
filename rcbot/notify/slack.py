"""Slack incoming-webhook sink and the Block Kit messages rcbot sends.

Posting is fire-and-forget: an HTTP 2xx is the only acknowledgment.
"""

from __future__ import annotations

from typing import Protocol

from rcbot.core.result import Err, Ok, Result
from rcbot.forge.http import HttpClient, HttpRequest
from rcbot.release.errors import TransportError

__all__ = [
    "Notifier",
    "SlackNotifier",
    "rc_created_message",
    "rc_stale_message",
]

SlackMessage = dict[str, object]


class Notifier(Protocol):
    def post(self, message: SlackMessage) -> Result[None, TransportError]: ...


class SlackNotifier:
    def __init__(self, http: HttpClient, *, webhook_url: str) -> None:
        self._http = http
        self._webhook_url = webhook_url

    def post(self, message: SlackMessage) -> Result[None, TransportError]:
        result = self._http.send(
            HttpRequest(method="POST", url=self._webhook_url, payload=message)
        )
        if isinstance(result, Err):
            # The webhook URL is a secret; never echo it back.
            e = result.error
            return Err(TransportError(operation="post to Slack", status=e.status, message=e.message))
        return Ok(None)


def _go_section(text: str, url: str) -> dict[str, object]:
    return {
        "type": "section",
        "text": {"type": "mrkdwn", "text": text},
        "accessory": {
            "type": "button",
            "text": {"type": "plain_text", "text": "Go"},
            "url": url,
            "action_id": "button-action",
        },
    }


def _header(text: str) -> dict[str, object]:
    return {"type": "header", "text": {"type": "plain_text", "text": text}}


def rc_created_message(*, tag: str, issue_url: str) -> SlackMessage:
    return {
        "blocks": [
            _header(f"[{tag}] Release Candidate created 🧪"),
            _go_section(f"`{tag}` is ready for testing.", issue_url),
        ]
    }


def rc_stale_message(*, opened_at: str, issue_url: str) -> SlackMessage:
    return {
        "blocks": [
            _header(f"Release Candidate has been open since {opened_at}"),
            _go_section(
                "<!channel> take a look into your RC to determine what is delaying",
                issue_url,
            ),
        ]
    }
