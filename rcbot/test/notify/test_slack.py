from __future__ import annotations

from rcbot.core.result import Err, Ok
from rcbot.forge.http import MockHttpClient
from rcbot.notify.slack import SlackNotifier, rc_created_message, rc_stale_message

WEBHOOK = "https://hooks.slack.com/services/T000/B000/XXXX"


def test_post_sends_json_to_webhook() -> None:
    client = MockHttpClient()
    client.add("POST", WEBHOOK, text="ok")
    message = rc_created_message(tag="v20240602.1", issue_url="https://github.com/o/r/issues/7")

    result = SlackNotifier(client, webhook_url=WEBHOOK).post(message)

    assert result == Ok(None)
    assert client.requests[0].payload == message


def test_post_failure_does_not_leak_webhook_url() -> None:
    client = MockHttpClient()
    client.add_error("POST", WEBHOOK, status=404, message="no_service")

    result = SlackNotifier(client, webhook_url=WEBHOOK).post({"text": "hi"})

    assert isinstance(result, Err)
    assert result.error.status == 404
    assert WEBHOOK not in str(result.error)


def test_rc_created_message_blocks() -> None:
    message = rc_created_message(tag="v20240602.1", issue_url="https://github.com/o/r/issues/7")
    blocks = message["blocks"]
    assert isinstance(blocks, list)
    header, section = blocks
    assert header["text"]["text"] == "[v20240602.1] Release Candidate created 🧪"
    assert section["text"]["text"] == "`v20240602.1` is ready for testing."
    assert section["accessory"]["url"] == "https://github.com/o/r/issues/7"


def test_rc_stale_message_blocks() -> None:
    message = rc_stale_message(opened_at="2022-05-27T17:07:37Z", issue_url="https://github.com/o/r/issues/3")
    header, section = message["blocks"]  # type: ignore[misc]
    assert header["text"]["text"] == "Release Candidate has been open since 2022-05-27T17:07:37Z"
    assert section["text"]["text"].startswith("<!channel>")
    assert section["accessory"]["url"] == "https://github.com/o/r/issues/3"
