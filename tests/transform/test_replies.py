"""Tests for latest-reply extraction from plain-text bodies."""

from __future__ import annotations

from unittest.mock import patch

from inbound_apps.transform.replies import extract_latest_reply

THREADED_BODY = (
    "Thanks, looks good to me.\n"
    "\n"
    "On Mon, Jan 13, 2025 at 9:00 AM Bob Smith <bob@example.com> wrote:\n"
    "> Can you review the attached budget?\n"
    "> Cheers, Bob\n"
)


def test_quoted_history_dropped() -> None:
    reply = extract_latest_reply(THREADED_BODY)

    assert "Thanks, looks good to me." in reply
    assert "review the attached budget" not in reply


def test_plain_body_unchanged() -> None:
    assert extract_latest_reply("Just one line").strip() == "Just one line"


def test_empty_extraction_falls_back_to_full_body() -> None:
    with patch("inbound_apps.transform.replies.EmailReplyParser") as parser_cls:
        parser_cls.return_value.parse_reply.return_value = "   "

        assert extract_latest_reply(THREADED_BODY) == THREADED_BODY
