"""Latest-reply extraction for plain-text email bodies."""

from __future__ import annotations

from mailparser_reply import EmailReplyParser  # type: ignore[import-untyped]


def extract_latest_reply(full_body: str) -> str:
    """Return only the newest reply from a plain-text email body.

    Quoted history, signatures and forwarded headers are dropped by
    ``mail-parser-reply``.  When nothing is left (the whole body looked
    quoted), the original body is returned unchanged.

    Args:
        full_body: The full text body of the email.

    Returns:
        The latest reply text, or *full_body* if extraction yields nothing.
    """
    parsed: str = EmailReplyParser(languages=["en"]).parse_reply(text=full_body)
    if not parsed or not parsed.strip():
        return full_body
    return parsed
