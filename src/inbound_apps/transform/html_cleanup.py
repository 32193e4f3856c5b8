"""Quoted-reply removal and token accounting for inbound HTML bodies.

Gmail wraps the quoted history of a reply in an element carrying the
``gmail_quote`` class.  ``clean_email_html`` parses the body, deletes those
subtrees, and measures size and estimated tokens on both sides so the saving
can be logged.  ``persist_cleanup`` writes both versions to disk for
inspection.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from inbound_apps.domain.errors import ProcessingError
from inbound_apps.transform.tokens import ContentStats, measure

QUOTE_MARKER_CLASS = "gmail_quote"


@dataclass(frozen=True)
class CleanupResult:
    raw: str
    cleaned: str
    before: ContentStats
    after: ContentStats
    removed_elements: int

    @property
    def bytes_saved(self) -> int:
        return self.before.size_bytes - self.after.size_bytes

    @property
    def tokens_saved(self) -> int:
        return self.before.tokens - self.after.tokens


def parse_html(html: str) -> BeautifulSoup:
    """Parse *html* with the stdlib-backed parser.

    Raises:
        ProcessingError: If the markup cannot be parsed.
    """
    try:
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ProcessingError(f"Could not parse email HTML: {exc}") from exc


def strip_quoted_replies(html: str, marker: str = QUOTE_MARKER_CLASS) -> tuple[str, int]:
    """Delete every element carrying the *marker* class, with its subtree.

    Args:
        html: The email HTML body.
        marker: CSS class that marks quoted-reply containers.

    Returns:
        The cleaned HTML and the number of elements removed.
    """
    soup = parse_html(html)
    removed = 0
    for element in soup.select(f".{marker}"):
        # Nested markers go away with their ancestor.
        if element.decomposed:
            continue
        element.decompose()
        removed += 1
    return str(soup), removed


def clean_email_html(html: str, marker: str = QUOTE_MARKER_CLASS) -> CleanupResult:
    """Strip quoted replies from *html* and measure the difference."""
    cleaned, removed = strip_quoted_replies(html, marker)
    return CleanupResult(
        raw=html,
        cleaned=cleaned,
        before=measure(html),
        after=measure(cleaned),
        removed_elements=removed,
    )


def persist_cleanup(result: CleanupResult, output_dir: Path, email_id: str) -> tuple[Path, Path]:
    """Write raw and cleaned bodies as ``<id>-raw.html`` and ``<id>-cleaned.html``.

    Returns:
        The ``(raw_path, cleaned_path)`` pair.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    safe_id = "".join(c if c.isalnum() or c in "-_." else "_" for c in email_id)
    raw_path = output_dir / f"{safe_id}-raw.html"
    cleaned_path = output_dir / f"{safe_id}-cleaned.html"
    raw_path.write_text(result.raw, encoding="utf-8")
    cleaned_path.write_text(result.cleaned, encoding="utf-8")
    return raw_path, cleaned_path
