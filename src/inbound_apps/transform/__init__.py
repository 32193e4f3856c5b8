"""Content transformations applied by the webhook receivers."""

from inbound_apps.transform.forwarded import (
    add_branding_footer,
    remove_forwarded_content,
    wrap_text_in_html,
)
from inbound_apps.transform.html_cleanup import (
    CleanupResult,
    clean_email_html,
    persist_cleanup,
    strip_quoted_replies,
)
from inbound_apps.transform.replies import extract_latest_reply
from inbound_apps.transform.tokens import ContentStats, estimate_tokens, measure

__all__ = [
    "CleanupResult",
    "ContentStats",
    "add_branding_footer",
    "clean_email_html",
    "estimate_tokens",
    "extract_latest_reply",
    "measure",
    "persist_cleanup",
    "remove_forwarded_content",
    "strip_quoted_replies",
    "wrap_text_in_html",
]
