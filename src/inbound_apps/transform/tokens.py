"""Size and token-count approximation for email bodies.

Token counts use the usual ~4 characters per token heuristic; they are only
meant for comparing a body before and after cleanup, not for billing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate the token count of *text* as ``ceil(len(text) / 4)``."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass(frozen=True)
class ContentStats:
    size_bytes: int
    tokens: int


def measure(content: str) -> ContentStats:
    """Measure UTF-8 size and estimated tokens of *content*."""
    return ContentStats(size_bytes=len(content.encode("utf-8")), tokens=estimate_tokens(content))
