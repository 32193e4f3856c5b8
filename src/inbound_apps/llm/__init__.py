"""LLM integration for the email analysis receiver.

Provides Anthropic client configuration, prompt templates, the structured
``EmailAnalysis`` report, and the reply built from it.
"""

from inbound_apps.llm.analysis import (
    EmailAnalysis,
    analysis_idempotency_key,
    analyze_email,
    build_analysis_payload,
    compose_analysis_reply,
)
from inbound_apps.llm.client import ANALYSIS_MODEL, get_anthropic_client

__all__ = [
    "ANALYSIS_MODEL",
    "EmailAnalysis",
    "analysis_idempotency_key",
    "analyze_email",
    "build_analysis_payload",
    "compose_analysis_reply",
    "get_anthropic_client",
]
