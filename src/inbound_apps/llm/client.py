"""Anthropic client factory and model configuration for email analysis."""

from anthropic import Anthropic

from inbound_apps.config import Settings

# Sonnet: the analysis report is read by a human, so quality beats latency.
ANALYSIS_MODEL = "claude-sonnet-4-5-20250929"
ANALYSIS_MAX_TOKENS = 2048


def get_anthropic_client(settings: Settings) -> Anthropic:
    """Create an Anthropic client from the configured API key.

    Args:
        settings: Loaded settings carrying ``anthropic_api_key``.

    Returns:
        Configured Anthropic client instance.
    """
    return Anthropic(api_key=settings.anthropic_api_key.get_secret_value())
