"""Forwarded-email safety analysis using Claude structured outputs.

``analyze_email`` sends the forwarded email's addresses, subject, raw source
and headers to the model and gets back a validated ``EmailAnalysis``.
``compose_analysis_reply`` turns that report into the reply sent to the
person who forwarded the email.
"""

from __future__ import annotations

import json

from anthropic import Anthropic
from pydantic import BaseModel, Field

from inbound_apps.domain.models import ReplyEmailRequest
from inbound_apps.domain.payload import InboundWebhookEmail
from inbound_apps.llm.client import ANALYSIS_MAX_TOKENS, ANALYSIS_MODEL
from inbound_apps.llm.prompts import ANALYSIS_SYSTEM_PROMPT, ANALYSIS_USER_PROMPT

DANGER_WARNING = "WARNING: This email is dangerous. Please be careful, read more below."
IDEMPOTENCY_PREFIX = "reply-analysis-agent-"


class EmailAnalysis(BaseModel):
    """Structured safety report for a forwarded email."""

    detail_analysis: str = Field(description="A detailed analysis of the email content")
    summary_analysis: str = Field(
        description="A summary analysis, laid out with spacing and personalized to the sender"
    )
    safety_rating: int = Field(
        description="A rating from 1 to 100 of how safe the email is",
        ge=1,
        le=100,
    )
    summarize_forwarded_email_title: str = Field(
        description="A summary of the forwarded email title (3-4 words)"
    )
    dangerous: bool = Field(description="Whether the email is dangerous")


def build_analysis_payload(email: InboundWebhookEmail) -> dict[str, object]:
    """Collect the parts of *email* the model gets to see."""
    return {
        "to": [a.model_dump() for a in email.to.addresses] if email.to else None,
        "from": [a.model_dump() for a in email.from_.addresses] if email.from_ else None,
        "subject": email.subject,
        "rawEmailContent": email.parsed_data.raw or "",
        "headers": email.parsed_data.headers,
    }


def analyze_email(
    email: InboundWebhookEmail,
    client: Anthropic,
    *,
    model: str = ANALYSIS_MODEL,
) -> EmailAnalysis:
    """Ask the model for a safety report on a forwarded email.

    Args:
        email: The inbound email as delivered by the webhook.
        client: An ``anthropic.Anthropic`` instance (or compatible mock).
        model: The Anthropic model ID to use.

    Returns:
        The validated ``EmailAnalysis``.
    """
    response = client.messages.parse(
        model=model,
        max_tokens=ANALYSIS_MAX_TOKENS,
        system=ANALYSIS_SYSTEM_PROMPT.format(recipient_name=email.sender_name or "the user"),
        messages=[
            {
                "role": "user",
                "content": ANALYSIS_USER_PROMPT.format(
                    sender_address=email.sender_address or "unknown",
                    sender_name=email.sender_name or "unknown",
                    payload=json.dumps(build_analysis_payload(email), default=str),
                ),
            },
        ],
        output_format=EmailAnalysis,
    )

    parsed = response.parsed_output
    if parsed is None:  # pragma: no cover - structured outputs always return a result
        msg = "Anthropic structured output returned None"
        raise RuntimeError(msg)
    result: EmailAnalysis = parsed
    return result


def analysis_idempotency_key(email: InboundWebhookEmail) -> str:
    return IDEMPOTENCY_PREFIX + email.idempotency_source


def compose_analysis_reply(
    email: InboundWebhookEmail,
    analysis: EmailAnalysis,
    from_address: str,
) -> ReplyEmailRequest:
    """Render the analysis report as a reply to the forwarder.

    The HTML and text bodies carry the same lines: greeting, the danger
    warning when flagged, the safety rating, then the summary.
    """
    name = email.sender_name
    lines = [f"Hi {name or 'there'},", ""]
    if analysis.dangerous:
        lines.append(DANGER_WARNING)
    lines.append(f"I would rate this email a {analysis.safety_rating} out of 100 for safety.")
    lines.append(analysis.summary_analysis)

    return ReplyEmailRequest(
        from_=from_address,
        subject=f"Re: Report of {analysis.summarize_forwarded_email_title} from {name or 'you'}",
        html="<br />".join(lines),
        text="\n".join(lines),
    )
