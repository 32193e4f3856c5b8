"""Pydantic models for the parsed-email payload posted to ``/api/inbound``.

Only the fields the receivers use are declared; everything else the
upstream sends is kept as extra data and ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from inbound_apps.domain.errors import ValidationError
from inbound_apps.domain.models import InboundModel


class EmailAddress(InboundModel):
    name: str | None = None
    address: str | None = None


class AddressList(InboundModel):
    text: str = ""
    addresses: list[EmailAddress] = Field(default_factory=list)

    @property
    def first(self) -> EmailAddress | None:
        return self.addresses[0] if self.addresses else None


class CleanedContent(InboundModel):
    html: str | None = None
    text: str | None = None
    has_html: bool = False
    has_text: bool = False


class ParsedData(InboundModel):
    raw: str | None = None
    html_body: str | None = None
    text_body: str | None = None
    headers: dict[str, Any] = Field(default_factory=dict)


class InboundWebhookEmail(InboundModel):
    """A parsed inbound email as delivered by the upstream webhook."""

    model_config = ConfigDict(extra="allow")

    id: str
    message_id: str | None = None
    subject: str | None = None
    from_: AddressList | None = Field(default=None, alias="from")
    to: AddressList | None = None
    recipient: str | None = None
    received_at: str | None = None
    cleaned_content: CleanedContent = Field(default_factory=CleanedContent)
    parsed_data: ParsedData = Field(default_factory=ParsedData)

    @property
    def sender_name(self) -> str | None:
        first = self.from_.first if self.from_ else None
        return first.name if first and first.name else None

    @property
    def sender_address(self) -> str | None:
        first = self.from_.first if self.from_ else None
        if first and first.address:
            return first.address
        return self.from_.text if self.from_ and self.from_.text else None

    @property
    def html(self) -> str | None:
        """Cleaned HTML body when flagged present, else the raw parsed HTML."""
        if self.cleaned_content.has_html and self.cleaned_content.html:
            return self.cleaned_content.html
        return self.parsed_data.html_body or None

    @property
    def text(self) -> str | None:
        if self.cleaned_content.has_text and self.cleaned_content.text:
            return self.cleaned_content.text
        return self.parsed_data.text_body or None

    @property
    def idempotency_source(self) -> str:
        """Stable identifier of the original message, for idempotency keys."""
        return self.message_id or self.id


class InboundWebhookPayload(InboundModel):
    model_config = ConfigDict(extra="allow")

    email: InboundWebhookEmail


def parse_webhook_body(body: Any) -> InboundWebhookPayload:
    """Validate a decoded webhook body.

    Args:
        body: The decoded JSON request body.

    Returns:
        The validated payload.

    Raises:
        ValidationError: If the body is not an object carrying an ``email``
            object, or the email object is malformed.
    """
    if not isinstance(body, dict) or not isinstance(body.get("email"), dict):
        raise ValidationError("Invalid webhook payload: missing email object", field="email")
    try:
        return InboundWebhookPayload.model_validate(body)
    except PydanticValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise ValidationError(f"Invalid webhook payload: {fields}", field="email") from exc
