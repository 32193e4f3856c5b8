"""Pydantic v2 models mirroring the Inbound v2 API wire format.

Responses use camelCase keys; every model accepts both the camelCase alias
and the snake_case field name.  Unknown keys are ignored so upstream additions
never break parsing.  Request models are dumped with
``model_dump(by_alias=True, exclude_none=True)``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from inbound_apps.domain.types import DomainStatus, MessageDirection, SendStatus, ThreadAction


class InboundModel(BaseModel):
    """Base model: camelCase aliases, immutable, tolerant of unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the JSON-ready camelCase dict sent upstream."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------


class LatestMessage(InboundModel):
    """Summary of the newest message in a thread."""

    id: str
    type: MessageDirection
    subject: str | None = None
    from_text: str = ""
    text_preview: str | None = None
    is_read: bool = False
    has_attachments: bool = False
    date: datetime | None = None


class ThreadListItem(InboundModel):
    """A conversation summary as returned by ``GET /threads``."""

    id: str
    root_message_id: str | None = None
    normalized_subject: str | None = None
    participant_emails: list[str] = Field(default_factory=list)
    message_count: int = 0
    last_message_at: datetime
    created_at: datetime | None = None
    latest_message: LatestMessage | None = None
    has_unread: bool = False
    is_archived: bool = False


class Pagination(InboundModel):
    page: int = 1
    limit: int = 50
    total: int = 0
    has_more: bool = False


class ThreadFilters(InboundModel):
    search: str | None = None
    unread_only: bool | None = None
    archived_only: bool | None = None


class ThreadsListResponse(InboundModel):
    threads: list[ThreadListItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    filters: ThreadFilters = Field(default_factory=ThreadFilters)


class Attachment(InboundModel):
    """Attachment metadata; the binary payload never reaches the viewer."""

    filename: str | None = None
    content_type: str | None = None
    size: int | None = None
    content_id: str | None = None
    content_disposition: str | None = None


class EmailTag(InboundModel):
    name: str
    value: str


class ThreadMessage(InboundModel):
    """A single message inside a thread, immutable once fetched."""

    id: str
    message_id: str | None = None
    type: MessageDirection
    thread_position: int = 0

    subject: str | None = None
    text_body: str | None = None
    html_body: str | None = None

    from_: str = Field(default="", alias="from")
    from_name: str | None = None
    from_address: str | None = None
    to: list[str] = Field(default_factory=list)
    cc: list[str] = Field(default_factory=list)
    bcc: list[str] = Field(default_factory=list)

    date: datetime | None = None
    received_at: datetime | None = None
    sent_at: datetime | None = None

    is_read: bool = False
    read_at: datetime | None = None
    has_attachments: bool = False
    attachments: list[Attachment] = Field(default_factory=list)

    in_reply_to: str | None = None
    references: list[str] = Field(default_factory=list)

    headers: dict[str, Any] = Field(default_factory=dict)
    tags: list[EmailTag] = Field(default_factory=list)

    status: SendStatus | None = None
    failure_reason: str | None = None

    @field_validator("to", "cc", "bcc", "references", mode="before")
    @classmethod
    def _wrap_single_value(cls, value: Any) -> Any:
        return _as_list(value)

    @property
    def is_inbound(self) -> bool:
        return self.type == MessageDirection.INBOUND

    @property
    def timestamp(self) -> datetime | None:
        """Best available timestamp: header date, then received, then sent."""
        return self.date or self.received_at or self.sent_at

    def preferred_body(self) -> tuple[str, str] | None:
        """Return the body that drives rendering.

        HTML wins whenever it is present; plain text is used otherwise.

        Returns:
            ``("html", body)`` or ``("text", body)``, or ``None`` when the
            message has no content at all.
        """
        if self.html_body:
            return ("html", self.html_body)
        if self.text_body:
            return ("text", self.text_body)
        return None


class ThreadDetails(InboundModel):
    id: str
    root_message_id: str | None = None
    normalized_subject: str | None = None
    participant_emails: list[str] = Field(default_factory=list)
    message_count: int = 0
    last_message_at: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None


class GetThreadResponse(InboundModel):
    thread: ThreadDetails
    messages: list[ThreadMessage] = Field(default_factory=list)
    total_count: int = 0


class ThreadActionRequest(InboundModel):
    action: ThreadAction


class ThreadActionResponse(InboundModel):
    success: bool
    action: str
    thread_id: str
    affected_messages: int | None = None
    message: str | None = None


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


class OutboundAttachment(InboundModel):
    """Attachment sent with an email; ``content`` is base64-encoded."""

    filename: str
    content: str
    content_type: str


class SendEmailRequest(InboundModel):
    """Payload for ``POST /emails``.  Constructed per submission, not retained."""

    from_: str = Field(alias="from")
    to: str | list[str]
    subject: str
    text: str | None = None
    html: str | None = None
    cc: str | list[str] | None = None
    bcc: str | list[str] | None = None
    reply_to: str | list[str] | None = None
    headers: dict[str, str] | None = None
    tags: list[EmailTag] | None = None
    attachments: list[OutboundAttachment] | None = None


class SendEmailResponse(InboundModel):
    id: str
    message_id: str | None = None


class ReplyEmailRequest(InboundModel):
    """Payload for ``POST /emails/{id}/reply-new``.

    ``reply_all`` is resolved server-side; when ``to`` is omitted the
    upstream replies to the original sender.
    """

    from_: str = Field(alias="from")
    to: str | list[str] | None = None
    subject: str | None = None
    text: str | None = None
    html: str | None = None
    headers: dict[str, str] | None = None
    reply_all: bool | None = None
    tags: list[EmailTag] | None = None
    attachments: list[OutboundAttachment] | None = None
    simple: bool | None = None


class ReplyEmailResponse(InboundModel):
    id: str
    message_id: str | None = None
    aws_message_id: str | None = None
    replied_to_email_id: str | None = None
    replied_to_thread_id: str | None = None
    is_thread_reply: bool = False


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------


class DnsRecord(InboundModel):
    """A DNS record the user must publish for the domain."""

    type: str
    name: str
    value: str
    is_required: bool | None = None
    is_verified: bool | None = None
    error: str | None = None


class VerificationCheck(InboundModel):
    dns_records: list[DnsRecord] | None = None
    ses_status: str | None = None
    dkim_status: str | None = None
    dkim_verified: bool | None = None
    dkim_tokens: list[str] | None = None
    mail_from_domain: str | None = None
    mail_from_status: str | None = None
    mail_from_verified: bool | None = None
    is_fully_verified: bool = False
    last_checked: str | None = None


class DomainData(InboundModel):
    """Domain payload returned by ``POST /domains`` and ``GET /domains/{id}``."""

    id: str
    domain: str
    status: DomainStatus = DomainStatus.PENDING
    can_receive_emails: bool = False
    has_mx_records: bool = False
    domain_provider: str | None = None
    provider_confidence: str | None = None
    dns_records: list[DnsRecord] | None = None
    created_at: str | None = None
    updated_at: str | None = None
    verification_check: VerificationCheck | None = None

    @property
    def records(self) -> list[DnsRecord]:
        """DNS records from the verification check, else the top-level list."""
        if self.verification_check is not None and self.verification_check.dns_records:
            return list(self.verification_check.dns_records)
        return list(self.dns_records or [])

    @property
    def is_fully_verified(self) -> bool:
        if self.status == DomainStatus.VERIFIED:
            return True
        return self.verification_check is not None and self.verification_check.is_fully_verified
