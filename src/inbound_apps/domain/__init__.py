"""Domain types, wire models, and errors shared by every inbound-apps component."""

from inbound_apps.domain.errors import (
    ConfigurationError,
    InboundAppError,
    InvalidTransitionError,
    ProcessingError,
    UpstreamError,
    ValidationError,
)
from inbound_apps.domain.models import (
    Attachment,
    DnsRecord,
    DomainData,
    EmailTag,
    GetThreadResponse,
    OutboundAttachment,
    ReplyEmailRequest,
    ReplyEmailResponse,
    SendEmailRequest,
    SendEmailResponse,
    ThreadActionResponse,
    ThreadDetails,
    ThreadListItem,
    ThreadMessage,
    ThreadsListResponse,
)
from inbound_apps.domain.types import (
    DnsRecordType,
    DomainStatus,
    MessageDirection,
    ThreadAction,
    WizardStep,
)

__all__ = [
    "Attachment",
    "ConfigurationError",
    "DnsRecord",
    "DnsRecordType",
    "DomainData",
    "DomainStatus",
    "EmailTag",
    "GetThreadResponse",
    "InboundAppError",
    "InvalidTransitionError",
    "MessageDirection",
    "OutboundAttachment",
    "ProcessingError",
    "ReplyEmailRequest",
    "ReplyEmailResponse",
    "SendEmailRequest",
    "SendEmailResponse",
    "ThreadAction",
    "ThreadActionResponse",
    "ThreadDetails",
    "ThreadListItem",
    "ThreadMessage",
    "ThreadsListResponse",
    "UpstreamError",
    "ValidationError",
    "WizardStep",
]
