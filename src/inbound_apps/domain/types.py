"""Domain enumerations shared by the mail client, webhooks, and domain wizard."""

from enum import IntEnum, StrEnum


class MessageDirection(StrEnum):
    """Whether a message was received by or sent from the account."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class ThreadAction(StrEnum):
    """Actions accepted by ``POST /threads/{id}/actions``."""

    MARK_AS_READ = "mark_as_read"
    MARK_AS_UNREAD = "mark_as_unread"
    ARCHIVE = "archive"
    UNARCHIVE = "unarchive"


class SendStatus(StrEnum):
    """Delivery status reported for outbound messages."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class DomainStatus(StrEnum):
    """Verification status of a sending/receiving domain."""

    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class DnsRecordType(StrEnum):
    """DNS record types the zone-file export knows how to format."""

    A = "A"
    MX = "MX"
    TXT = "TXT"
    CNAME = "CNAME"
    PTR = "PTR"
    SRV = "SRV"
    SPF = "SPF"


class WizardStep(IntEnum):
    """Steps of the domain setup wizard, in order."""

    ADD_DOMAIN = 1
    DNS_CONFIGURED = 2
    VERIFYING = 3
    READY = 4

    @property
    def title(self) -> str:
        """Human-readable step title."""
        return _STEP_TITLES[self]


_STEP_TITLES: dict[WizardStep, str] = {
    WizardStep.ADD_DOMAIN: "Add Domain",
    WizardStep.DNS_CONFIGURED: "Configure DNS",
    WizardStep.VERIFYING: "Verify Records",
    WizardStep.READY: "Complete Setup",
}
