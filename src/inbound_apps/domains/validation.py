"""Input validation for the domain setup wizard and its test email form.

All checks run before anything touches the network; failures raise
``ValidationError`` naming the offending field.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from inbound_apps.domain.errors import ValidationError

MAX_LABEL_LENGTH = 63

_DOMAIN_SHAPE = re.compile(r"^[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)+$")
_TOP_LEVEL_LABEL = re.compile(r"^[a-zA-Z]{2,}$")
_FROM_USER = re.compile(r"^[a-zA-Z0-9._-]+$")
_EMAIL_ADDRESS = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _valid_label(label: str) -> bool:
    return 0 < len(label) <= MAX_LABEL_LENGTH and not (label.startswith("-") or label.endswith("-"))


def validate_domain(value: str | None) -> str:
    """Check that *value* is a plausible domain name and return it trimmed.

    Rules: dot-separated labels of ASCII letters, digits and hyphens; at
    least two labels; 1-63 characters per label; no label starts or ends
    with a hyphen; the last label is alphabetic and at least 2 letters long.

    Args:
        value: The raw user input.

    Returns:
        The domain with surrounding whitespace removed.

    Raises:
        ValidationError: ``"Domain is required"`` for empty input,
            ``"Invalid domain format"`` for anything else rejected.
    """
    domain = (value or "").strip()
    if not domain:
        raise ValidationError("Domain is required", field="domain")

    labels = domain.split(".")
    if (
        not _DOMAIN_SHAPE.match(domain)
        or not all(_valid_label(label) for label in labels)
        or not _TOP_LEVEL_LABEL.match(labels[-1])
    ):
        raise ValidationError("Invalid domain format", field="domain")
    return domain


@dataclass(frozen=True)
class TestEmailForm:
    """The wizard's "send a test email" form, validated."""

    __test__ = False  # not a pytest test class

    from_user: str
    to: str
    subject: str
    message: str

    @classmethod
    def validate(cls, from_user: str, to: str, subject: str, message: str) -> TestEmailForm:
        """Build a form, rejecting the first invalid field.

        Raises:
            ValidationError: With the field name set.
        """
        to = to.strip()
        from_user = from_user.strip()
        if not _EMAIL_ADDRESS.match(to):
            raise ValidationError("Invalid email address", field="to")
        if not from_user:
            raise ValidationError("From user is required", field="from_user")
        if not _FROM_USER.match(from_user):
            raise ValidationError("Invalid email username format", field="from_user")
        if not subject.strip():
            raise ValidationError("Subject is required", field="subject")
        if not message.strip():
            raise ValidationError("Message is required", field="message")
        return cls(from_user=from_user, to=to, subject=subject, message=message)

    def html(self) -> str:
        return "<p>" + self.message.replace("\n", "<br>") + "</p>"


def format_sender(address: str, name: str | None) -> str:
    """Render ``"Name <address>"`` with the first letter of *name* upper-cased.

    Falls back to the bare address when *name* is empty.
    """
    if not name:
        return address
    return f"{name[:1].upper()}{name[1:]} <{address}>"
