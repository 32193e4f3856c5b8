"""Compose and reply dialog state machine.

The mode (``compose`` or ``reply``) is chosen when the dialog opens and stays
fixed until it closes.  Reply mode pins the recipient to the original sender
and pre-fills a ``Re:`` subject.  A successful submission invalidates the
cached thread views, closes the dialog and resets the form; a failed one
keeps the dialog open with the user's input intact and the error inline.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum

import structlog

from inbound_apps.domain.errors import InboundAppError, ValidationError
from inbound_apps.domain.models import (
    ReplyEmailRequest,
    ReplyEmailResponse,
    SendEmailRequest,
    SendEmailResponse,
)
from inbound_apps.gateway.client import InboundClient
from inbound_apps.mail.cache import QueryCache

logger = structlog.get_logger()

REPLY_PREFIX = "Re: "


class ComposerMode(StrEnum):
    COMPOSE = "compose"
    REPLY = "reply"


@dataclass(frozen=True)
class ReplyContext:
    """What the composer needs to know about the message being answered."""

    email_id: str
    original_subject: str | None = None
    original_sender: str | None = None
    reply_all: bool = False


@dataclass
class ComposeForm:
    to: str = ""
    cc: str = ""
    bcc: str = ""
    subject: str = ""
    body: str = ""


_FORM_FIELDS = frozenset(f.name for f in fields(ComposeForm))


def reply_subject(original_subject: str | None) -> str:
    """Prefix *original_subject* with ``Re:`` unless it already has it."""
    if original_subject and original_subject.startswith(REPLY_PREFIX):
        return original_subject
    return f"{REPLY_PREFIX}{original_subject or 'No Subject'}"


class Composer:
    """Headless compose/reply dialog.

    Args:
        client: Gateway client used for submission.
        cache: Query cache whose thread views are invalidated on success.
        from_address: Sender address for every outgoing message.
    """

    def __init__(self, client: InboundClient, cache: QueryCache, *, from_address: str) -> None:
        self._client = client
        self._cache = cache
        self._from_address = from_address
        self.is_open = False
        self.mode: ComposerMode | None = None
        self.reply_context: ReplyContext | None = None
        self.form = ComposeForm()
        self.html_mode = False
        self.in_flight = False
        self.error: str | None = None

    # -- Lifecycle -------------------------------------------------------------

    def open_compose(self) -> None:
        """Open a blank compose dialog."""
        self._open(ComposerMode.COMPOSE)
        self.form = ComposeForm()

    def open_reply(self, context: ReplyContext) -> None:
        """Open a reply dialog pre-filled from *context*."""
        self._open(ComposerMode.REPLY)
        self.reply_context = context
        self.form = ComposeForm(
            to=context.original_sender or "",
            subject=reply_subject(context.original_subject),
        )

    def close(self) -> None:
        """Close the dialog and discard its state."""
        self.is_open = False
        self.mode = None
        self.reply_context = None
        self.form = ComposeForm()
        self.html_mode = False
        self.error = None

    def _open(self, mode: ComposerMode) -> None:
        if self.is_open:
            msg = f"Composer is already open in {self.mode} mode"
            raise RuntimeError(msg)
        self.close()
        self.is_open = True
        self.mode = mode

    # -- Editing ---------------------------------------------------------------

    def field_editable(self, name: str) -> bool:
        """``to``, ``cc`` and ``bcc`` are locked in reply mode."""
        if self.mode == ComposerMode.REPLY:
            return name not in {"to", "cc", "bcc"}
        return name in _FORM_FIELDS

    def set_field(self, name: str, value: str) -> None:
        """Update one form field.

        Raises:
            ValidationError: If the field does not exist or is locked in the
                current mode.
        """
        if name not in _FORM_FIELDS:
            raise ValidationError(f"Unknown field: {name}", field=name)
        if not self.field_editable(name):
            raise ValidationError(f"'{name}' cannot be changed when replying", field=name)
        setattr(self.form, name, value)

    def set_html_mode(self, enabled: bool) -> None:
        """Choose whether the body is sent as HTML or as plain text."""
        self.html_mode = enabled

    @property
    def missing_fields(self) -> list[str]:
        required = ["subject", "body"]
        if self.mode == ComposerMode.COMPOSE:
            required.insert(0, "to")
        return [name for name in required if not getattr(self.form, name).strip()]

    @property
    def can_submit(self) -> bool:
        return self.is_open and not self.in_flight and not self.missing_fields

    # -- Submission ------------------------------------------------------------

    def build_payload(self) -> SendEmailRequest | ReplyEmailRequest:
        """Build the request for the current form; exactly one body kind is set."""
        body_field = "html" if self.html_mode else "text"
        body = {body_field: self.form.body}

        if self.mode == ComposerMode.REPLY and self.reply_context is not None:
            return ReplyEmailRequest(
                from_=self._from_address,
                to=self.form.to or None,
                subject=self.form.subject,
                reply_all=self.reply_context.reply_all,
                **body,
            )
        return SendEmailRequest(
            from_=self._from_address,
            to=self.form.to,
            subject=self.form.subject,
            cc=self.form.cc or None,
            bcc=self.form.bcc or None,
            **body,
        )

    async def submit(self) -> SendEmailResponse | ReplyEmailResponse | None:
        """Send the message.

        Returns:
            The upstream response on success, or ``None`` when the upstream
            call failed (the message is then available in ``error``).

        Raises:
            ValidationError: If the dialog is closed, a request is already in
                flight, or required fields are empty.  Nothing is sent.
        """
        if not self.is_open:
            raise ValidationError("Composer is not open")
        if self.in_flight:
            raise ValidationError("A message is already being sent")
        missing = self.missing_fields
        if missing:
            raise ValidationError(
                "Missing required fields: " + ", ".join(missing), field=missing[0]
            )

        payload = self.build_payload()
        self.in_flight = True
        self.error = None
        try:
            if isinstance(payload, ReplyEmailRequest) and self.reply_context is not None:
                result: SendEmailResponse | ReplyEmailResponse = (
                    await self._client.reply_to_email(self.reply_context.email_id, payload)
                )
            else:
                result = await self._client.send_email(payload)
        except InboundAppError as exc:
            self.error = str(exc)
            logger.warning("Failed to send email", mode=str(self.mode), error=self.error)
            return None
        finally:
            self.in_flight = False

        self._cache.invalidate(("threads",))
        self._cache.invalidate(("thread",))
        logger.info("Email sent", mode=str(self.mode), email_id=result.id)
        self.close()
        return result
