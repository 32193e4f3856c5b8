"""Command-line front end for the mail client, the domain wizard and the servers.

Provides an argparse-based tool that drives the same view-models a web UI
would: the thread list and detail views, the composer, and the domain setup
wizard.  ``serve`` starts one of the HTTP variants.  Output formats: text
(default) or JSON.  Any error from the client or the wizard prints
``Error: <message>`` to stderr and exits with status 1.

Usage::

    inbound-apps threads --unread
    inbound-apps --format json thread thr_123
    inbound-apps reply em_456 --body "Thanks!" --subject "Quarterly report"
    inbound-apps domain add example.com
    inbound-apps serve --variant pdf
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from pathlib import Path
from typing import Any

import httpx
import structlog

from inbound_apps.app import VARIANTS, run_server
from inbound_apps.config import Settings, get_settings, require_credentials
from inbound_apps.domain.errors import InboundAppError
from inbound_apps.domain.models import DnsRecord
from inbound_apps.domain.types import ThreadAction
from inbound_apps.domains.store import WizardStateStore
from inbound_apps.domains.wizard import DEFAULT_FROM_USER, DomainSetupWizard
from inbound_apps.gateway.client import InboundClient
from inbound_apps.mail.cache import QueryCache
from inbound_apps.mail.composer import Composer, ReplyContext
from inbound_apps.mail.viewer import (
    DEFAULT_PAGE_SIZE,
    ThreadDetailState,
    ThreadDetailView,
    ThreadListState,
    ThreadListView,
    ViewStatus,
)

CLI_TIMEOUT_SECONDS = 30.0


class CommandFailedError(InboundAppError):
    """Raised when a view reports an error state or a send is rejected."""


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one sub-command per operation.

    Returns:
        A configured :class:`argparse.ArgumentParser`.
    """
    parser = argparse.ArgumentParser(
        prog="inbound-apps",
        description="Inbound email client, domain setup wizard and webhook servers",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        dest="output_format",
        help="Output format (default: text)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    threads = commands.add_parser("threads", help="List conversations")
    threads.add_argument("--unread", action="store_true", help="Only threads with unread mail")
    threads.add_argument("--archived", action="store_true", help="Only archived threads")
    threads.add_argument("--search", type=str, help="Free-text search")
    threads.add_argument("--page", type=int, help="Page number (1-based)")
    threads.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help=f"Page size (default: {DEFAULT_PAGE_SIZE})",
    )

    thread = commands.add_parser("thread", help="Show one conversation")
    thread.add_argument("thread_id")

    action = commands.add_parser("thread-action", help="Mark read/unread, archive/unarchive")
    action.add_argument("thread_id")
    action.add_argument("action", choices=[a.value for a in ThreadAction])

    send = commands.add_parser("send", help="Send a new email")
    send.add_argument("--to", required=True)
    send.add_argument("--subject", required=True)
    send.add_argument("--body", required=True)
    send.add_argument("--cc", default="")
    send.add_argument("--bcc", default="")
    send.add_argument("--html", action="store_true", help="Send the body as HTML")

    reply = commands.add_parser("reply", help="Reply to a received message")
    reply.add_argument("email_id")
    reply.add_argument("--body", required=True)
    reply.add_argument("--subject", help="Subject of the message being answered")
    reply.add_argument("--all", action="store_true", dest="reply_all", help="Reply to all")
    reply.add_argument("--html", action="store_true", help="Send the body as HTML")

    domain = commands.add_parser("domain", help="Domain setup wizard")
    steps = domain.add_subparsers(dest="domain_command", required=True)
    add = steps.add_parser("add", help="Register a domain (step 1)")
    add.add_argument("domain")
    steps.add_parser("refresh", help="Re-check DNS verification")
    steps.add_parser("status", help="Show the current step and DNS records")
    steps.add_parser("reset", help="Start over from step 1")
    zone = steps.add_parser("zonefile", help="Export DNS records as a zone file")
    zone.add_argument("--output", type=Path, help="Also write the zone file here")
    test = steps.add_parser("send-test", help="Send a test email from the verified domain")
    test.add_argument("--to", required=True)
    test.add_argument("--subject", required=True)
    test.add_argument("--message", required=True)
    test.add_argument(
        "--from-user",
        default=DEFAULT_FROM_USER,
        help=f"Local part of the sender address (default: {DEFAULT_FROM_USER})",
    )

    serve = commands.add_parser("serve", help="Run an HTTP server")
    serve.add_argument("--variant", choices=VARIANTS, required=True)
    serve.add_argument("--port", type=int, help="Listen port (default: WEBHOOK_PORT)")

    return parser


def configure_cli_logging() -> None:
    """Send warnings and errors to stderr so stdout carries only command output."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_json(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def format_thread_list(state: ThreadListState, page: int | None) -> str:
    """Format the thread list as one line per conversation."""
    if state.status != ViewStatus.READY:
        return state.message or ""

    lines = []
    for row in state.rows:
        marker = "*" if row.unread else " "
        count = f" ({row.count_badge})" if row.count_badge else ""
        clip = " [attachment]" if row.has_attachments else ""
        lines.append(
            f"{marker} {row.thread_id}  {row.date_label:<10}  {row.sender[:30]:<30}  "
            f"{row.subject}{count}{clip}"
        )
    if state.has_more:
        lines.append(f"More threads available (use --page {(page or 1) + 1})")
    return "\n".join(lines)


def format_thread_detail(state: ThreadDetailState) -> str:
    """Format a conversation header followed by each message."""
    if state.header is None:
        return state.message or ""
    header = state.header
    lines = [
        header.subject,
        f"{header.message_count} messages, {header.participant_count} participants, "
        f"last message {header.last_message_date}",
    ]
    if state.status == ViewStatus.EMPTY:
        lines.extend(["", state.message or ""])
    for message in state.messages:
        lines.append("")
        lines.append(f"--- [{message.badge}] {message.sender_label}  {message.date_label}")
        if message.recipients:
            lines.append(f"To: {message.recipients}")
        lines.append("")
        lines.append(message.body)
        for attachment in message.attachments:
            size = f" ({attachment.size_label})" if attachment.size_label else ""
            lines.append(f"  [attachment] {attachment.name}{size}")
        if message.can_reply:
            lines.append(f"  reply with: inbound-apps reply {message.email_id} --body ...")
    return "\n".join(lines)


def format_dns_records(records: list[DnsRecord]) -> str:
    if not records:
        return "No DNS records available."
    lines = []
    for record in records:
        verified = "verified" if record.is_verified else "pending"
        lines.append(f"{record.type:<6} {record.name:<40} {record.value}  ({verified})")
    return "\n".join(lines)


def format_wizard(wizard: DomainSetupWizard) -> str:
    step = wizard.step
    lines = [f"Step {int(step)} of 4: {step.title}"]
    if wizard.domain is not None:
        lines.append(f"Domain: {wizard.domain.domain} ({wizard.domain.status})")
        if wizard.dns_panel_expanded:
            lines.extend(["", format_dns_records(wizard.dns_records)])
    return "\n".join(lines)


def wizard_payload(wizard: DomainSetupWizard) -> dict[str, Any]:
    return {
        "step": int(wizard.step),
        "title": wizard.step.title,
        "domain": wizard.domain.to_wire() if wizard.domain is not None else None,
    }


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

Command = Callable[[argparse.Namespace, InboundClient, QueryCache, Settings], Awaitable[str]]


async def list_threads(
    args: argparse.Namespace, client: InboundClient, cache: QueryCache, settings: Settings
) -> str:
    view = ThreadListView(
        client,
        cache,
        unread_only=args.unread,
        archived_only=args.archived,
        search=args.search,
        page=args.page,
        limit=args.limit,
    )
    state = await view.load()
    if state.status == ViewStatus.ERROR:
        raise CommandFailedError(f"{state.message}: {state.error}")
    if args.output_format == "json":
        return format_json(asdict(state))
    return format_thread_list(state, args.page)


async def show_thread(
    args: argparse.Namespace, client: InboundClient, cache: QueryCache, settings: Settings
) -> str:
    view = ThreadDetailView(client, cache)
    view.select(args.thread_id)
    state = await view.load()
    if state.status == ViewStatus.ERROR:
        raise CommandFailedError(f"{state.message}: {state.error}")
    if args.output_format == "json":
        return format_json(asdict(state))
    return format_thread_detail(state)


async def thread_action(
    args: argparse.Namespace, client: InboundClient, cache: QueryCache, settings: Settings
) -> str:
    view = ThreadDetailView(client, cache)
    view.select(args.thread_id)
    result = await view.apply_action(args.action)
    if args.output_format == "json":
        return format_json(result.to_wire())
    return result.message or f"{result.action} applied to thread {result.thread_id}"


async def _submit(composer: Composer, body: str, html: bool, output_format: str) -> str:
    composer.set_field("body", body)
    composer.set_html_mode(html)
    result = await composer.submit()
    if result is None:
        raise CommandFailedError(composer.error or "Failed to send email")
    if output_format == "json":
        return format_json(result.to_wire())
    return f"Email sent successfully! ID: {result.id}"


async def send_email(
    args: argparse.Namespace, client: InboundClient, cache: QueryCache, settings: Settings
) -> str:
    composer = Composer(client, cache, from_address=settings.inbound_from_address)
    composer.open_compose()
    composer.set_field("to", args.to)
    composer.set_field("cc", args.cc)
    composer.set_field("bcc", args.bcc)
    composer.set_field("subject", args.subject)
    return await _submit(composer, args.body, args.html, args.output_format)


async def reply_email(
    args: argparse.Namespace, client: InboundClient, cache: QueryCache, settings: Settings
) -> str:
    composer = Composer(client, cache, from_address=settings.inbound_from_address)
    composer.open_reply(
        ReplyContext(
            email_id=args.email_id,
            original_subject=args.subject,
            reply_all=args.reply_all,
        )
    )
    return await _submit(composer, args.body, args.html, args.output_format)


async def domain_command(
    args: argparse.Namespace, client: InboundClient, cache: QueryCache, settings: Settings
) -> str:
    wizard = DomainSetupWizard(client, WizardStateStore(settings.wizard_state_path))
    sub = args.domain_command
    as_json = args.output_format == "json"

    if sub == "add":
        await wizard.submit_domain(args.domain)
    elif sub == "refresh":
        await wizard.refresh_status()
    elif sub == "reset":
        wizard.start_over()
    elif sub == "zonefile":
        zone = wizard.zone_file()
        if not zone:
            return "No DNS records available to generate zone file."
        if args.output is not None:
            args.output.write_text(zone, encoding="utf-8")
        return format_json({"zonefile": zone}) if as_json else zone
    elif sub == "send-test":
        result = await wizard.send_test_email(
            to=args.to,
            subject=args.subject,
            message=args.message,
            from_user=args.from_user,
        )
        if as_json:
            return format_json(result.to_wire())
        return f"Email sent successfully! ID: {result.id}"

    return format_json(wizard_payload(wizard)) if as_json else format_wizard(wizard)


COMMANDS: dict[str, Command] = {
    "threads": list_threads,
    "thread": show_thread,
    "thread-action": thread_action,
    "send": send_email,
    "reply": reply_email,
    "domain": domain_command,
}


async def run_command(
    args: argparse.Namespace,
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Run one client-side command and return its printable output.

    Args:
        args: Parsed command-line arguments.
        settings: Loaded settings carrying the API key and file paths.
        transport: Optional transport override for the HTTP client.

    Raises:
        InboundAppError: For any configuration, validation, upstream or
            wizard error.
    """
    require_credentials(settings, "inbound_api_key")
    async with httpx.AsyncClient(timeout=CLI_TIMEOUT_SECONDS, transport=transport) as http:
        client = InboundClient.from_settings(settings, http)
        cache = QueryCache()
        try:
            return await COMMANDS[args.command](args, client, cache, settings)
        finally:
            await cache.aclose()


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, run the command, and print its output."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    if args.command == "serve":
        run_server(args.variant, settings, port=args.port)
        return

    configure_cli_logging()
    try:
        output = asyncio.run(run_command(args, settings))
    except InboundAppError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(output)


if __name__ == "__main__":
    main()
