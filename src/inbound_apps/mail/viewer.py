"""Headless thread list and thread detail views.

Both views read through a shared ``QueryCache`` (stale after 10 s, polled
every 30 s) and render into plain dataclasses that a front end can display
as-is: the CLI prints them, tests assert on them.  Each view distinguishes
loading, error, empty and ready states, and the error state always offers a
retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

import structlog
from pydantic import ValidationError as PydanticValidationError

from inbound_apps.domain.errors import InboundAppError
from inbound_apps.domain.models import (
    GetThreadResponse,
    ThreadActionResponse,
    ThreadListItem,
    ThreadMessage,
    ThreadsListResponse,
)
from inbound_apps.domain.types import ThreadAction
from inbound_apps.gateway.client import InboundClient
from inbound_apps.mail.cache import DEFAULT_REFETCH_INTERVAL, Poller, QueryCache, QueryKey
from inbound_apps.mail.composer import ReplyContext

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 50

THREADS_KEY: QueryKey = ("threads",)
THREAD_KEY: QueryKey = ("thread",)

NO_THREADS_MESSAGE = "No threads found"
NO_UNREAD_THREADS_MESSAGE = "No unread threads"
NO_SELECTION_MESSAGE = "Select a thread to view messages"
NO_MESSAGES_MESSAGE = "No messages in this thread"
NO_CONTENT_MESSAGE = "No content available"
LIST_ERROR_MESSAGE = "Failed to load threads"
DETAIL_ERROR_MESSAGE = "Failed to load thread"

_VIEW_ERRORS = (InboundAppError, PydanticValidationError)


class ViewStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"


def format_relative_date(value: datetime, now: datetime | None = None) -> str:
    """Format a thread timestamp the way the inbox list shows it.

    Same day -> ``HH:MM``; one day ago -> ``Yesterday``; under a week ->
    ``N days ago``; otherwise the ISO date.
    """
    now = now or datetime.now(tz=value.tzinfo)
    days = int((now - value).total_seconds() // 86400)
    if days <= 0:
        return value.strftime("%H:%M")
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    return value.strftime("%Y-%m-%d")


def format_message_date(value: datetime | None) -> str:
    return (value or datetime.now(tz=UTC)).strftime("%b %d, %H:%M")


def format_size(size: int | None) -> str | None:
    if not size:
        return None
    return f"{round(size / 1024)}KB"


# ---------------------------------------------------------------------------
# Thread list
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ThreadRow:
    thread_id: str
    sender: str
    subject: str
    preview: str | None
    count_badge: int | None
    unread: bool
    has_attachments: bool
    date_label: str
    selected: bool = False


@dataclass
class ThreadListState:
    status: ViewStatus
    rows: list[ThreadRow] = field(default_factory=list)
    has_more: bool = False
    message: str | None = None
    error: str | None = None

    @property
    def can_retry(self) -> bool:
        return self.status == ViewStatus.ERROR


def build_thread_row(
    thread: ThreadListItem, *, selected: bool = False, now: datetime | None = None
) -> ThreadRow:
    latest = thread.latest_message
    return ThreadRow(
        thread_id=thread.id,
        sender=(latest.from_text if latest else "") or "Unknown Sender",
        subject=thread.normalized_subject or (latest.subject if latest else None) or "No Subject",
        preview=latest.text_preview if latest else None,
        count_badge=thread.message_count if thread.message_count > 1 else None,
        unread=thread.has_unread,
        has_attachments=bool(latest and latest.has_attachments),
        date_label=format_relative_date(thread.last_message_at, now),
        selected=selected,
    )


class ThreadListView:
    """Paged, filterable list of conversation summaries.

    Args:
        client: Gateway client.
        cache: Shared query cache.
        unread_only: Only show threads with unread messages.
        archived_only: Only show archived threads.
        search: Free-text search.
        page: Page number (1-based); ``None`` lets the server decide.
        limit: Page size.
    """

    def __init__(
        self,
        client: InboundClient,
        cache: QueryCache,
        *,
        unread_only: bool = False,
        archived_only: bool = False,
        search: str | None = None,
        page: int | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._client = client
        self._cache = cache
        self.unread_only = unread_only
        self.archived_only = archived_only
        self.search = search or None
        self.page = page
        self.limit = limit
        self.selected_thread_id: str | None = None

    @property
    def key(self) -> QueryKey:
        filters = (self.unread_only, self.archived_only, self.search, self.page, self.limit)
        return (*THREADS_KEY, *filters)

    @property
    def empty_message(self) -> str:
        return NO_UNREAD_THREADS_MESSAGE if self.unread_only else NO_THREADS_MESSAGE

    def select(self, thread_id: str | None) -> None:
        """Mark a row as selected.  Pure UI state: no network call."""
        self.selected_thread_id = thread_id

    async def _fetch(self) -> ThreadsListResponse:
        return await self._client.list_threads(
            page=self.page,
            limit=self.limit,
            search=self.search,
            unread_only=self.unread_only,
            archived_only=self.archived_only,
        )

    def snapshot(self, *, now: datetime | None = None) -> ThreadListState:
        """Render whatever is cached right now without touching the network."""
        data = self._cache.peek(self.key)
        if data is None:
            return ThreadListState(status=ViewStatus.LOADING)
        return self._render(data, now)

    async def load(self, *, now: datetime | None = None) -> ThreadListState:
        """Read through the cache and render the list."""
        try:
            data = await self._cache.fetch(self.key, self._fetch)
        except _VIEW_ERRORS as exc:
            return self._error_state(exc)
        return self._render(data, now)

    async def retry(self, *, now: datetime | None = None) -> ThreadListState:
        """Manual retry: refetch regardless of cache freshness."""
        try:
            data = await self._cache.refresh(self.key, self._fetch)
        except _VIEW_ERRORS as exc:
            return self._error_state(exc)
        return self._render(data, now)

    async def refresh(self) -> None:
        await self._cache.refresh(self.key, self._fetch)

    def poller(self, interval: float = DEFAULT_REFETCH_INTERVAL) -> Poller:
        return Poller(self.refresh, interval)

    def _error_state(self, exc: Exception) -> ThreadListState:
        logger.warning("Thread list load failed", error=str(exc))
        return ThreadListState(status=ViewStatus.ERROR, message=LIST_ERROR_MESSAGE, error=str(exc))

    def _render(self, data: ThreadsListResponse, now: datetime | None) -> ThreadListState:
        if not data.threads:
            return ThreadListState(status=ViewStatus.EMPTY, message=self.empty_message)
        rows = [
            build_thread_row(t, selected=t.id == self.selected_thread_id, now=now)
            for t in data.threads
        ]
        return ThreadListState(
            status=ViewStatus.READY, rows=rows, has_more=data.pagination.has_more
        )


# ---------------------------------------------------------------------------
# Thread detail
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AttachmentView:
    name: str
    size_label: str | None


@dataclass(frozen=True)
class MessageView:
    email_id: str
    sender_label: str
    badge: str
    recipients: str
    date_label: str
    subject: str | None
    body_kind: str | None
    body: str
    attachments: list[AttachmentView]
    can_reply: bool


@dataclass(frozen=True)
class ThreadHeader:
    subject: str
    message_count: int
    participant_count: int
    last_message_date: str


@dataclass
class ThreadDetailState:
    status: ViewStatus
    header: ThreadHeader | None = None
    messages: list[MessageView] = field(default_factory=list)
    message: str | None = None
    error: str | None = None

    @property
    def can_retry(self) -> bool:
        return self.status == ViewStatus.ERROR


def build_message_view(message: ThreadMessage) -> MessageView:
    if message.is_inbound:
        sender = message.from_name or message.from_ or message.from_address or ""
    else:
        sender = "You"

    preferred = message.preferred_body()
    body_kind, body = preferred if preferred else (None, NO_CONTENT_MESSAGE)

    attachments = []
    if message.has_attachments:
        attachments = [
            AttachmentView(
                name=a.filename or "Unnamed attachment", size_label=format_size(a.size)
            )
            for a in message.attachments
        ]

    return MessageView(
        email_id=message.id,
        sender_label=sender,
        badge="Received" if message.is_inbound else "Sent",
        recipients=", ".join(message.to),
        date_label=format_message_date(message.timestamp),
        subject=message.subject,
        body_kind=body_kind,
        body=body,
        attachments=attachments,
        can_reply=message.is_inbound,
    )


class ThreadDetailView:
    """Full message list of the selected thread."""

    def __init__(self, client: InboundClient, cache: QueryCache) -> None:
        self._client = client
        self._cache = cache
        self.thread_id: str | None = None

    @property
    def key(self) -> QueryKey:
        return (*THREAD_KEY, self.thread_id)

    def select(self, thread_id: str | None) -> None:
        """Switch the displayed thread.  The fetch happens on the next load."""
        self.thread_id = thread_id

    async def _fetch(self) -> GetThreadResponse:
        if self.thread_id is None:  # pragma: no cover - guarded by callers
            msg = "No thread selected"
            raise RuntimeError(msg)
        return await self._client.get_thread(self.thread_id)

    def snapshot(self) -> ThreadDetailState:
        if self.thread_id is None:
            return ThreadDetailState(status=ViewStatus.IDLE, message=NO_SELECTION_MESSAGE)
        data = self._cache.peek(self.key)
        if data is None:
            return ThreadDetailState(status=ViewStatus.LOADING)
        return self._render(data)

    async def load(self) -> ThreadDetailState:
        if self.thread_id is None:
            return ThreadDetailState(status=ViewStatus.IDLE, message=NO_SELECTION_MESSAGE)
        try:
            data = await self._cache.fetch(self.key, self._fetch)
        except _VIEW_ERRORS as exc:
            return self._error_state(exc)
        return self._render(data)

    async def retry(self) -> ThreadDetailState:
        if self.thread_id is None:
            return ThreadDetailState(status=ViewStatus.IDLE, message=NO_SELECTION_MESSAGE)
        try:
            data = await self._cache.refresh(self.key, self._fetch)
        except _VIEW_ERRORS as exc:
            return self._error_state(exc)
        return self._render(data)

    async def refresh(self) -> None:
        if self.thread_id is not None:
            await self._cache.refresh(self.key, self._fetch)

    def poller(self, interval: float = DEFAULT_REFETCH_INTERVAL) -> Poller:
        return Poller(self.refresh, interval)

    def reply_context(self, email_id: str, *, reply_all: bool = False) -> ReplyContext:
        """Build the composer context for replying to a message in this thread."""
        data: GetThreadResponse | None = self._cache.peek(self.key)
        original = None
        if data is not None:
            original = next((m for m in data.messages if m.id == email_id), None)
        return ReplyContext(
            email_id=email_id,
            original_subject=original.subject if original else None,
            original_sender=(original.from_address or original.from_) if original else None,
            reply_all=reply_all,
        )

    async def apply_action(self, action: ThreadAction | str) -> ThreadActionResponse:
        """Run a thread action and invalidate both views."""
        if self.thread_id is None:
            msg = "No thread selected"
            raise RuntimeError(msg)
        result = await self._client.perform_thread_action(self.thread_id, action)
        self._cache.invalidate(THREADS_KEY)
        self._cache.invalidate(THREAD_KEY)
        logger.info("Thread action applied", thread_id=self.thread_id, action=str(action))
        return result

    async def mark_read(self) -> ThreadActionResponse:
        return await self.apply_action(ThreadAction.MARK_AS_READ)

    async def mark_unread(self) -> ThreadActionResponse:
        return await self.apply_action(ThreadAction.MARK_AS_UNREAD)

    async def archive(self) -> ThreadActionResponse:
        return await self.apply_action(ThreadAction.ARCHIVE)

    async def unarchive(self) -> ThreadActionResponse:
        return await self.apply_action(ThreadAction.UNARCHIVE)

    def _error_state(self, exc: Exception) -> ThreadDetailState:
        logger.warning("Thread detail load failed", thread_id=self.thread_id, error=str(exc))
        return ThreadDetailState(
            status=ViewStatus.ERROR, message=DETAIL_ERROR_MESSAGE, error=str(exc)
        )

    def _render(self, data: GetThreadResponse) -> ThreadDetailState:
        thread = data.thread
        header = ThreadHeader(
            subject=thread.normalized_subject or "No Subject",
            message_count=thread.message_count,
            participant_count=len(thread.participant_emails),
            last_message_date=thread.last_message_at.strftime("%Y-%m-%d"),
        )
        if not data.messages:
            return ThreadDetailState(
                status=ViewStatus.EMPTY, header=header, message=NO_MESSAGES_MESSAGE
            )
        return ThreadDetailState(
            status=ViewStatus.READY,
            header=header,
            messages=[build_message_view(m) for m in data.messages],
        )
