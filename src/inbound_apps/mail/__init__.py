"""Mail client view-models: query cache, thread viewer, and composer."""

from inbound_apps.mail.cache import Poller, QueryCache
from inbound_apps.mail.composer import Composer, ComposerMode, ReplyContext, reply_subject
from inbound_apps.mail.viewer import (
    ThreadDetailState,
    ThreadDetailView,
    ThreadListState,
    ThreadListView,
    ViewStatus,
)

__all__ = [
    "Composer",
    "ComposerMode",
    "Poller",
    "QueryCache",
    "ReplyContext",
    "ThreadDetailState",
    "ThreadDetailView",
    "ThreadListState",
    "ThreadListView",
    "ViewStatus",
    "reply_subject",
]
