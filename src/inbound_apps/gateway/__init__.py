"""Gateway client for the upstream Inbound email API."""

from inbound_apps.gateway.client import InboundClient

__all__ = ["InboundClient"]
