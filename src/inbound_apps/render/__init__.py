"""HTML-to-PDF rendering through the Browserless service."""

from inbound_apps.render.pdf import DEFAULT_PDF_OPTIONS, BrowserlessRenderer

__all__ = ["DEFAULT_PDF_OPTIONS", "BrowserlessRenderer"]
