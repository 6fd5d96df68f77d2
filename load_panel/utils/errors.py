"""Custom exceptions for the load panel."""

from __future__ import annotations


class LoadPanelError(Exception):
    """Base exception for all load-panel errors."""
    pass


class NetworkFailure(LoadPanelError):
    """Raised when the compute endpoint is unreachable or answers non-OK."""

    def __init__(self, message: str, *, url: "str | None" = None, status_code: "int | None" = None):
        parts = [message]
        loc = []
        if url:
            loc.append(f"url={url}")
        if status_code is not None:
            loc.append(f"status={status_code}")
        if loc:
            parts.append(f"({', '.join(loc)})")
        super().__init__(" ".join(parts))
        self.url = url
        self.status_code = status_code


class EngineBusyError(LoadPanelError):
    """Raised when a dispatch mode is requested while another mode is active."""
    pass
