"""Errors raised by upstream provider clients.

Both are recoverable: callers catch them where a fallback tier exists
and move on to the next one.
"""
from __future__ import annotations

from typing import Optional


class ProviderUnavailable(RuntimeError):
    """An upstream call failed or answered with a non-2xx status."""

    def __init__(self, provider: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status = status


class MalformedPayload(ProviderUnavailable):
    """The upstream answered but the body could not be used."""


__all__ = ["ProviderUnavailable", "MalformedPayload"]
