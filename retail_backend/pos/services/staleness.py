# pos/services/staleness.py

"""
REQUEST TOKENS

Async lookups (stock levels, VAT configurations, transaction numbers) are
tagged with a per-channel token when issued. Only the result carrying the
latest token for its channel may be applied; anything older is stale.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass

from pos.services.exceptions import StaleDataError

STOCK = "stock"
VAT = "vat"
TRANSACTION_NUMBER = "transaction_number"


@dataclass(frozen=True)
class RequestToken:
    channel: str
    version: int


class RequestTokens:
    def __init__(self):
        self._counter = itertools.count(1)
        self._current: dict[str, int] = {}

    def issue(self, channel: str) -> RequestToken:
        version = next(self._counter)
        self._current[channel] = version
        return RequestToken(channel=channel, version=version)

    def invalidate(self, *channels: str) -> None:
        """
        Drop the current token for each channel so that any in-flight result is stale.
        """
        for channel in channels:
            self._current.pop(channel, None)

    def is_current(self, token: RequestToken) -> bool:
        return self._current.get(token.channel) == token.version

    def ensure_current(self, channel: str, token: RequestToken) -> None:
        if token.channel != channel or not self.is_current(token):
            raise StaleDataError(
                f"Discarding stale {channel} result (token {token.version})"
            )
