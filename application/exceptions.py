from __future__ import annotations


class TransportError(Exception):
    """Outbound HTTP exchange failed before a response document could be built."""

    def __init__(self, message: str, url: str) -> None:
        self.url = url
        super().__init__(message)


class TransportTimeoutError(TransportError):
    pass
