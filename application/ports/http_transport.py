# application/ports/http_transport.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from domain.request_spec import NetworkCredential, ProxySpec


@dataclass(frozen=True)
class OutboundRequest:
    method: str
    url: str
    timeout_ms: int
    headers: List[Tuple[str, str]] = field(default_factory=list)  # generic headers, input order
    properties: Dict[str, str] = field(default_factory=dict)  # single-valued transport headers
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    body: Optional[bytes] = None
    credentials: Optional[NetworkCredential] = None
    proxy: Optional[ProxySpec] = None
    auto_decompress: bool = False

    def wire_headers(self) -> List[Tuple[str, str]]:
        """
        Headers in the order they go on the wire:
        generic headers, transport properties, then the content headers.
        """
        out: List[Tuple[str, str]] = list(self.headers)
        out.extend(self.properties.items())
        if self.content_type is not None:
            out.append(("Content-Type", self.content_type))
        if self.content_length is not None:
            out.append(("Content-Length", str(self.content_length)))
        return out


@dataclass(frozen=True)
class TransportResponseHead:
    status: int
    reason: str
    url: str
    http_version: str
    headers: List[Tuple[str, List[str]]]  # one entry per distinct name, values in arrival order
    cookies_count: int = 0


class TransportResponse(ABC):
    head: TransportResponseHead

    @abstractmethod
    def iter_body(self) -> Iterator[bytes]:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> "TransportResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class HttpTransportPort(ABC):
    @abstractmethod
    def send(self, request: OutboundRequest) -> TransportResponse:
        """
        Perform the exchange and return once the response head is available.
        Raises TransportError when no response could be obtained.
        """
        ...
