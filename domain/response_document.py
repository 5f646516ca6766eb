# domain/response_document.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ResponseHeader:
    name: str
    values: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResponseDocument:
    """
    Structured summary of one HTTP response.

    Field order is the serialization order of both the XML and the dict form.
    """

    character_set: Optional[str]
    content_encoding: str
    content_length: int
    content_type: str
    cookies_count: int
    header_count: int
    headers: List[ResponseHeader]
    is_from_cache: bool
    is_mutually_authenticated: bool
    last_modified: Optional[str]
    method: str
    protocol_version: str
    response_uri: str
    server: str
    status_code: str
    status_number: int
    status_description: str
    supports_headers: bool
    body: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_number < 300

    def header_values(self, name: str) -> List[str]:
        for header in self.headers:
            if header.name.lower() == name.lower():
                return list(header.values)
        return []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "characterSet": self.character_set,
            "contentEncoding": self.content_encoding,
            "contentLength": self.content_length,
            "contentType": self.content_type,
            "cookiesCount": self.cookies_count,
            "headerCount": self.header_count,
            "headers": [{"name": h.name, "values": list(h.values)} for h in self.headers],
            "isFromCache": self.is_from_cache,
            "isMutuallyAuthenticated": self.is_mutually_authenticated,
            "lastModified": self.last_modified,
            "method": self.method,
            "protocolVersion": self.protocol_version,
            "responseUri": self.response_uri,
            "server": self.server,
            "statusCode": self.status_code,
            "statusNumber": self.status_number,
            "statusDescription": self.status_description,
            "supportsHeaders": self.supports_headers,
            "body": self.body,
        }
