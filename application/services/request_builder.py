# application/services/request_builder.py
from __future__ import annotations

from application.ports.http_transport import OutboundRequest
from application.services.header_dispatch import dispatch_headers
from domain.exceptions import HeaderValueFormatError
from domain.request_spec import RequestSpec

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class RequestBuilder:
    """
    Turn a RequestSpec into an OutboundRequest.

    GET parameters are appended to the URL; for any other method they become
    the UTF-8 request body. Header entries are dispatched through the special
    header table before anything touches the network, so a malformed value
    aborts the call with no request sent.
    """

    def build(self, spec: RequestSpec) -> OutboundRequest:
        draft = dispatch_headers(spec.header_list)

        body = None
        content_length = draft.content_length
        content_type = draft.content_type
        if not spec.is_get and spec.has_parameters:
            body = spec.parameters.encode("utf-8")
            if content_length is None:
                content_length = len(body)
            if content_type is None:
                content_type = FORM_CONTENT_TYPE
        elif content_length:
            # without a body only a zero length can be honoured
            raise HeaderValueFormatError("Content-Length", str(content_length), "0 for a request without a body")

        return OutboundRequest(
            method=spec.method,
            url=spec.effective_url(),
            timeout_ms=spec.timeout_ms,
            headers=list(draft.headers),
            properties=dict(draft.properties),
            content_type=content_type,
            content_length=content_length,
            body=body,
            credentials=draft.credentials,
            proxy=draft.proxy,
            auto_decompress=spec.auto_decompress,
        )
