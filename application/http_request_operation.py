# application/http_request_operation.py
from __future__ import annotations

import time
from typing import Optional

from application.exceptions import TransportError
from application.ports.http_transport import HttpTransportPort
from application.ports.logger import LoggerPort, NullLogger
from application.ports.requests_transport import RequestsHttpTransport
from application.services.header_list_parser import parse_header_list
from application.services.redactor import mask_pairs
from application.services.request_builder import RequestBuilder
from application.services.response_serializer import ResponseSerializer
from domain.request_spec import RequestSpec
from domain.response_document import ResponseDocument


class HttpRequestOperation:
    """
    Build, send and serialize a single HTTP request.

    Holds no per-call state; one instance may serve concurrent callers.
    Non-2xx responses come back as documents. Input errors raise
    ValidationError before any I/O, transport failures raise TransportError.
    """

    def __init__(
        self,
        transport: Optional[HttpTransportPort] = None,
        logger: Optional[LoggerPort] = None,
        builder: Optional[RequestBuilder] = None,
        serializer: Optional[ResponseSerializer] = None,
    ):
        if transport is None:
            transport = RequestsHttpTransport()
        self._transport = transport
        self._logger = logger or NullLogger()
        self._builder = builder or RequestBuilder()
        self._serializer = serializer or ResponseSerializer()

    def execute(self, spec: RequestSpec) -> ResponseDocument:
        log = self._logger.bind(method=spec.method, url=spec.url)
        log.info("http_request.start", timeout_ms=spec.timeout_ms, header_count=len(spec.header_list))

        request = self._builder.build(spec)
        log.debug(
            "http_request.headers_dispatched",
            effective_url=request.url,
            headers=mask_pairs(request.wire_headers()),
            has_body=request.body is not None,
            has_credentials=request.credentials is not None,
            proxy=f"{request.proxy.host}:{request.proxy.port}" if request.proxy else None,
        )

        started = time.monotonic()
        try:
            with self._transport.send(request) as response:
                doc = self._serializer.serialize(response, spec.method, spec.response_as_base64)
        except TransportError as e:
            log.error("http_request.failed", error=str(e), error_type=type(e).__name__)
            raise

        log.info(
            "http_request.response",
            status=doc.status_number,
            response_uri=doc.response_uri,
            header_count=doc.header_count,
            body_len=len(doc.body),
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
        return doc


def http_request(
    method: Optional[str],
    url: str,
    parameters: Optional[str] = None,
    headers: Optional[str] = None,
    timeout: Optional[int] = None,
    auto_decompress: Optional[bool] = None,
    convert_response_to_base64: Optional[bool] = None,
    *,
    transport: Optional[HttpTransportPort] = None,
    logger: Optional[LoggerPort] = None,
) -> ResponseDocument:
    """
    Perform one HTTP request from primitive arguments.

    Args:
        method: HTTP method, default GET, case-insensitive
        url: target URL
        parameters: query string for GET, request body otherwise
        headers: XML header list, <Headers><Header Name="...">value</Header></Headers>
        timeout: milliseconds, default 30000
        auto_decompress: decode gzip/deflate response bodies
        convert_response_to_base64: return the body base64-encoded

    Returns:
        ResponseDocument
    """
    spec = RequestSpec.resolve(
        url=url,
        method=method,
        parameters=parameters,
        header_list=parse_header_list(headers),
        timeout_ms=timeout,
        auto_decompress=auto_decompress,
        response_as_base64=convert_response_to_base64,
    )
    return HttpRequestOperation(transport=transport, logger=logger).execute(spec)
