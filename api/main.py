"""FastAPI application - exposes the single HTTP request operation"""
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from fastapi import Body, FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

import sys

# project root on the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from application.exceptions import TransportError, TransportTimeoutError
from application.http_request_operation import HttpRequestOperation
from application.ports.logger import LoggerPort
from application.ports.requests_transport import RequestsHttpTransport
from application.services.document_renderer import OUTPUT_FORMATS, render_xml
from application.services.header_list_parser import parse_header_list
from domain.exceptions import ValidationError
from domain.request_spec import HeaderEntry, RequestSpec
from infrastructure.config.env_settings import load_settings
from infrastructure.logging.logger_factory import build_logger


class HeaderItem(BaseModel):
    """One request header"""
    name: str = Field(description="Header name, matched case-insensitively against the special headers")
    value: str = Field(default="", description="Header value")


class HttpRequestBody(BaseModel):
    """Arguments of one outbound HTTP request"""
    method: Optional[str] = Field(default=None, description="HTTP method (default GET)")
    url: str = Field(description="Target URL")
    parameters: Optional[str] = Field(
        default=None,
        description="Query string for GET, request body for other methods",
    )
    headers: Optional[str] = Field(
        default=None,
        description='XML header list: <Headers><Header Name="...">value</Header></Headers>',
    )
    header_list: Optional[List[HeaderItem]] = Field(
        default=None,
        description="Header list as name/value pairs; appended after the XML headers",
    )
    timeout: Optional[int] = Field(default=None, description="Timeout in milliseconds (default 30000)")
    auto_decompress: Optional[bool] = Field(default=None, description="Decode gzip/deflate bodies")
    convert_response_to_base64: Optional[bool] = Field(
        default=None,
        description="Return the response body base64-encoded",
    )


class ErrorDetailResponse(BaseModel):
    """Structured error detail"""
    code: str = Field(description="Error code")
    message: str = Field(description="Error message")
    request_id: str = Field(description="Request identifier")


app = FastAPI(
    title="ClrHttp Request Runner",
    description="Performs one outbound HTTP request and returns a structured response document",
    version="1.0.0",
)

SETTINGS = load_settings()
TRANSPORT = RequestsHttpTransport()
BASE_LOGGER = build_logger(SETTINGS)


@app.get("/")
def read_root():
    """Health check"""
    return {"status": "ok", "service": "clrhttp"}


def _build_logger(request_id: str) -> LoggerPort:
    return BASE_LOGGER.bind(request_id=request_id)


def _to_spec(body: HttpRequestBody) -> RequestSpec:
    entries = parse_header_list(body.headers)
    entries.extend(HeaderEntry(name=h.name, value=h.value) for h in body.header_list or [])
    return RequestSpec.resolve(
        url=body.url,
        method=body.method,
        parameters=body.parameters,
        header_list=entries,
        timeout_ms=body.timeout,
        auto_decompress=body.auto_decompress,
        response_as_base64=body.convert_response_to_base64,
    )


def _error(status_code: int, code: str, message: str, request_id: str) -> HTTPException:
    detail = ErrorDetailResponse(code=code, message=message, request_id=request_id)
    return HTTPException(status_code=status_code, detail=detail.model_dump())


@app.post("/http-request")
def http_request(
    body: HttpRequestBody = Body(...),
    format: Optional[str] = Query(default=None, description="xml or json"),
):
    """
    Perform the request and return the response document.

    A non-2xx answer from the target is still a 200 here, with the target's
    status inside the document. 400: bad input, 502/504: the target could not
    be reached or timed out.
    """
    request_id = uuid4().hex
    logger = _build_logger(request_id)
    output_format = (format or SETTINGS.output_format).lower()

    try:
        if output_format not in OUTPUT_FORMATS:
            raise ValidationError(f"format must be one of {', '.join(OUTPUT_FORMATS)}: {format!r}")
        spec = _to_spec(body)
        doc = HttpRequestOperation(transport=TRANSPORT, logger=logger).execute(spec)
    except ValidationError as e:
        logger.error("http_request.rejected", error=str(e))
        raise _error(400, "invalid_input", str(e), request_id)
    except TransportTimeoutError as e:
        raise _error(504, "timeout", str(e), request_id)
    except TransportError as e:
        raise _error(502, "transport_error", str(e), request_id)

    if output_format == "json":
        return JSONResponse(content=doc.to_dict())
    try:
        xml = render_xml(doc)
    except ValueError as e:
        # control characters in a text body cannot be carried by XML
        raise _error(422, "unrepresentable_body", f"{e}; use convert_response_to_base64 or format=json", request_id)
    return Response(content=xml, media_type="application/xml")
