# tests/application/ports/test_requests_transport.py
from __future__ import annotations

import base64
import gzip
import json
import ssl
import time

import pytest

from application.exceptions import TransportError, TransportTimeoutError
from application.http_request_operation import http_request
from application.ports.requests_transport import MinimumTlsAdapter, RequestsHttpTransport
from tests.local_http_server import (  # noqa: F401
    BASIC_PASSWORD,
    BASIC_USER,
    BINARY_BODY,
    DRIP_SECONDS,
    SLOW_SECONDS,
    local_server,
)


@pytest.fixture(autouse=True)
def _no_environment_proxies(monkeypatch) -> None:
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)


def _headers_xml(*pairs) -> str:
    items = "".join(f'<Header Name="{name}">{value}</Header>' for name, value in pairs)
    return f"<Headers>{items}</Headers>"


def _echo_header(echo: dict, name: str):
    for key, value in echo["headers"]:
        if key.lower() == name.lower():
            return value
    return None


def test_adapter_requires_tls12() -> None:
    adapter = MinimumTlsAdapter()

    assert adapter.ssl_context.minimum_version == ssl.TLSVersion.TLSv1_2
    assert adapter.poolmanager.connection_pool_kw["ssl_context"] is adapter.ssl_context


def test_get_appends_parameters_and_sends_headers(local_server) -> None:
    # Act
    doc = http_request(
        "get",
        f"{local_server}/echo",
        "a=1&b=2",
        _headers_xml(("X-Custom", "v1"), ("User-Agent", "clrhttp-test"), ("Range", "0-9")),
        transport=RequestsHttpTransport(),
    )

    # Assert
    echo = json.loads(doc.body)
    assert echo["method"] == "GET"
    assert echo["path"] == "/echo?a=1&b=2"
    assert _echo_header(echo, "X-Custom") == "v1"
    assert _echo_header(echo, "User-Agent") == "clrhttp-test"
    assert _echo_header(echo, "Range") == "bytes=0-9"
    # http.client fills in identity when nothing else is advertised
    assert _echo_header(echo, "Accept-Encoding") in (None, "identity")
    assert doc.status_number == 200
    assert doc.character_set == "utf-8"
    assert doc.protocol_version == "1.1"


def test_post_sends_form_body(local_server) -> None:
    doc = http_request("POST", f"{local_server}/echo?x=0", "name=café", transport=RequestsHttpTransport())

    echo = json.loads(doc.body)
    assert echo["method"] == "POST"
    assert echo["path"] == "/echo?x=0"
    assert echo["body"] == "name=café"
    assert _echo_header(echo, "Content-Type") == "application/x-www-form-urlencoded"
    assert _echo_header(echo, "Content-Length") == str(len("name=café".encode("utf-8")))


def test_post_with_explicit_content_type(local_server) -> None:
    doc = http_request(
        "PUT",
        f"{local_server}/echo",
        '{"a": 1}',
        _headers_xml(("CONTENT-TYPE", "application/json")),
        transport=RequestsHttpTransport(),
    )

    echo = json.loads(doc.body)
    assert _echo_header(echo, "Content-Type") == "application/json"


def test_repeated_set_cookie_is_one_header(local_server) -> None:
    doc = http_request("GET", f"{local_server}/cookies", transport=RequestsHttpTransport())

    set_cookie = [h for h in doc.headers if h.name.lower() == "set-cookie"]
    assert len(set_cookie) == 1
    assert set_cookie[0].values == ["a", "b"]
    assert doc.header_count == len(doc.headers)
    assert doc.server != ""


def test_binary_body_base64_round_trip(local_server) -> None:
    doc = http_request(
        "GET", f"{local_server}/binary", convert_response_to_base64=True, transport=RequestsHttpTransport()
    )

    assert base64.b64decode(doc.body) == BINARY_BODY
    assert doc.content_length == len(BINARY_BODY)


def test_gzip_decompressed_when_requested(local_server) -> None:
    doc = http_request("GET", f"{local_server}/gzip", auto_decompress=True, transport=RequestsHttpTransport())

    assert doc.body == "hello gzip"
    assert doc.content_encoding == "gzip"


def test_gzip_left_alone_without_decompression(local_server) -> None:
    doc = http_request(
        "GET", f"{local_server}/gzip", convert_response_to_base64=True, transport=RequestsHttpTransport()
    )

    assert gzip.decompress(base64.b64decode(doc.body)) == b"hello gzip"


def test_auto_decompress_advertises_encodings(local_server) -> None:
    doc = http_request("GET", f"{local_server}/echo", auto_decompress=True, transport=RequestsHttpTransport())

    assert _echo_header(json.loads(doc.body), "Accept-Encoding") == "gzip, deflate"


def test_non_2xx_is_a_document(local_server) -> None:
    doc = http_request("GET", f"{local_server}/status/404", transport=RequestsHttpTransport())

    assert doc.status_number == 404
    assert doc.status_code == "NotFound"
    assert doc.body == "status body"


def test_redirect_is_followed(local_server) -> None:
    doc = http_request("GET", f"{local_server}/redirect", transport=RequestsHttpTransport())

    assert doc.status_number == 200
    assert doc.response_uri == f"{local_server}/echo?redirected=1"


def test_network_credentials_answer_basic_challenge(local_server) -> None:
    doc = http_request(
        "GET",
        f"{local_server}/basic-auth",
        headers=_headers_xml(("Authorization-Network-Credentials", f"{BASIC_USER}:{BASIC_PASSWORD}")),
        transport=RequestsHttpTransport(),
    )

    assert doc.status_number == 200
    assert doc.body == "authorized"


def test_without_credentials_challenge_is_returned(local_server) -> None:
    doc = http_request("GET", f"{local_server}/basic-auth", transport=RequestsHttpTransport())

    assert doc.status_number == 401
    assert doc.header_values("WWW-Authenticate") == ['Basic realm="test"']


def test_proxy_receives_absolute_uri_and_credentials(local_server) -> None:
    # Arrange
    host, port = local_server.replace("http://", "").split(":")
    headers = _headers_xml(("Proxy", f"{host},{port},puser:p:w"))

    # Act
    doc = http_request("GET", "http://target.invalid/echo", headers=headers, transport=RequestsHttpTransport())

    # Assert
    echo = json.loads(doc.body)
    assert echo["path"] == "http://target.invalid/echo"
    expected = "Basic " + base64.b64encode(b"puser:p:w").decode()
    assert _echo_header(echo, "Proxy-Authorization") == expected


def test_timeout_fails_within_budget(local_server) -> None:
    started = time.monotonic()

    with pytest.raises(TransportTimeoutError):
        http_request("GET", f"{local_server}/slow", timeout=300, transport=RequestsHttpTransport())

    assert time.monotonic() - started < SLOW_SECONDS


def test_dripping_response_head_times_out_within_budget(local_server) -> None:
    started = time.monotonic()

    with pytest.raises(TransportTimeoutError):
        http_request("GET", f"{local_server}/drip-head", timeout=500, transport=RequestsHttpTransport())

    assert time.monotonic() - started < DRIP_SECONDS / 2


def test_indented_header_list_is_sent_trimmed(local_server) -> None:
    # Arrange
    headers = """
    <Headers>
      <Header Name="Accept">
        application/json
      </Header>
      <Header Name="X-Custom">
        v1
      </Header>
    </Headers>
    """

    # Act
    doc = http_request("GET", f"{local_server}/echo", headers=headers, transport=RequestsHttpTransport())

    # Assert
    echo = json.loads(doc.body)
    assert _echo_header(echo, "Accept") == "application/json"
    assert _echo_header(echo, "X-Custom") == "v1"


def test_connection_refused_is_transport_error() -> None:
    with pytest.raises(TransportError):
        http_request("GET", "http://127.0.0.1:1/", timeout=2000, transport=RequestsHttpTransport())


def test_identical_requests_give_identical_documents(local_server) -> None:
    transport = RequestsHttpTransport()

    first = http_request("GET", f"{local_server}/echo", "a=1", transport=transport).to_dict()
    second = http_request("GET", f"{local_server}/echo", "a=1", transport=transport).to_dict()

    # Date changes between calls
    for doc in (first, second):
        doc["headers"] = [h for h in doc["headers"] if h["name"] != "Date"]
    assert first == second
