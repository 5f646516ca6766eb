# application/ports/requests_transport.py
from __future__ import annotations

import ssl
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Iterator, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase, HTTPBasicAuth, HTTPDigestAuth
from requests.cookies import extract_cookies_to_jar
from urllib3.exceptions import HTTPError as Urllib3HTTPError, ReadTimeoutError

from application.exceptions import TransportError, TransportTimeoutError
from application.ports.http_transport import (
    HttpTransportPort,
    OutboundRequest,
    TransportResponse,
    TransportResponseHead,
)
from domain.request_spec import NetworkCredential

CHUNK_SIZE = 64 * 1024
DECOMPRESS_ENCODINGS = "gzip, deflate"


class MinimumTlsAdapter(HTTPAdapter):
    """HTTPAdapter whose pools (direct and proxied) refuse anything below the given TLS version."""

    def __init__(self, minimum_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2, **kwargs):
        # must exist before HTTPAdapter.__init__ calls init_poolmanager
        self._ssl_context = ssl.create_default_context()
        self._ssl_context.minimum_version = minimum_version
        super().__init__(**kwargs)

    @property
    def ssl_context(self) -> ssl.SSLContext:
        return self._ssl_context

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        pool_kwargs["ssl_context"] = self._ssl_context
        return super().init_poolmanager(connections, maxsize, block=block, **pool_kwargs)

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        proxy_kwargs["ssl_context"] = self._ssl_context
        return super().proxy_manager_for(proxy, **proxy_kwargs)


class NetworkCredentialAuth(AuthBase):
    """
    Credentials offered only when the server challenges with 401.

    Digest challenges are answered by HTTPDigestAuth, Basic challenges here.
    Nothing is added to the first request.
    """

    def __init__(self, credential: NetworkCredential):
        self.credential = credential
        self._digest = HTTPDigestAuth(credential.username, credential.password)

    def __call__(self, r):
        r = self._digest(r)
        r.register_hook("response", self.handle_401)
        return r

    def handle_401(self, r, **kwargs):
        if r.status_code != 401 or "Authorization" in r.request.headers:
            return r
        challenge = r.headers.get("www-authenticate", "")
        if "basic" not in challenge.lower():
            return r

        # drain and release the challenge response before retrying
        r.content
        r.close()
        prep = r.request.copy()
        extract_cookies_to_jar(prep._cookies, r.request, r.raw)
        prep.prepare_cookies(prep._cookies)
        prep = HTTPBasicAuth(self.credential.username, self.credential.password)(prep)

        _r = r.connection.send(prep, **kwargs)
        _r.history.append(r)
        _r.request = prep
        return _r


def _http_version(version: Optional[int]) -> str:
    if not version:
        return ""
    return f"{version // 10}.{version % 10}"


def group_headers(raw_headers) -> List[Tuple[str, List[str]]]:
    """
    urllib3 keeps every received value; iterate distinct names in arrival order
    and collect all values for each.
    """
    return [(name, list(raw_headers.getlist(name))) for name in raw_headers]


class RequestsTransportResponse(TransportResponse):
    def __init__(self, response: requests.Response, session: requests.Session, decode_content: bool):
        self._response = response
        self._session = session
        self._decode_content = decode_content
        self.head = TransportResponseHead(
            status=response.status_code,
            reason=response.reason or "",
            url=str(response.url),
            http_version=_http_version(getattr(response.raw, "version", None)),
            headers=group_headers(response.raw.headers),
            cookies_count=len(response.cookies),
        )

    def iter_body(self) -> Iterator[bytes]:
        url = self.head.url
        try:
            for chunk in self._response.raw.stream(CHUNK_SIZE, decode_content=self._decode_content):
                if chunk:
                    yield chunk
        except ReadTimeoutError as e:
            raise TransportTimeoutError(f"Timed out reading response body from {url}: {e}", url) from e
        except Urllib3HTTPError as e:
            raise TransportError(f"Failed reading response body from {url}: {e}", url) from e

    def close(self) -> None:
        try:
            self._response.close()
        finally:
            self._session.close()


class RequestsHttpTransport(HttpTransportPort):
    """
    One fresh requests.Session per call; nothing is pooled across calls.
    Redirects are followed and non-2xx responses are returned, not raised.
    """

    def __init__(self, minimum_tls: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2):
        self._minimum_tls = minimum_tls

    def _session(self, request: OutboundRequest) -> requests.Session:
        session = requests.Session()
        adapter = MinimumTlsAdapter(self._minimum_tls)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        if request.auto_decompress:
            session.headers["Accept-Encoding"] = DECOMPRESS_ENCODINGS
        else:
            session.headers.pop("Accept-Encoding", None)
        return session

    def _prepare(self, session: requests.Session, request: OutboundRequest) -> requests.PreparedRequest:
        auth = NetworkCredentialAuth(request.credentials) if request.credentials else None
        req = requests.Request(
            method=request.method,
            url=request.url,
            headers=OrderedDict(request.wire_headers()),
            data=request.body,
            auth=auth,
        )
        prepared = session.prepare_request(req)
        if request.content_length is not None:
            # requests recomputes the length from the body; an explicit value wins
            prepared.headers["Content-Length"] = str(request.content_length)
        return prepared

    def _submit(
        self, session: requests.Session, prepared: requests.PreparedRequest, seconds: float, settings
    ) -> Future:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="clrhttp-send")
        try:
            return executor.submit(
                session.send, prepared, timeout=(seconds, seconds), allow_redirects=True, **settings
            )
        finally:
            # the submitted exchange still runs; no further work is accepted
            executor.shutdown(wait=False)

    def send(self, request: OutboundRequest) -> TransportResponse:
        """
        timeout_ms is a deadline for connecting and receiving the response head,
        redirects and credential challenges included. Each body read is bounded
        by the same value.
        """
        session = self._session(request)
        try:
            prepared = self._prepare(session, request)
            proxies = None
            if request.proxy is not None:
                proxy_url = request.proxy.url()
                proxies = {"http": proxy_url, "https": proxy_url}
            settings = session.merge_environment_settings(prepared.url, proxies, True, None, None)
        except requests.RequestException as e:
            session.close()
            raise TransportError(f"Request to {request.url} failed: {e}", request.url) from e
        except Exception:
            session.close()
            raise

        seconds = request.timeout_ms / 1000.0
        future = self._submit(session, prepared, seconds, settings)
        try:
            response = future.result(timeout=seconds)
        except FutureTimeoutError as e:
            # the worker is still blocked on the server; release whatever it ends with
            future.add_done_callback(lambda done: _release_late(done, session))
            raise TransportTimeoutError(
                f"Request to {request.url} timed out after {request.timeout_ms} ms", request.url
            ) from e
        except requests.Timeout as e:
            session.close()
            raise TransportTimeoutError(
                f"Request to {request.url} timed out after {request.timeout_ms} ms", request.url
            ) from e
        except requests.RequestException as e:
            session.close()
            raise TransportError(f"Request to {request.url} failed: {e}", request.url) from e
        except Exception:
            session.close()
            raise

        return RequestsTransportResponse(response, session, decode_content=request.auto_decompress)


def _release_late(future: Future, session: requests.Session) -> None:
    try:
        if not future.cancelled() and future.exception() is None:
            future.result().close()
    finally:
        session.close()
