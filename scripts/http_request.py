#!/usr/bin/env python3
"""
Perform one HTTP request and print the response document

Usage:
  python scripts/http_request.py <url> [--method <method>] [--parameters <text>]
                                 [--headers <xml> | --headers-file <path>] [-H "Name: value" ...]
                                 [--timeout <ms>] [--auto-decompress] [--base64]
                                 [--format xml|json] [--pretty]

Examples:
  python scripts/http_request.py https://httpbin.org/get --parameters "a=1&b=2"
  python scripts/http_request.py https://httpbin.org/post --method POST --parameters "a=1" -H "Accept: application/json"
  python scripts/http_request.py https://example.com --headers '<Headers><Header Name="Proxy">proxy.local,8080</Header></Headers>'
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

# project root on the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from application.exceptions import TransportError
from application.http_request_operation import HttpRequestOperation
from application.services.document_renderer import OUTPUT_FORMATS, render
from application.services.header_list_parser import parse_header_list
from domain.exceptions import ValidationError
from domain.request_spec import HeaderEntry, RequestSpec
from infrastructure.config.env_settings import load_settings
from infrastructure.logging.logger_factory import build_logger


def _parse_header_option(raw: str) -> HeaderEntry:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise ValidationError(f"-H expects 'Name: value', got {raw!r}")
    return HeaderEntry(name=name.strip(), value=value.strip())


def _build_parser(default_format: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Perform one HTTP request and print the response document")
    parser.add_argument("url")
    parser.add_argument("--method", default=None, help="HTTP method (default GET)")
    parser.add_argument("--parameters", default=None, help="query string for GET, body otherwise")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--headers", default=None, help="XML header list")
    source.add_argument("--headers-file", default=None, help="file containing the XML header list")
    parser.add_argument("-H", dest="header", action="append", default=[], help="extra header 'Name: value'")
    parser.add_argument("--timeout", type=int, default=None, help="timeout in milliseconds (default 30000)")
    parser.add_argument("--auto-decompress", action="store_true")
    parser.add_argument("--base64", action="store_true", help="return the body base64-encoded")
    parser.add_argument("--format", choices=OUTPUT_FORMATS, default=default_format)
    parser.add_argument("--pretty", action="store_true")
    return parser


def _header_entries(args: argparse.Namespace) -> List[HeaderEntry]:
    xml = args.headers
    if args.headers_file:
        try:
            xml = Path(args.headers_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValidationError(f"Unable to read headers file: {exc}") from exc
    entries = parse_header_list(xml)
    entries.extend(_parse_header_option(raw) for raw in args.header)
    return entries


def main() -> None:
    settings = load_settings()
    args = _build_parser(settings.output_format).parse_args()
    logger = build_logger(settings, stream=sys.stderr)

    try:
        spec = RequestSpec.resolve(
            url=args.url,
            method=args.method,
            parameters=args.parameters,
            header_list=_header_entries(args),
            timeout_ms=args.timeout,
            auto_decompress=args.auto_decompress,
            response_as_base64=args.base64,
        )
        doc = HttpRequestOperation(logger=logger).execute(spec)
    except ValidationError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        sys.exit(1)
    except TransportError as exc:
        print(f"Request failed: {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        output = render(doc, args.format, pretty=args.pretty)
    except ValueError as exc:
        print(f"Response body cannot be rendered as {args.format}: {exc}; retry with --base64", file=sys.stderr)
        sys.exit(1)
    print(output)
    sys.exit(0)


if __name__ == "__main__":
    main()
