"""
WAF Heuristics — Host header adapter.

Converts HTTP headers as a web framework sees them into the CGI-style
header set the validator reads (``User-Agent`` -> ``HTTP_USER_AGENT``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Union

from fastapi import Request

logger = logging.getLogger("waf_heuristics.proxy.headers")

# CGI passes these two without the HTTP_ prefix
_UNPREFIXED = {"CONTENT_TYPE", "CONTENT_LENGTH"}

RawHeaders = Union[Mapping[str, str], Iterable[tuple[str, str]]]


def cgi_header_name(name: str) -> str:
    key = name.strip().upper().replace("-", "_")
    return key if key in _UNPREFIXED else f"HTTP_{key}"


def header_set_from_mapping(raw: RawHeaders) -> dict[str, str]:
    """Build a header set from a mapping or from (name, value) pairs.

    Repeated headers are joined with ", " as HTTP allows.
    """
    pairs = raw.items() if isinstance(raw, Mapping) else raw
    header_set: dict[str, str] = {}
    for name, value in pairs:
        if isinstance(name, bytes):
            name = name.decode("latin-1")
        if isinstance(value, bytes):
            value = value.decode("latin-1")
        key = cgi_header_name(name)
        if key in header_set:
            header_set[key] = f"{header_set[key]}, {value}"
        else:
            header_set[key] = value
    return header_set


def header_set_from_request(request: Request) -> dict[str, str]:
    """Build a header set from a FastAPI Request, including SERVER_PROTOCOL."""
    header_set = header_set_from_mapping(request.headers.items())
    http_version = request.scope.get("http_version")
    if http_version:
        header_set["SERVER_PROTOCOL"] = f"HTTP/{http_version}"
    logger.debug("Built header set with %d entries", len(header_set))
    return header_set
