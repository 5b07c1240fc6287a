# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Routing primitives and the FastAPI router adapter.

Route patterns use placeholders for positional captures, translated to
Starlette path parameters when the route table is mounted:

    (:any)       one path segment
    (:all)       the rest of the path, slashes included
    (:num)       an optionally negative integer
    (:alpha)     letters only
    (:alphanum)  letters and digits

Captured values are passed to the handler positionally, as strings.
Trailing slashes are ignored, and ``GET`` routes also answer ``HEAD``.

Handlers and filters are plain synchronous callables; FastAPI runs them in
its threadpool. Coroutine functions are rejected at registration.
"""

import inspect
import itertools
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Union

from fastapi import APIRouter, Request
from starlette.convertors import Convertor, register_url_convertor
from starlette.responses import Response

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

Filter = Union[str, Callable[["RequestContext"], Any]]


# =============================================================================
# Path convertors
# =============================================================================


class _PatternConvertor(Convertor):
    """Matches ``regex`` and keeps the captured value as a string."""

    regex = ""

    def convert(self, value: str) -> str:
        return value

    def to_string(self, value: str) -> str:
        return value


class NumConvertor(_PatternConvertor):
    regex = "-?[0-9]+"


class AlphaConvertor(_PatternConvertor):
    regex = "[a-zA-Z]+"


class AlphanumConvertor(_PatternConvertor):
    regex = "[a-zA-Z0-9]+"


register_url_convertor("num", NumConvertor())
register_url_convertor("alpha", AlphaConvertor())
register_url_convertor("alphanum", AlphanumConvertor())

# placeholder name -> Starlette convertor ("" = default single segment)
PLACEHOLDER_CONVERTORS: dict[str, str] = {
    "any": "",
    "all": "path",
    "num": "num",
    "alpha": "alpha",
    "alphanum": "alphanum",
}

_PLACEHOLDER_RE = re.compile(r"\(:(" + "|".join(PLACEHOLDER_CONVERTORS) + r")\)")


def to_starlette_path(pattern: str) -> str:
    """Translate a route pattern into a Starlette path.

    Example:
        "v1/products/(:any)/(:all)" -> "/v1/products/{arg0}/{arg1:path}"
    """
    counter = itertools.count()

    def replace(match: re.Match) -> str:
        convertor = PLACEHOLDER_CONVERTORS[match.group(1)]
        name = f"arg{next(counter)}"
        return "{" + name + (f":{convertor}" if convertor else "") + "}"

    return "/" + _PLACEHOLDER_RE.sub(replace, pattern).lstrip("/")


def join_pattern(base: str, pattern: str) -> str:
    """Prefix ``pattern`` with the base path, without leading/trailing slashes."""
    return "/".join(part for part in (base.strip("/"), pattern.strip("/")) if part)


def methods_for(method: str) -> list[str]:
    """Expand ``ALL`` and ``GET|POST`` style method declarations."""
    if method.upper() == "ALL":
        return list(ALL_METHODS)
    methods = [m.strip().upper() for m in method.split("|") if m.strip()]
    if "GET" in methods and "HEAD" not in methods:
        methods.append("HEAD")
    return methods


def ensure_sync(function: Callable[..., Any], label: str) -> None:
    """Reject coroutine functions, whose results would never be awaited."""
    if inspect.iscoroutinefunction(function) or inspect.iscoroutinefunction(
        getattr(function, "__call__", None)
    ):
        raise TypeError(f"{label} must be a synchronous callable")


def normalize_filters(filters: Filter | Iterable[Filter] | None) -> tuple[Filter, ...]:
    """Turn a single filter, a sequence of filters or None into a filter chain."""
    if filters is None:
        return ()
    if isinstance(filters, str) or callable(filters):
        chain: tuple[Filter, ...] = (filters,)
    else:
        chain = tuple(filters)

    for item in chain:
        if isinstance(item, str):
            continue
        if not callable(item):
            raise TypeError(f"Filter must be a name or a callable, got {item!r}")
        ensure_sync(item, "Filter")
    return chain


# =============================================================================
# Route models
# =============================================================================


@dataclass(frozen=True)
class Route:
    """A route as registered by the application."""

    pattern: str
    method: str
    action: Callable[..., Any]
    filters: tuple[Filter, ...] = ()


@dataclass(frozen=True)
class RouteEntry:
    """A row of the route table handed to the transport.

    ``action(*params, request=None)`` always returns a finished response.
    """

    pattern: Union[str, tuple[str, ...]]
    method: str
    action: Callable[..., Response]

    @property
    def patterns(self) -> tuple[str, ...]:
        if isinstance(self.pattern, str):
            return (self.pattern,)
        return tuple(self.pattern)


@dataclass
class RequestContext:
    """Per-request state shared by the filter chain and the handler.

    Filters may attach derived data to ``state`` for the handler to use.
    """

    api: Any
    route: Route
    params: tuple[str, ...] = ()
    request: Request | None = None
    state: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# FastAPI adapter
# =============================================================================


def _endpoint(action: Callable[..., Response]) -> Callable[[Request], Response]:
    def endpoint(request: Request) -> Response:
        # (:all) captures keep a trailing slash; drop it like the rest of the path
        params = [str(value).rstrip("/") for value in request.path_params.values()]
        return action(*params, request=request)

    return endpoint


def _paths(pattern: str) -> list[str]:
    """Starlette paths for a pattern: as written, then with a trailing slash."""
    path = to_starlette_path(pattern)
    if path == "/" or path.endswith(":path}"):
        return [path]
    return [path, path + "/"]


def build_router(entries: Iterable[RouteEntry]) -> APIRouter:
    """Mount a route table on a FastAPI router, keeping table order."""
    router = APIRouter()

    for entry in entries:
        endpoint = _endpoint(entry.action)
        for pattern in entry.patterns:
            for path in _paths(pattern):
                router.add_api_route(
                    path,
                    endpoint,
                    methods=methods_for(entry.method),
                    include_in_schema=False,
                )

    return router
