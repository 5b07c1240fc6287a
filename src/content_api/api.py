# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Content API — route registry and response normalization.

Handlers return pages, collections or plain data; the API turns the result
into a uniform JSON envelope:

    api = ContentAPI("v1")
    api.schema("product", ["title", {"price": "float"}])

    def product(context, slug):
        return {"page": site.find(f"products/{slug}"), "schema": "product"}

    api.get("/products/(:any)", product)
    app.include_router(api.router())
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Iterable, Mapping

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from starlette.requests import Request
from starlette.responses import Response

from . import metrics
from .config import Settings, get_settings
from .content import ContentPage, PageCollection
from .envelope import ErrorEnvelope, SuccessEnvelope
from .errors import (
    ContentAPIError,
    InvalidHandlerResultError,
    UnknownFilterError,
    error_details,
    status_code_of,
    status_message,
)
from .routing import (
    Filter,
    RequestContext,
    Route,
    RouteEntry,
    build_router,
    ensure_sync,
    join_pattern,
    normalize_filters,
)
from .schema import Schema, SchemaSpec
from .serializers import CollectionSerializer, PageSerializer
from .transformers import Transformer, TransformerRegistry

logger = structlog.get_logger(__name__)

Handler = Callable[..., Any]


class ContentAPI:
    """Routes, named schemas, named filters and response helpers for one API."""

    def __init__(
        self,
        base: str = "",
        headers: Mapping[str, str] | None = None,
        *,
        wrap_plain_results: bool = True,
        transformers: TransformerRegistry | None = None,
        enable_metrics: bool = True,
        metrics_prefix: str = metrics.DEFAULT_PREFIX,
    ):
        """Create a new API.

        Args:
            base: Root path prepended to every route pattern
            headers: Headers added to every generated response
            wrap_plain_results: Wrap plain mappings returned by handlers in a
                success envelope (otherwise they are sent as the raw body)
            transformers: Transformer registry (a new one with the built-in
                transformers by default)
            enable_metrics: Count dispatched responses in Prometheus
            metrics_prefix: Name prefix of the Prometheus counters
        """
        self.base = base.strip("/")
        self.headers = dict(headers or {})
        self.wrap_plain_results = wrap_plain_results
        self.transformers = transformers if transformers is not None else TransformerRegistry()
        self.enable_metrics = enable_metrics
        self.metrics_prefix = metrics_prefix
        self._schemas: dict[str, SchemaSpec] = {}
        self._filters: dict[str, Callable[[RequestContext], Any]] = {}
        self._routes: list[Route] = []

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ContentAPI:
        """Create an API configured from application settings."""
        settings = settings or get_settings()
        return cls(
            settings.base_path,
            settings.response_headers,
            wrap_plain_results=settings.wrap_plain_results,
            enable_metrics=settings.enable_metrics,
            metrics_prefix=settings.metrics_prefix,
        )

    def configure(self, settings: Settings) -> ContentAPI:
        """Apply the observability settings of the hosting application."""
        self.enable_metrics = settings.enable_metrics
        self.metrics_prefix = settings.metrics_prefix
        return self

    # =========================================================================
    # Registries
    # =========================================================================

    def schema(self, name: str, spec: SchemaSpec = None) -> Any:
        """Register a named schema, or return it when no spec is given.

        Returns:
            The API (for chaining) when registering, the spec or None otherwise.
        """
        if spec is None:
            return self._schemas.get(name)
        Schema(spec, self.transformers)  # validate shape
        self._schemas[name] = spec
        return self

    def filter(self, name: str, function: Callable[[RequestContext], Any] | None = None) -> Any:
        """Register a named filter, or return it when no function is given."""
        if function is None:
            return self._filters.get(name)
        if not callable(function):
            raise TypeError(f"Filter '{name}' must be callable")
        ensure_sync(function, f"Filter '{name}'")
        self._filters[name] = function
        return self

    def transformer(self, name: str, function: Transformer) -> ContentAPI:
        """Register a transformer available to every schema of this API."""
        self.transformers.register(name, function)
        return self

    # =========================================================================
    # Routes
    # =========================================================================

    def route(
        self,
        pattern: str,
        method: str,
        action: Handler,
        filters: Filter | Iterable[Filter] | None = None,
    ) -> ContentAPI:
        """Add a new route.

        Args:
            pattern: Route pattern relative to the base path
            method: HTTP method (``ALL`` or ``GET|POST`` alternations allowed)
            action: Synchronous handler called as ``action(context, *captured)``
            filters: Filter name/callable or a sequence of them, run in order
                before the handler
        """
        if not callable(action):
            raise TypeError(f"Route action for '{pattern}' must be callable")
        ensure_sync(action, f"Route action for '{pattern}'")
        self._routes.append(Route(pattern, method, action, normalize_filters(filters)))
        return self

    def get(self, pattern: str, action: Handler, filters: Any = None) -> ContentAPI:
        return self.route(pattern, "GET", action, filters)

    def post(self, pattern: str, action: Handler, filters: Any = None) -> ContentAPI:
        return self.route(pattern, "POST", action, filters)

    def put(self, pattern: str, action: Handler, filters: Any = None) -> ContentAPI:
        return self.route(pattern, "PUT", action, filters)

    def patch(self, pattern: str, action: Handler, filters: Any = None) -> ContentAPI:
        return self.route(pattern, "PATCH", action, filters)

    def delete(self, pattern: str, action: Handler, filters: Any = None) -> ContentAPI:
        return self.route(pattern, "DELETE", action, filters)

    def routes(self) -> list[RouteEntry]:
        """Return the route table: registered routes in order, then the 404 catch-all."""
        table = [
            RouteEntry(
                pattern=join_pattern(self.base, route.pattern),
                method=route.method,
                action=partial(self.dispatch, route),
            )
            for route in self._routes
        ]

        fallback = Route(
            pattern=self.base,
            method="ALL",
            action=lambda context, *arguments: self.error_response(404),
        )
        table.append(
            RouteEntry(
                pattern=(self.base, join_pattern(self.base, "(:all)")),
                method="ALL",
                action=partial(self.dispatch, fallback),
            )
        )
        return table

    def router(self) -> APIRouter:
        """Return a FastAPI router serving the route table."""
        return build_router(self.routes())

    # =========================================================================
    # Dispatch
    # =========================================================================

    def run_filters(self, filters: Iterable[Filter], context: RequestContext) -> None:
        """Run a filter chain in order; the first filter that raises stops it."""
        for item in filters:
            if isinstance(item, str):
                function = self._filters.get(item)
                if function is None:
                    raise UnknownFilterError(item)
            else:
                function = item
            function(context)

    def dispatch(self, route: Route, *arguments: str, request: Request | None = None) -> Response:
        """Run filters and handler for a matched route and return the response.

        Any exception raised along the way becomes a JSON error response.
        """
        context = RequestContext(api=self, route=route, params=arguments, request=request)
        log = logger.bind(pattern=route.pattern, method=route.method)

        try:
            self.run_filters(route.filters, context)
            result = route.action(context, *arguments)
            response = self.normalize_response(result)
        except Exception as exc:
            response = self._exception_response(exc, log)

        if self.enable_metrics:
            method = request.method if request is not None else route.method
            metrics.record_response(method, response.status_code, self.metrics_prefix)
        return response

    def _exception_response(self, exc: Exception, log: Any) -> Response:
        code, message = error_details(exc)
        if status_code_of(exc) is None:
            log.exception("Unhandled error in route", error=str(exc))
            kind = "unexpected"
        elif isinstance(exc, ContentAPIError):
            log.warning("Route aborted", **exc.to_dict())
            kind = "coded"
        else:
            log.warning("Route aborted", code=code, message=message)
            kind = "coded"
        if self.enable_metrics:
            metrics.record_error(kind, self.metrics_prefix)
        return self.error_response(code, message)

    # =========================================================================
    # Responses
    # =========================================================================

    def normalize_response(self, data: Any) -> Response:
        """Turn a handler result into a JSON response.

        Accepts a finished response (returned unchanged), a mapping with a
        ``page`` or ``collection`` key (plus optional ``schema`` and
        ``status``), or any other mapping.

        Raises:
            InvalidHandlerResultError: If ``data`` is neither a response nor a mapping.
        """
        if isinstance(data, Response):
            return data

        if not isinstance(data, Mapping):
            raise InvalidHandlerResultError(data)

        if "page" in data or "collection" in data:
            status = data.get("status")
            if status is not None and (not isinstance(status, int) or isinstance(status, bool)):
                raise ContentAPIError(f"Invalid response status {status!r}")
            schema = data.get("schema")

            if "page" in data:
                return self.page_response(data["page"], schema, status)
            return self.collection_response(data["collection"], schema, status)

        if self.wrap_plain_results:
            return self.success_response(dict(data))
        return self.json_response(dict(data))

    def resolve_schema(self, schema: Schema | SchemaSpec | str) -> Schema:
        """Return a Schema for a schema name, an inline spec or None."""
        if isinstance(schema, Schema):
            return schema
        if isinstance(schema, str):
            spec = self._schemas.get(schema)
            if spec is None:
                logger.warning("Unknown schema, using empty schema", schema=schema)
            return Schema(spec, self.transformers)
        return Schema(schema, self.transformers)

    def page_response(
        self,
        page: ContentPage | None,
        schema: Schema | SchemaSpec | str = None,
        code: int | None = None,
    ) -> Response:
        """Return a JSON response representing a single page (404 if None)."""
        schema = self.resolve_schema(schema)

        if page is None:
            return self.error_response(404)

        data = PageSerializer(page, schema).to_dict()
        return self.success_response(data, code)

    def collection_response(
        self,
        collection: PageCollection | None,
        schema: Schema | SchemaSpec | str = None,
        code: int | None = None,
    ) -> Response:
        """Return a JSON response representing a collection of pages (404 if None)."""
        schema = self.resolve_schema(schema)

        if collection is None:
            return self.error_response(404)

        data = CollectionSerializer(collection, schema).to_list()
        return self.success_response(data, code)

    def success_response(self, data: Any, code: int | None = None) -> Response:
        """Return a JSON formatted success response."""
        code = code or 200
        body = SuccessEnvelope(code=code, data=data).model_dump(mode="json")
        return self.json_response(body, code)

    def error_response(self, code: int | None = None, message: str | None = None) -> Response:
        """Return a JSON formatted error response.

        The message defaults to the standard text for known status codes and
        to an empty string otherwise.
        """
        code = code or 500
        if message is None:
            message = status_message(code)
        body = ErrorEnvelope(code=code, message=message).model_dump(mode="json")
        return self.json_response(body, code)

    def json_response(self, data: Any = None, code: int | None = None) -> Response:
        """Return a JSON response carrying the default headers."""
        return JSONResponse(content=data, status_code=code or 200, headers=dict(self.headers))
