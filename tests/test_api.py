# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for ContentAPI route registration and response normalization."""

import json

import pytest
from fastapi import HTTPException
from starlette.responses import PlainTextResponse

from content_api import ContentAPI
from content_api.config import Settings
from content_api.errors import ContentAPIError, FilterRejectedError, InvalidHandlerResultError


def body(response) -> dict:
    return json.loads(response.body)


class TestRegistries:
    """Named schemas, filters and transformers."""

    def test_add_and_get_schema(self, api):
        assert api.schema("product", ["title", {"price": "float"}]) is api
        assert api.schema("product") == ["title", {"price": "float"}]

    def test_unknown_schema_is_none(self, api):
        assert api.schema("missing") is None

    def test_invalid_schema_rejected(self, api):
        with pytest.raises(TypeError):
            api.schema("broken", "title")

    def test_add_and_get_filter(self, api):
        def auth(context):
            pass

        assert api.filter("auth", auth) is api
        assert api.filter("auth") is auth
        assert api.filter("missing") is None

    def test_transformer_registered_on_instance(self, api, site):
        api.transformer("shout", lambda field: field.to_string().upper())
        response = api.page_response(site.find("products/product-a"), {"title": "shout"})
        assert body(response)["data"]["title"] == "PRODUCT A"
        assert "shout" not in ContentAPI().transformers

    def test_from_settings(self):
        settings = Settings(
            base_path="/cms/",
            response_headers={"X-Powered-By": "content-api"},
            wrap_plain_results=False,
            enable_metrics=False,
        )
        api = ContentAPI.from_settings(settings)
        assert api.base == "cms"
        assert api.headers == {"X-Powered-By": "content-api"}
        assert api.wrap_plain_results is False
        assert api.enable_metrics is False
        assert api.metrics_prefix == "content_api"

    def test_configure_applies_metrics_settings(self, api):
        api.configure(Settings(_env_file=None, enable_metrics=True, metrics_prefix="shop"))
        assert api.enable_metrics is True
        assert api.metrics_prefix == "shop"


class TestRouteTable:
    """routes() output."""

    def test_can_be_created(self, api):
        assert isinstance(api, ContentAPI)
        assert api.base == "v1"

    def test_add_route(self, api):
        routes = api.route("/product/(:all)", "GET", lambda context, slug: {"slug": slug}).routes()
        assert routes[0].pattern == "v1/product/(:all)"
        assert routes[0].method == "GET"

    def test_routes_in_given_order_then_catch_all(self, api):
        routes = (
            api.route("/products", "GET", lambda context: {})
            .route("/product/(:all)", "GET", lambda context, slug: {})
            .routes()
        )
        assert [route.pattern for route in routes] == [
            "v1/products",
            "v1/product/(:all)",
            ("v1", "v1/(:all)"),
        ]
        assert routes[-1].method == "ALL"

    def test_default_error_route(self, api):
        routes = api.routes()
        assert len(routes) == 1
        response = routes[0].action()
        assert response.status_code == 404
        assert body(response) == {"status": "error", "code": 404, "message": "Not found"}

    def test_catch_all_without_base(self):
        routes = ContentAPI().routes()
        assert routes[0].patterns == ("", "(:all)")

    def test_method_shortcuts(self, api):
        handler = lambda context: {}  # noqa: E731
        api.get("/a", handler).post("/b", handler).put("/c", handler)
        api.patch("/d", handler).delete("/e", handler)
        assert [route.method for route in api.routes()[:-1]] == [
            "GET", "POST", "PUT", "PATCH", "DELETE",
        ]

    def test_non_callable_action_rejected(self, api):
        with pytest.raises(TypeError):
            api.get("/a", "not callable")

    def test_async_action_rejected(self, api):
        async def handler(context):
            return {}

        with pytest.raises(TypeError, match="synchronous"):
            api.get("/a", handler)
        assert len(api.routes()) == 1

    def test_async_named_filter_rejected(self, api):
        async def auth(context):
            pass

        with pytest.raises(TypeError, match="synchronous"):
            api.filter("auth", auth)
        assert api.filter("auth") is None

    def test_passes_parameters_to_handler(self, api):
        routes = api.get("/product/(:all)", lambda context, slug: {"slug": slug}).routes()
        response = routes[0].action("product-a")
        assert body(response)["data"] == {"slug": "product-a"}

    def test_handler_receives_context(self, api):
        seen = {}

        def handler(context, first, second):
            seen["api"] = context.api
            seen["params"] = context.params
            seen["pattern"] = context.route.pattern
            return {}

        api.get("/(:any)/(:any)", handler).routes()[0].action("a", "b")
        assert seen == {"api": api, "params": ("a", "b"), "pattern": "/(:any)/(:any)"}


class TestFilters:
    """Filter chains run before the handler."""

    def test_filter_rejects_before_handler(self, api):
        calls = []

        def auth(context):
            raise FilterRejectedError("Unauthorized", code=403)

        def handler(context):
            calls.append("handler")
            return {}

        response = api.get("/secret", handler, filters=auth).routes()[0].action()

        assert calls == []
        assert response.status_code == 403
        assert body(response) == {"status": "error", "code": 403, "message": "Unauthorized"}

    def test_filters_run_in_order_and_share_context(self, api):
        order = []

        def first(context):
            order.append("first")
            context.state["user"] = "alice"

        def second(context):
            order.append("second")
            context.state["role"] = "admin"

        def handler(context):
            order.append("handler")
            return dict(context.state)

        api.filter("first", first)
        response = api.get("/me", handler, filters=["first", second]).routes()[0].action()

        assert order == ["first", "second", "handler"]
        assert body(response)["data"] == {"user": "alice", "role": "admin"}

    def test_failing_filter_stops_chain(self, api):
        order = []

        def reject(context):
            order.append("reject")
            raise ContentAPIError("Payment required", code=402)

        def never(context):
            order.append("never")

        response = api.get("/x", lambda context: {}, filters=[reject, never]).routes()[0].action()
        assert order == ["reject"]
        assert body(response) == {"status": "error", "code": 402, "message": "Payment required"}

    def test_filter_without_code_gives_500(self, api):
        def broken(context):
            raise RuntimeError("database password is hunter2")

        response = api.get("/x", lambda context: {}, filters=broken).routes()[0].action()
        assert body(response) == {
            "status": "error",
            "code": 500,
            "message": "Internal Server Error",
        }

    def test_http_exception_code_and_detail(self, api):
        def forbid(context):
            raise HTTPException(status_code=401, detail="Token expired")

        response = api.get("/x", lambda context: {}, filters=forbid).routes()[0].action()
        assert body(response) == {"status": "error", "code": 401, "message": "Token expired"}

    def test_coded_error_without_message_uses_table(self, api):
        def reject(context):
            raise FilterRejectedError()

        response = api.get("/x", lambda context: {}, filters=reject).routes()[0].action()
        assert body(response) == {"status": "error", "code": 403, "message": "Forbidden"}

    def test_unknown_named_filter_gives_500(self, api):
        response = api.get("/x", lambda context: {}, filters="missing").routes()[0].action()
        assert response.status_code == 500
        assert body(response)["message"] == "Unknown filter 'missing'"

    def test_invalid_filter_rejected_at_registration(self, api):
        with pytest.raises(TypeError):
            api.get("/x", lambda context: {}, filters=[42])


class TestHandlerErrors:
    """Exceptions raised by handlers become error envelopes."""

    def test_handler_error_with_code(self, api):
        def handler(context):
            raise ContentAPIError("Gone for good", code=410)

        response = api.get("/x", handler).routes()[0].action()
        assert response.status_code == 410
        assert body(response) == {"status": "error", "code": 410, "message": "Gone for good"}

    def test_unexpected_handler_error(self, api):
        def handler(context):
            raise KeyError("oops")

        response = api.get("/x", handler).routes()[0].action()
        assert body(response) == {
            "status": "error",
            "code": 500,
            "message": "Internal Server Error",
        }

    def test_invalid_handler_result_becomes_500(self, api):
        response = api.get("/x", lambda context: "Invalid Body").routes()[0].action()
        assert response.status_code == 500
        assert body(response)["status"] == "error"


class TestNormalizeResponse:
    """normalize_response() for each kind of handler result."""

    def test_converts_page(self, api, site):
        response = api.normalize_response({"page": site.find("products/product-a")})
        assert body(response) == body(api.success_response({"slug": "product-a"}))

    def test_page_with_named_schema(self, api, site):
        api.schema("product", ["title", {"price": "float"}])
        response = api.normalize_response({
            "page": site.find("products/product-a"),
            "schema": "product",
        })
        assert body(response)["data"] == {"slug": "product-a", "title": "Product A", "price": 99.99}

    def test_page_with_unknown_schema_name(self, api, site):
        response = api.normalize_response({"page": site.find("products/product-a"), "schema": "nope"})
        assert body(response)["data"] == {"slug": "product-a"}

    def test_page_with_status_override(self, api, site):
        response = api.normalize_response({"page": site.find("products/product-a"), "status": 201})
        assert response.status_code == 201
        assert body(response)["code"] == 201

    def test_invalid_status_rejected(self, api, site):
        with pytest.raises(ContentAPIError):
            api.normalize_response({"page": site.find("products/product-a"), "status": "201"})

    def test_missing_page_is_404(self, api, site):
        response = api.normalize_response({"page": site.find("products/invalid-product")})
        assert response.status_code == 404
        assert body(response) == body(api.error_response(404))

    def test_converts_collection(self, api, site):
        response = api.normalize_response({"collection": site.children("products")})
        data = body(response)
        assert data["code"] == 200
        assert data["data"] == [
            {"slug": "product-a"},
            {"slug": "product-b"},
            {"slug": "product-c"},
        ]

    def test_collection_with_inline_schema_and_status(self, api, site):
        response = api.normalize_response({
            "collection": site.children("manufacturers"),
            "schema": ["title"],
            "status": 203,
        })
        assert response.status_code == 203
        assert [item["title"] for item in body(response)["data"]] == ["Brand A", "Brand B", "Brand C"]

    def test_missing_collection_is_404(self, api):
        response = api.normalize_response({"collection": None})
        assert body(response) == {"status": "error", "code": 404, "message": "Not found"}

    def test_plain_mapping_wrapped(self, api):
        response = api.normalize_response({"key": "value"})
        assert response.status_code == 200
        assert body(response) == {"status": "ok", "code": 200, "data": {"key": "value"}}

    def test_plain_mapping_raw_when_not_wrapping(self):
        api = ContentAPI("v1", wrap_plain_results=False, enable_metrics=False)
        response = api.normalize_response({"key": "value"})
        assert response.status_code == 200
        assert body(response) == {"key": "value"}

    def test_plain_mapping_with_status_key_is_data(self, api):
        response = api.normalize_response({"status": "healthy"})
        assert body(response)["data"] == {"status": "healthy"}

    def test_response_passes_through(self, api):
        original = PlainTextResponse("hello", status_code=202)
        assert api.normalize_response(original) is original

    def test_non_mapping_raises(self, api):
        with pytest.raises(InvalidHandlerResultError):
            api.normalize_response("Invalid Body")
        with pytest.raises(InvalidHandlerResultError):
            api.normalize_response(["a", "b"])


class TestResponses:
    """Envelope builders."""

    def test_success_response(self, api):
        response = api.success_response({"a": 1})
        assert body(response) == {"status": "ok", "code": 200, "data": {"a": 1}}

    def test_success_response_with_code(self, api):
        response = api.success_response([], 201)
        assert response.status_code == 201
        assert body(response) == {"status": "ok", "code": 201, "data": []}

    def test_error_response_defaults_to_500(self, api):
        assert body(api.error_response()) == {
            "status": "error",
            "code": 500,
            "message": "Internal Server Error",
        }

    @pytest.mark.parametrize(
        "code, message",
        [
            (200, "Success"),
            (400, "Bad Request"),
            (401, "Unauthorized"),
            (403, "Forbidden"),
            (404, "Not found"),
            (500, "Internal Server Error"),
            (999, ""),
        ],
    )
    def test_error_response_messages(self, api, code, message):
        assert body(api.error_response(code))["message"] == message

    def test_error_response_custom_message(self, api):
        assert body(api.error_response(404, "No such product"))["message"] == "No such product"

    def test_default_headers_applied(self, site):
        api = ContentAPI("v1", {"Access-Control-Allow-Origin": "*"}, enable_metrics=False)
        for response in (
            api.success_response({}),
            api.error_response(404),
            api.page_response(site.find("products/product-a")),
            api.routes()[0].action(),
        ):
            assert response.headers["access-control-allow-origin"] == "*"
            assert response.headers["content-type"] == "application/json"
