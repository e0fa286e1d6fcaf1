"""
Unit tests for the middleware pipeline and access logging.
"""

import json
import logging

import pytest

from pyhttpd.http.request import HTTPRequest
from pyhttpd.http.response import ok
from pyhttpd.middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


class Recorder(Middleware):
    """Records the order in which layers see the request and response."""

    def __init__(self, label, calls):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label}:in")
        response = next(request)
        self.calls.append(f"{self.label}:out")
        return response


class ShortCircuit(Middleware):
    def __call__(self, request, next):
        return ok("blocked")


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline."""

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = MiddlewarePipeline().use(Recorder("a", calls), Recorder("b", calls))

        def handler(request):
            calls.append("handler")
            return ok()

        pipeline.wrap(handler)(HTTPRequest(method="GET", path="/"))

        assert calls == ["a:in", "b:in", "handler", "b:out", "a:out"]

    def test_empty_pipeline_returns_handler(self):
        pipeline = MiddlewarePipeline()

        def handler(request):
            return ok()

        assert pipeline.wrap(handler) is handler
        assert len(pipeline) == 0

    def test_middleware_can_answer_itself(self):
        pipeline = MiddlewarePipeline().add(ShortCircuit())

        def handler(request):
            raise AssertionError("should not be called")

        response = pipeline.wrap(handler)(HTTPRequest(method="GET", path="/"))

        assert response.body == b"blocked"

    def test_iteration_and_names(self):
        pipeline = MiddlewarePipeline().add(ShortCircuit())
        assert [mw.name for mw in pipeline] == ["ShortCircuit"]


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware."""

    def make_request(self, path="/echo/abc"):
        return HTTPRequest(
            method="GET",
            path=path,
            headers={"User-Agent": "curl/8.0"},
            client_address=("10.0.0.1", 5555),
        )

    def test_text_line(self, caplog):
        middleware = LoggingMiddleware()

        with caplog.at_level(logging.INFO, logger="pyhttpd.access"):
            middleware(self.make_request(), lambda r: ok("abc"))

        record = caplog.records[-1]
        assert record.name == "pyhttpd.access"
        assert record.getMessage().startswith("10.0.0.1 - - [")
        assert '"GET /echo/abc HTTP/1.1" 200 3 ' in record.getMessage()

    def test_json_line(self, caplog):
        middleware = LoggingMiddleware(log_format="json")

        with caplog.at_level(logging.INFO, logger="pyhttpd.access"):
            middleware(self.make_request(), lambda r: ok("abc"))

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["method"] == "GET"
        assert entry["path"] == "/echo/abc"
        assert entry["status_code"] == 200
        assert entry["content_length"] == 3
        assert entry["content_encoding"] == ""
        assert entry["user_agent"] == "curl/8.0"
        assert entry["client_ip"] == "10.0.0.1"
        assert len(entry["request_id"]) == 8

    def test_skip_paths(self, caplog):
        middleware = LoggingMiddleware(skip_paths=["/"])

        with caplog.at_level(logging.INFO, logger="pyhttpd.access"):
            middleware(self.make_request("/"), lambda r: ok())

        assert not caplog.records

    def test_exception_logged_and_reraised(self, caplog):
        middleware = LoggingMiddleware()

        def failing(request):
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.INFO, logger="pyhttpd.access"):
            with pytest.raises(RuntimeError):
                middleware(self.make_request(), failing)

        assert caplog.records[-1].levelno == logging.ERROR
        assert "RuntimeError: kaboom" in caplog.records[-1].getMessage()
