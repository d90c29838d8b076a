"""Tests for mercury.dispatch: outcomes and the dispatch loop."""

import logging

import pytest

from pydantic import BaseModel

from mercury import Mercury
from mercury import pass_route
from mercury import render
from mercury.dispatch import EMPTY_RENDER_BODY
from mercury.dispatch import execute
from mercury.dispatch import to_outcome
from mercury.outcome import Body
from mercury.outcome import Fault
from mercury.outcome import Pass
from mercury.outcome import RenderTemplate
from mercury.outcome import Stream
from mercury.pattern import Params
from mercury.router import Binding
from mercury.router import Route
from mercury.types import HTTPException
from mercury.types import Request
from mercury.types import Response


class Point(BaseModel):
    x: int
    y: int


def _bind(handler) -> Binding:
    return Binding(Route("/", handler), Params(), Request(method="GET", path="/"), Response())


class TestToOutcome:
    def test_none_is_empty_body(self) -> None:
        assert to_outcome(None, Response()) == Body("")

    def test_string(self) -> None:
        assert to_outcome("hi", Response()) == Body("hi")

    def test_bytes(self) -> None:
        assert to_outcome("héllo".encode(), Response()) == Body("héllo")

    def test_dict_is_json(self) -> None:
        response = Response()
        assert to_outcome({"a": 1}, response) == Body('{"a": 1}')
        assert response.headers["Content-Type"] == "application/json"

    def test_model_is_json(self) -> None:
        assert to_outcome(Point(x=1, y=2), Response()) == Body('{"x":1,"y":2}')

    def test_generator_is_stream(self) -> None:
        outcome = to_outcome((c for c in "ab"), Response())
        assert isinstance(outcome, Stream)
        assert list(outcome.chunks) == ["a", "b"]

    def test_generator_function_is_stream(self) -> None:
        def chunks():
            yield "x"
            yield "y"

        outcome = to_outcome(chunks, Response())
        assert isinstance(outcome, Stream)
        assert list(outcome.chunks) == ["x", "y"]


class TestExecute:
    def test_return(self) -> None:
        assert execute(_bind(lambda p, req, res: "ok")) == Body("ok")

    def test_pass(self) -> None:
        def handler(params, request, response):
            pass_route()

        assert execute(_bind(handler)) == Pass()

    def test_render(self) -> None:
        def handler(params, request, response):
            render("string", "$a", {"safe": True}, {"a": 1})

        assert execute(_bind(handler)) == RenderTemplate("string", "$a", {"safe": True}, {"a": 1})

    def test_fault(self) -> None:
        def handler(params, request, response):
            raise ValueError("boom")

        outcome = execute(_bind(handler))
        assert isinstance(outcome, Fault)
        assert isinstance(outcome.error, ValueError)
        assert outcome.describe() == "ValueError: boom"
        assert "Traceback" in outcome.describe(debug=True)

    def test_http_exception_is_not_a_fault(self) -> None:
        def handler(params, request, response):
            raise HTTPException(403, "nope")

        binding = _bind(handler)
        assert execute(binding) == Body("nope")
        assert binding.response.status == 403


class TestDispatchLoop:
    def test_first_registered_wins(self, app: Mercury, call) -> None:
        app.get("/x", lambda p, req, res: "first")
        app.get("/x", lambda p, req, res: "second")
        status, headers, body = call("GET", "/x")
        assert status == 200
        assert body == "first"
        assert headers["Content-Type"] == "text/html"

    def test_pass_falls_through(self, app: Mercury, call) -> None:
        @app.get("/x")
        def first(params, request, response):
            pass_route()

        app.get("/:anything", lambda p, req, res: "second " + p.anything)
        assert call("GET", "/x")[2] == "second x"

    def test_all_passed_is_not_found(self, app: Mercury, call) -> None:
        app.get("/x", lambda p, req, res: pass_route())
        app.get("/x", lambda p, req, res: pass_route())
        status, headers, body = call("GET", "/x")
        assert status == 500
        assert headers == {"Content-type": "text/html"}
        assert "Sorry, no route found to match /x" in body

    def test_no_match(self, app: Mercury, call) -> None:
        app.get("/x", lambda p, req, res: "x")
        status, _, body = call("GET", "/missing/page")
        assert status == 500
        assert "/missing/page" in body
        assert "REQUEST DATA" not in body

    def test_no_route_body_is_lazy(self, app: Mercury, make_environ) -> None:
        _, _, body = app.run(make_environ("GET", "/nothing"))
        assert not isinstance(body, str)
        assert next(iter(body)).startswith("<html>")

    def test_not_found_debug_dumps(self, make_environ) -> None:
        app = Mercury("debug").configure(debug=True)
        _, _, body = app.run(make_environ("GET", "/nothing"))
        text = "".join(body)
        assert "REQUEST DATA" in text
        assert "RESPONSE DATA" in text
        assert "Request(" in text

    def test_fault_stops_the_loop(self, app: Mercury, call) -> None:
        tried = []

        @app.get("/x")
        def broken(params, request, response):
            tried.append("broken")
            raise RuntimeError("boom\nagain")

        @app.get("/x")
        def fallback(params, request, response):
            tried.append("fallback")
            return "never"

        status, headers, body = call("GET", "/x")
        assert status == 500
        assert headers == {"Content-type": "text/html"}
        assert body == "<pre>RuntimeError: boom<br/>again</pre>"
        assert tried == ["broken"]

    def test_fault_discards_partial_writes(self, app: Mercury, call) -> None:
        def handler(params, request, response):
            response.write("partial")
            raise KeyError("k")

        app.get("/x", handler)
        assert "partial" not in call("GET", "/x")[2]

    def test_fault_is_logged(self, app: Mercury, call, caplog: pytest.LogCaptureFixture) -> None:
        app.get("/x", lambda p, req, res: 1 / 0)
        with caplog.at_level(logging.ERROR, logger="mercury.dispatch"):
            call("GET", "/x")
        assert "ZeroDivisionError" in caplog.text

    def test_fault_traceback_in_debug(self, make_environ) -> None:
        app = Mercury("debug").configure(debug=True)
        app.get("/x", lambda p, req, res: 1 / 0)
        _, _, body = app.run(make_environ("GET", "/x"))
        assert "Traceback" in body
        assert "<br/>" in body

    def test_handler_writes_to_response(self, app: Mercury, call) -> None:
        def handler(params, request, response):
            response.status = 201
            response.headers["X-Id"] = params.id
            response.write("created ", params.id)

        app.post("/things/:id", handler)
        status, headers, body = call("POST", "/things/9")
        assert status == 201
        assert headers["X-Id"] == "9"
        assert body == "created 9"

    def test_stream(self, app: Mercury, make_environ) -> None:
        def handler(params, request, response):
            return (str(i) for i in range(3))

        app.get("/count", handler)
        status, _, body = app.run(make_environ("GET", "/count"))
        assert status == 200
        assert list(body) == ["0", "1", "2"]

    def test_generator_handler_streams(self, app: Mercury, make_environ) -> None:
        @app.get("/words")
        def words(params, request, response):
            yield "a "
            yield "b"

        _, _, body = app.run(make_environ("GET", "/words"))
        assert "".join(body) == "a b"

    def test_stream_error_ends_stream(self, app: Mercury, make_environ, caplog: pytest.LogCaptureFixture) -> None:
        def chunks():
            yield "a"
            raise ValueError("mid-stream")

        app.get("/s", lambda p, req, res: chunks())
        _, _, body = app.run(make_environ("GET", "/s"))
        with caplog.at_level(logging.ERROR, logger="mercury.dispatch"):
            assert list(body) == ["a"]
        assert "failed mid-response" in caplog.text

    def test_stream_close_releases_source(self, app: Mercury, make_environ) -> None:
        released = []

        def chunks():
            try:
                yield "a"
                yield "b"
            finally:
                released.append(True)

        app.get("/s", lambda p, req, res: chunks())
        _, _, body = app.run(make_environ("GET", "/s"))
        assert next(body) == "a"
        body.close()
        assert released == [True]

    def test_render_string_engine(self, app: Mercury, call) -> None:
        app.get("/hello/:name", lambda p, req, res: render("string", "Hi $name", locals={"name": p.name}))
        assert call("GET", "/hello/Ann")[2] == "Hi Ann"

    def test_render_jinja2_inline(self, app: Mercury, call) -> None:
        def handler(params, request, response):
            render("jinja2", "{% for i in items %}{{ i }},{% endfor %}", locals={"items": [1, 2]})

        app.get("/list", handler)
        assert call("GET", "/list")[2] == "1,2,"

    def test_empty_render_uses_placeholder(self, app: Mercury, call) -> None:
        app.get("/empty", lambda p, req, res: render("string", ""))
        status, _, body = call("GET", "/empty")
        assert status == 200
        assert body == EMPTY_RENDER_BODY

    def test_unknown_engine_is_fault(self, app: Mercury, call) -> None:
        app.get("/x", lambda p, req, res: render("haml", "%p"))
        app.get("/x", lambda p, req, res: "fallback")
        status, _, body = call("GET", "/x")
        assert status == 500
        assert "UnknownEngineError" in body

    def test_template_error_is_fault(self, app: Mercury, call) -> None:
        app.get("/x", lambda p, req, res: render("string", "$missing"))
        status, _, body = call("GET", "/x")
        assert status == 500
        assert "KeyError" in body

    def test_custom_engine(self, app: Mercury, call) -> None:
        class Upper:
            def render(self, template, options, locals):
                return template.upper()

        app.templates.register("upper", Upper())
        app.get("/x", lambda p, req, res: render("upper", "shout"))
        assert call("GET", "/x")[2] == "SHOUT"

    def test_json_result(self, app: Mercury, call) -> None:
        app.get("/point", lambda p, req, res: Point(x=3, y=4))
        _, headers, body = call("GET", "/point")
        assert headers["Content-Type"] == "application/json"
        assert body == '{"x":3,"y":4}'

    def test_http_exception(self, app: Mercury, call) -> None:
        def handler(params, request, response):
            raise HTTPException(404, "Item not found")

        app.get("/items/:id", handler)
        status, _, body = call("GET", "/items/1")
        assert status == 404
        assert body == "Item not found"

    def test_validation_error(self, app: Mercury, call) -> None:
        app.post("/points", lambda p, req, res: req.model(Point))
        status, headers, body = call(
            "POST", "/points", body=b'{"x": "nope"}', content_type="application/json"
        )
        assert status == 422
        assert headers["Content-Type"] == "application/json"
        assert '"loc"' in body

    def test_configured_not_found_status(self, make_environ) -> None:
        app = Mercury("strict").configure(not_found_status=404)
        status, _, _ = app.run(make_environ("GET", "/"))
        assert status == 404

    def test_passed_cookies_not_on_no_route_page(self, app: Mercury, call) -> None:
        def handler(params, request, response):
            response.set_cookie("sid", "abc")
            pass_route()

        app.get("/x", handler)
        status, headers, _ = call("GET", "/x")
        assert status == 500
        assert headers == {"Content-type": "text/html"}

    def test_faulted_cookies_not_on_error_page(self, app: Mercury, call) -> None:
        def handler(params, request, response):
            response.set_cookie("sid", "abc")
            raise RuntimeError("boom")

        app.get("/x", handler)
        status, headers, _ = call("GET", "/x")
        assert status == 500
        assert headers == {"Content-type": "text/html"}
