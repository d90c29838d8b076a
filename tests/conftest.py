import io

from typing import Any
from typing import Callable
from wsgiref.util import setup_testing_defaults

import pytest

from mercury import Mercury


def build_environ(
    method: str = "GET",
    path: str = "/",
    query: str = "",
    body: bytes = b"",
    content_type: str = "",
    cookie: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    environ: dict[str, Any] = {}
    setup_testing_defaults(environ)
    environ.update(
        REQUEST_METHOD=method,
        PATH_INFO=path,
        QUERY_STRING=query,
        CONTENT_LENGTH=str(len(body)),
    )
    environ["wsgi.input"] = io.BytesIO(body)
    if content_type:
        environ["CONTENT_TYPE"] = content_type
    if cookie is not None:
        environ["HTTP_COOKIE"] = cookie
    environ.update(extra)
    return environ


@pytest.fixture
def make_environ() -> Callable[..., dict[str, Any]]:
    return build_environ


@pytest.fixture
def app() -> Mercury:
    return Mercury("test")


def read_body(body: Any) -> str:
    if isinstance(body, str):
        return body
    return "".join(body)


@pytest.fixture
def call(app: Mercury) -> Callable[..., tuple[int, dict[str, Any], str]]:
    def _call(method: str = "GET", path: str = "/", **kwargs: Any) -> tuple[int, dict[str, Any], str]:
        status, headers, body = app.run(build_environ(method, path, **kwargs))
        return status, headers, read_body(body)
    return _call
