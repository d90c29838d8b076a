import json

from dataclasses import dataclass
from dataclasses import field
from http.cookies import SimpleCookie
from typing import TYPE_CHECKING
from typing import Any
from typing import Iterator
from typing import Mapping
from typing import TypeVar
from urllib.parse import parse_qs

from pydantic import BaseModel

if TYPE_CHECKING:
    from .config import AppConfig

ModelT = TypeVar("ModelT", bound=BaseModel)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
DEFAULT_HEADERS = {"Content-Type": "text/html"}


class HTTPException(Exception):
    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)


def _read_body(environ: Mapping[str, Any]) -> bytes:
    stream = environ.get("wsgi.input")
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    if stream is None or length <= 0:
        return b""
    return stream.read(length)


def _headers_from_environ(environ: Mapping[str, Any]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[key[5:].replace("_", "-").lower()] = value
        elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
            headers[key.replace("_", "-").lower()] = value
    return headers


def _decode_path(raw: str) -> str:
    # PEP 3333 carries the raw path bytes as latin-1 code points.
    try:
        return raw.encode("latin-1").decode("utf-8", "replace")
    except UnicodeEncodeError:
        return raw


def _cookies_from_header(header: str) -> dict[str, str]:
    jar = SimpleCookie()
    jar.load(header)
    return {name: morsel.value for name, morsel in jar.items()}


@dataclass(frozen=True, slots=True)
class Request:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    query_string: str = ""
    body: bytes = b""
    query_params: dict[str, list[str]] = field(default_factory=dict)
    form_params: dict[str, list[str]] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    script_name: str = ""
    prefix: str = ""
    suffix: str | None = None
    doc_root: str = ""
    real_path: str = "."
    path_translated: str = ""
    environ: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_environ(cls, environ: Mapping[str, Any], config: "AppConfig | None" = None) -> "Request":
        headers = _headers_from_environ(environ)
        body = _read_body(environ)
        query_string = environ.get("QUERY_STRING", "")

        form_params: dict[str, list[str]] = {}
        content_type = headers.get("content-type", "").split(";", 1)[0].strip().lower()
        if body and content_type == FORM_CONTENT_TYPE:
            form_params = parse_qs(body.decode("latin-1"), keep_blank_values=True)

        script_name = environ.get("SCRIPT_NAME", "")
        prefix = config.prefix if config and config.prefix is not None else script_name

        real_path = environ.get("APP_PATH") or (config.real_path if config and config.real_path else ".")

        return cls(
            method=environ.get("REQUEST_METHOD", "GET").upper(),
            path=_decode_path(environ.get("PATH_INFO") or "/"),
            headers=headers,
            query_string=query_string,
            body=body,
            query_params=parse_qs(query_string, keep_blank_values=True),
            form_params=form_params,
            cookies=_cookies_from_header(environ.get("HTTP_COOKIE", "")),
            script_name=script_name,
            prefix=prefix,
            suffix=config.suffix if config else None,
            doc_root=environ.get("DOCUMENT_ROOT", ""),
            real_path=real_path,
            path_translated=environ.get("PATH_TRANSLATED") or environ.get("SCRIPT_FILENAME", ""),
            environ=environ,
        )

    @property
    def params(self) -> dict[str, str]:
        merged = {k: v[0] for k, v in self.query_params.items() if v}
        merged.update({k: v[0] for k, v in self.form_params.items() if v})
        return merged

    def query(self, name: str, default: str | None = None) -> str | None:
        values = self.query_params.get(name)
        return values[0] if values else default

    def json(self) -> Any:
        if not self.body:
            return None
        return json.loads(self.body)

    def model(self, model_cls: type[ModelT]) -> ModelT:
        if self.form_params:
            return model_cls.model_validate(self.params)
        return model_cls.model_validate(self.json() or {})


class Response:
    def __init__(self, status: int = 200, headers: dict[str, str] | None = None):
        self.status = status
        self.headers: dict[str, Any] = dict(headers if headers is not None else DEFAULT_HEADERS)
        self.cookies = SimpleCookie()
        self.chunks: list[str] = []
        self.finished = False

    def __repr__(self) -> str:
        return f"Response(status={self.status!r}, headers={self.headers!r}, chunks={len(self.chunks)})"

    def write(self, *chunks: str) -> None:
        self.chunks.extend(chunks)

    def set_cookie(self, name: str, value: str, **attrs: Any) -> None:
        self.cookies[name] = value
        morsel = self.cookies[name]
        for key, val in attrs.items():
            morsel[key.replace("_", "-")] = val
        if "path" not in attrs:
            morsel["path"] = "/"

    def delete_cookie(self, name: str, path: str = "/") -> None:
        self.set_cookie(name, "", path=path, expires="Thu, 01 Jan 1970 00:00:00 GMT", max_age=0)

    def set_json(self, data: Any) -> str:
        if isinstance(data, BaseModel):
            text = data.model_dump_json()
        elif isinstance(data, list):
            text = json.dumps([x.model_dump() if isinstance(x, BaseModel) else x for x in data])
        else:
            text = json.dumps(data)
        self.headers["Content-Type"] = "application/json"
        return text

    def _close(self) -> dict[str, Any]:
        if self.finished:
            raise RuntimeError("Response already finished")
        self.finished = True
        headers = dict(self.headers)
        if self.cookies:
            headers["Set-Cookie"] = [m.OutputString() for m in self.cookies.values()]
        return headers

    def finish(self) -> tuple[int, dict[str, Any], str]:
        headers = self._close()
        return self.status, headers, "".join(self.chunks)

    def stream(self, chunks: Iterator[str]) -> tuple[int, dict[str, Any], Iterator[str]]:
        headers = self._close()
        return self.status, headers, chunks
