from http import HTTPStatus
from typing import Any
from typing import Iterable
from typing import Iterator
from typing import Mapping

STATUS_PHRASES = {
    200: "OK",
    201: "Created",
    204: "No Content",
    301: "Moved Permanently",
    302: "Found",
    304: "Not Modified",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
}


def status_line(status: int) -> str:
    phrase = STATUS_PHRASES.get(status)
    if phrase is None:
        try:
            phrase = HTTPStatus(status).phrase
        except ValueError:
            phrase = "Unknown"
    return f"{status} {phrase}"


def header_list(headers: Mapping[str, Any]) -> list[tuple[str, str]]:
    items: list[tuple[str, str]] = []
    for name, value in headers.items():
        if isinstance(value, (list, tuple)):
            items.extend((name, str(v)) for v in value)
        else:
            items.append((name, str(value)))
    return items


def encode_body(body: str | Iterable[str]) -> Iterator[bytes]:
    if isinstance(body, str):
        yield body.encode("utf-8")
        return
    try:
        for chunk in body:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk
    finally:
        close = getattr(body, "close", None)
        if close is not None:
            close()
