"""Handler outcomes and the signals that produce them.

A handler body runs to completion and ends in exactly one of five ways:
it returns a body, it returns something to stream, it declines the
request with :func:`pass_route`, it asks for a template with
:func:`render`, or it fails. The first four are ordinary results; only
the last is a fault.
"""

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Iterator
from typing import Mapping
from typing import NoReturn


class RouteSignal(Exception):
    pass


class PassSignal(RouteSignal):
    pass


class RenderSignal(RouteSignal):
    def __init__(
        self,
        engine: str,
        template: Any,
        options: Mapping[str, Any] | None = None,
        locals: Mapping[str, Any] | None = None,
    ):
        self.engine = engine
        self.template = template
        self.options = dict(options or {})
        self.locals = dict(locals or {})
        super().__init__(engine)


def pass_route() -> NoReturn:
    raise PassSignal()


def render(
    engine: str,
    template: Any,
    options: Mapping[str, Any] | None = None,
    locals: Mapping[str, Any] | None = None,
) -> NoReturn:
    raise RenderSignal(engine, template, options, locals)


@dataclass(slots=True)
class Body:
    text: str = ""


@dataclass(slots=True)
class Stream:
    chunks: Iterator[str]


@dataclass(slots=True)
class Pass:
    pass


@dataclass(slots=True)
class RenderTemplate:
    engine: str
    template: Any
    options: dict[str, Any] = field(default_factory=dict)
    locals: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Fault:
    error: BaseException
    traceback: str = ""

    def describe(self, debug: bool = False) -> str:
        if debug and self.traceback:
            return self.traceback
        return f"{type(self.error).__name__}: {self.error}"


Outcome = Body | Stream | Pass | RenderTemplate | Fault
