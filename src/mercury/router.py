from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Callable
from typing import Iterator

from .pattern import Params
from .pattern import compile_pattern
from .pattern import url_match
from .types import Request
from .types import Response

VERBS = ("GET", "POST", "PUT", "DELETE")

Handler = Callable[[Params, Request, Response], Any]


@dataclass(frozen=True, slots=True)
class Route:
    pattern: str
    handler: Handler
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Binding:
    route: Route
    params: Params
    request: Request
    response: Response

    def __call__(self) -> Any:
        return self.route.handler(self.params, self.request, self.response)


class RouteTable:
    def __init__(self) -> None:
        self._buckets: dict[str, list[Route]] = {verb: [] for verb in VERBS}
        self.frozen = False

    def __len__(self) -> int:
        return sum(len(routes) for routes in self._buckets.values())

    def add(self, verb: str, pattern: str, handler: Handler, options: dict[str, Any] | None = None) -> Route:
        if self.frozen:
            raise RuntimeError("Cannot add routes after the application started dispatching")
        verb = verb.upper()
        if verb not in self._buckets:
            raise ValueError(f"Unsupported HTTP verb: {verb}")
        route = Route(pattern, handler, dict(options or {}))
        self._buckets[verb].append(route)
        return route

    def routes(self, verb: str) -> tuple[Route, ...]:
        return tuple(self._buckets.get(verb.upper(), ()))

    def freeze(self) -> None:
        self.frozen = True


class Router:
    def __init__(self, table: RouteTable):
        self.table = table

    def candidates(self, request: Request, response: Response) -> Iterator[Binding]:
        for route in self.table.routes(request.method):
            matched, params = url_match(compile_pattern(route.pattern), request.path)
            if matched:
                yield Binding(route, params, request, response)
