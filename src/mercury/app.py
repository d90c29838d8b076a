from typing import Any
from typing import Callable
from typing import Iterable
from typing import Mapping

from .config import AppConfig
from .dispatch import Dispatcher
from .dispatch import Result
from .http import encode_body
from .http import header_list
from .http import status_line
from .router import Handler
from .router import Router
from .router import RouteTable
from .server import Server
from .templates import TemplateEngines
from .types import Request
from .types import Response


class Mercury:
    def __init__(
        self,
        config: AppConfig | str | None = None,
        setup: Callable[["Mercury"], None] | None = None,
    ) -> None:
        if isinstance(config, str):
            config = AppConfig(name=config)
        self.config = config or AppConfig()
        self.routes = RouteTable()
        self.templates = TemplateEngines(self.config.templates_dir)
        self.dispatcher = Dispatcher(Router(self.routes), self.templates, self.config)
        if setup is not None:
            setup(self)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def debug(self) -> bool:
        return self.config.debug

    def configure(self, **changes: Any) -> "Mercury":
        config = AppConfig.model_validate({**self.config.model_dump(), **changes})
        if config.templates_dir != self.config.templates_dir:
            self.templates.use_templates_dir(config.templates_dir)
        self.config = config
        self.dispatcher.config = config
        return self

    def get(self, pattern: str, handler: Handler | None = None, **options: Any) -> Callable:
        return self._route("GET", pattern, handler, options)

    def post(self, pattern: str, handler: Handler | None = None, **options: Any) -> Callable:
        return self._route("POST", pattern, handler, options)

    def put(self, pattern: str, handler: Handler | None = None, **options: Any) -> Callable:
        return self._route("PUT", pattern, handler, options)

    def delete(self, pattern: str, handler: Handler | None = None, **options: Any) -> Callable:
        return self._route("DELETE", pattern, handler, options)

    def add_route(self, verb: str, pattern: str, handler: Handler, **options: Any) -> None:
        self.routes.add(verb, pattern, handler, options)

    def _route(self, verb: str, pattern: str, handler: Handler | None, options: dict[str, Any]) -> Callable:
        if handler is not None:
            self.routes.add(verb, pattern, handler, options)
            return handler

        def decorator(fn: Handler) -> Handler:
            self.routes.add(verb, pattern, fn, options)
            return fn
        return decorator

    def run(self, environ: Mapping[str, Any]) -> Result:
        self.routes.freeze()
        request = Request.from_environ(environ, self.config)
        return self.dispatcher.dispatch(request, Response())

    def __call__(self, environ: Mapping[str, Any], start_response: Callable) -> Iterable[bytes]:
        status, headers, body = self.run(environ)
        start_response(status_line(status), header_list(headers))
        return encode_body(body)

    def serve(self, host: str | None = None, port: int | None = None, workers: int | None = None) -> None:
        Server(self, host or self.config.host, port if port is not None else self.config.port, workers).run()
