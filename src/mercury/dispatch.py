"""The dispatch loop.

Candidates come from :class:`~mercury.router.Router` one at a time, in
registration order. Each one is executed and its outcome decides what
happens next: a body, stream or rendered template ends the loop with a
response, a pass moves on to the next candidate, and a fault ends the
loop with an error page. Running out of candidates produces the
"no route found" page.
"""

import html
import inspect
import json
import logging
import traceback

from typing import Any
from typing import Iterable
from typing import Iterator

from pydantic import BaseModel
from pydantic import ValidationError

from .config import AppConfig
from .outcome import Body
from .outcome import Fault
from .outcome import Outcome
from .outcome import Pass
from .outcome import PassSignal
from .outcome import RenderSignal
from .outcome import RenderTemplate
from .outcome import Stream
from .router import Binding
from .router import Router
from .templates import TemplateEngines
from .types import HTTPException
from .types import Request
from .types import Response

logger = logging.getLogger("mercury.dispatch")

EMPTY_RENDER_BODY = "template rendered an empty body"

Result = tuple[int, dict[str, Any], str | Iterator[str]]


def _is_stream(value: Any) -> bool:
    if isinstance(value, (str, bytes, dict, list, BaseModel)):
        return False
    return isinstance(value, Iterator) or inspect.isgenerator(value)


def to_outcome(result: Any, response: Response) -> Outcome:
    if result is None:
        return Body("")
    if isinstance(result, str):
        return Body(result)
    if isinstance(result, bytes):
        return Body(result.decode("utf-8"))
    if isinstance(result, (dict, list, BaseModel)):
        return Body(response.set_json(result))
    if inspect.isgeneratorfunction(result):
        return Stream(result())
    if _is_stream(result):
        return Stream(result)
    if isinstance(result, Iterable):
        return Stream(iter(result))
    return Body(str(result))


def execute(binding: Binding) -> Outcome:
    response = binding.response
    try:
        result = binding()
        return to_outcome(result, response)
    except PassSignal:
        return Pass()
    except RenderSignal as signal:
        return RenderTemplate(signal.engine, signal.template, signal.options, signal.locals)
    except HTTPException as e:
        response.status = e.status_code
        return Body(e.detail)
    except ValidationError as e:
        response.status = 422
        return Body(response.set_json({"detail": json.loads(e.json(include_url=False))}))
    except Exception as e:
        return Fault(e, traceback.format_exc())


def guarded_stream(chunks: Iterator[str], path: str) -> Iterator[str]:
    try:
        for chunk in chunks:
            if isinstance(chunk, bytes):
                chunk = chunk.decode("utf-8")
            yield chunk if isinstance(chunk, str) else str(chunk)
    except Exception:
        logger.exception("Stream for %s failed mid-response", path)
    finally:
        close = getattr(chunks, "close", None)
        if close is not None:
            close()


class Dispatcher:
    def __init__(self, router: Router, templates: TemplateEngines, config: AppConfig):
        self.router = router
        self.templates = templates
        self.config = config

    def dispatch(self, request: Request, response: Response) -> Result:
        for binding in self.router.candidates(request, response):
            outcome = execute(binding)

            if isinstance(outcome, Pass):
                logger.debug("%s %s passed by route %r", request.method, request.path, binding.route.pattern)
                continue

            if isinstance(outcome, RenderTemplate):
                outcome = self._render(outcome)

            if isinstance(outcome, Stream):
                return response.stream(guarded_stream(outcome.chunks, request.path))
            if isinstance(outcome, Body):
                response.write(outcome.text)
                return response.finish()
            return self._fault(outcome, request, response)

        return self._no_route(request, response)

    def _render(self, outcome: RenderTemplate) -> Body | Fault:
        try:
            text = self.templates.render(outcome.engine, outcome.template, outcome.options, outcome.locals)
        except Exception as e:
            return Fault(e, traceback.format_exc())
        return Body(text or EMPTY_RENDER_BODY)

    def _fault(self, fault: Fault, request: Request, response: Response) -> Result:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.path,
            fault.describe(),
            exc_info=(type(fault.error), fault.error, fault.error.__traceback__),
        )
        response.status = 500
        response.headers = {"Content-type": "text/html"}
        response.cookies.clear()
        response.chunks.clear()
        text = html.escape(fault.describe(self.config.debug)).replace("\n", "<br/>")
        response.write("<pre>" + text + "</pre>")
        return response.finish()

    def _no_route(self, request: Request, response: Response) -> Result:
        logger.debug("No route matched %s %s", request.method, request.path)
        response.status = self.config.not_found_status
        response.headers = {"Content-type": "text/html"}
        response.cookies.clear()
        return response.stream(self._no_route_body(request, response))

    def _no_route_body(self, request: Request, response: Response) -> Iterator[str]:
        yield "<html><head><title>ERROR</title></head><body>"
        yield "Sorry, no route found to match " + html.escape(request.path) + "<br /><br/>"
        if self.config.debug:
            yield "<code><b>REQUEST DATA:</b><br/>" + html.escape(repr(request)) + "<br/><br/></code>"
            yield "<code><b>RESPONSE DATA:</b><br/>" + html.escape(repr(response)) + "<br/><br/></code>"
        yield "</body></html>"
