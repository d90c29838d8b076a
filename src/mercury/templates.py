from string import Template
from typing import Any
from typing import Mapping
from typing import Protocol

from jinja2 import Environment
from jinja2 import FileSystemLoader
from jinja2 import select_autoescape


class TemplateError(Exception):
    pass


class UnknownEngineError(TemplateError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown templating engine: {name!r}")


class TemplateEngine(Protocol):
    def render(self, template: Any, options: Mapping[str, Any], locals: Mapping[str, Any]) -> str: ...


class Jinja2Engine:
    def __init__(self, templates_dir: str | None = None):
        loader = FileSystemLoader(templates_dir) if templates_dir else None
        self.env = Environment(loader=loader, autoescape=select_autoescape(default_for_string=False))

    def render(self, template: Any, options: Mapping[str, Any], locals: Mapping[str, Any]) -> str:
        if self.env.loader is None or options.get("inline"):
            tmpl = self.env.from_string(template)
        else:
            tmpl = self.env.get_template(template)
        return tmpl.render(**locals)


class StringEngine:
    def render(self, template: Any, options: Mapping[str, Any], locals: Mapping[str, Any]) -> str:
        tmpl = Template(template)
        if options.get("safe"):
            return tmpl.safe_substitute(locals)
        return tmpl.substitute(locals)


class TemplateEngines:
    def __init__(self, templates_dir: str | None = None) -> None:
        self._engines: dict[str, TemplateEngine] = {
            "jinja2": Jinja2Engine(templates_dir),
            "string": StringEngine(),
        }

    def use_templates_dir(self, templates_dir: str | None) -> None:
        # A custom engine registered as "jinja2" is kept.
        if isinstance(self._engines.get("jinja2"), Jinja2Engine):
            self._engines["jinja2"] = Jinja2Engine(templates_dir)

    def __contains__(self, name: str) -> bool:
        return name in self._engines

    def register(self, name: str, engine: TemplateEngine) -> TemplateEngine:
        self._engines[name] = engine
        return engine

    def get(self, name: str) -> TemplateEngine:
        try:
            return self._engines[name]
        except KeyError:
            raise UnknownEngineError(name) from None

    def render(
        self,
        name: str,
        template: Any,
        options: Mapping[str, Any] | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> str:
        return self.get(name).render(template, options or {}, locals or {})
