import re

from dataclasses import dataclass
from functools import lru_cache
from typing import Any
from urllib.parse import unquote_plus

SPLAT = "splat"

TOKEN_RE = re.compile(r":(\w+)|\*")
NAMED_GROUP = "([^/?&#]+)"
SPLAT_GROUP = "(.*?)"


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    original: str
    matcher_expr: str
    param_names: tuple[str, ...]
    regex: re.Pattern[str]


class Params(dict):
    """Decoded route parameters.

    Named captures are plain string entries. Every ``*`` capture is
    collected, in order, into the ``splat`` list.
    """

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    @property
    def splat(self) -> list[str]:
        return self.get(SPLAT, [])


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> CompiledPattern:
    param_names: list[str] = []
    parts: list[str] = []
    last = 0

    for m in TOKEN_RE.finditer(pattern):
        parts.append(re.escape(pattern[last:m.start()]))
        if m.group(1) is None:
            param_names.append(SPLAT)
            parts.append(SPLAT_GROUP)
        else:
            param_names.append(m.group(1))
            parts.append(NAMED_GROUP)
        last = m.end()

    parts.append(re.escape(pattern[last:]))
    expr = "".join(parts)
    if expr.endswith("/"):
        expr = expr[:-1]
    expr = "^" + expr + "/?$"

    return CompiledPattern(pattern, expr, tuple(param_names), re.compile(expr))


def extract_params(compiled: CompiledPattern, groups: tuple[str, ...]) -> Params:
    params = Params()
    for name, value in zip(compiled.param_names, groups):
        if name == SPLAT:
            params.setdefault(SPLAT, []).append(unquote_plus(value))
        else:
            params[name] = unquote_plus(value)
    return params


def url_match(compiled: CompiledPattern, path: str) -> tuple[bool, Params]:
    m = compiled.regex.fullmatch(path)
    if m is None:
        return False, Params()
    return True, extract_params(compiled, m.groups())
