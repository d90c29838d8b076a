from .app import Mercury
from .config import AppConfig
from .outcome import pass_route
from .outcome import render
from .pattern import Params
from .pattern import compile_pattern
from .types import HTTPException
from .types import Request
from .types import Response

__version__ = "0.1.0"
__all__ = [
    "AppConfig",
    "compile_pattern",
    "HTTPException",
    "Mercury",
    "Params",
    "pass_route",
    "render",
    "Request",
    "Response",
]
