"""Mercury CLI: load an application and serve it.

Entry point registered as ``mercury`` in ``pyproject.toml``::

    mercury blog.main:app --host 0.0.0.0 --port 8080
"""

import argparse
import importlib
import logging
import sys

from .app import Mercury
from .server import Server


def resolve_app(import_string: str) -> Mercury:
    """Resolve ``"module:attribute"`` to a :class:`Mercury` application.

    The attribute defaults to ``app``. A callable that is not already an
    application is treated as a factory and called with no arguments.
    """
    module_path, _, attr_name = import_string.partition(":")
    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name or "app")

    if callable(obj) and not isinstance(obj, Mercury):
        obj = obj()

    if not isinstance(obj, Mercury):
        raise TypeError(f"{import_string!r} resolved to {type(obj).__name__}, not a Mercury application")
    return obj


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mercury", description="Serve a Mercury web application.")
    parser.add_argument("app", help="Import string (e.g. blog.main:app)")
    parser.add_argument("--host", default=None, help="Bind host address")
    parser.add_argument("--port", type=int, default=None, help="Bind port number")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads (default: CPU count)")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show tracebacks and request dumps in error pages",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    sys.path.insert(0, ".")
    try:
        app = resolve_app(args.app)
    except (ImportError, AttributeError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.debug:
        app.configure(debug=True)

    Server(
        app,
        args.host or app.config.host,
        args.port if args.port is not None else app.config.port,
        args.workers,
    ).run()
