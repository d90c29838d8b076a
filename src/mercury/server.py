import logging
import os

from concurrent.futures import ThreadPoolExecutor
from socket import socket
from typing import Any
from typing import Callable
from wsgiref.simple_server import WSGIRequestHandler
from wsgiref.simple_server import WSGIServer
from wsgiref.simple_server import make_server

logger = logging.getLogger("mercury.server")


class PooledWSGIServer(WSGIServer):
    """WSGI server that hands each accepted connection to a worker thread."""

    workers: int = os.cpu_count() or 4
    executor: ThreadPoolExecutor | None = None

    def serve_forever(self, poll_interval: float = 0.5) -> None:
        self.executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="mercury")
        try:
            super().serve_forever(poll_interval)
        finally:
            self.executor.shutdown(wait=True)
            self.executor = None

    def process_request(self, request: socket, client_address: Any) -> None:
        if self.executor is None:
            # Not serving forever (e.g. handle_request()): run inline.
            self._process(request, client_address)
            return
        self.executor.submit(self._process, request, client_address)

    def _process(self, request: socket, client_address: Any) -> None:
        try:
            self.finish_request(request, client_address)
        except Exception:
            self.handle_error(request, client_address)
        finally:
            self.shutdown_request(request)


class QuietRequestHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


class Server:
    def __init__(
        self,
        app: Callable,
        host: str = "127.0.0.1",
        port: int = 8000,
        workers: int | None = None,
    ):
        self.app = app
        self.host = host
        self.port = port
        self.workers = workers or os.cpu_count() or 4

    def build(self) -> PooledWSGIServer:
        httpd = make_server(
            self.host,
            self.port,
            self.app,
            server_class=PooledWSGIServer,
            handler_class=QuietRequestHandler,
        )
        httpd.workers = self.workers
        return httpd

    def run(self) -> None:
        httpd = self.build()

        print(f"Mercury running at http://{self.host}:{httpd.server_port} ({self.workers} threads)")

        try:
            httpd.serve_forever(poll_interval=1.0)
        except KeyboardInterrupt:
            print("\nShutting down...")
        finally:
            httpd.server_close()
