import contextlib
import socket
import typing as t
from threading import Event
from threading import Thread

from werkzeug.serving import BaseWSGIServer
from werkzeug.serving import make_server

from .microservice import TechMicroService


class ThreadedLocalServer(Thread):
    """WSGI server of a microservice running in its own thread."""

    def __init__(self, *, port=None, host='localhost'):
        super().__init__(daemon=True)
        self._app_object: t.Optional[TechMicroService] = None
        self._host = host
        self._port = port if port is not None else self.unused_tcp_port()
        self._server: t.Optional[BaseWSGIServer] = None
        self._server_ready = Event()

    @property
    def host(self):
        return self._host

    @property
    def port(self):
        """The listening port (the real one when bound to port 0)."""
        if self._server is not None:
            return self._server.server_port
        return self._port

    @property
    def url(self):
        return f"http://{self.host}:{self.port}"

    def wait_for_server_ready(self, timeout=None):
        return self._server_ready.wait(timeout)

    def configure(self, app_object: TechMicroService):
        self._app_object = app_object
        app_object.init_routes()
        try:
            self._server = make_server(self._host, self._port, app_object, threaded=True)
        except (OSError, SystemExit):
            # werkzeug exits when the address cannot be bound
            raise OSError(f"Cannot serve on {self._host}:{self._port}") from None

    def run(self):
        self._app_object.logger.info(f"Serving {self._app_object.name} on {self.url}")
        self._server_ready.set()
        self._server.serve_forever()

    def make_call(self, method, path, timeout=2, **kwarg):
        self._server_ready.wait()
        return method(f"{self.url}{path}", timeout=timeout, **kwarg)

    def shutdown(self):
        if self._server is not None:
            if self.is_alive():
                self._server.shutdown()
            self._server.server_close()
            self._app_object.logger.info(f"Server {self._app_object.name} on {self.url} stopped")

    @classmethod
    def unused_tcp_port(cls):
        with contextlib.closing(socket.socket()) as sock:
            sock.bind(('localhost', 0))
            return sock.getsockname()[1]


class GreetingsServer:
    """Serves the hello world microservice and its management microservice if defined."""

    def __init__(self, app: TechMicroService, management_app: t.Optional[TechMicroService] = None):
        config = app.service_config
        self.server = ThreadedLocalServer(host=config.server_host, port=config.server_port)
        self.server.configure(app)

        self.management_server = None
        if management_app is not None:
            self.management_server = ThreadedLocalServer(host=config.management_host, port=config.management_port)
            try:
                self.management_server.configure(management_app)
            except OSError:
                self.server.shutdown()
                raise

    @property
    def servers(self) -> t.List[ThreadedLocalServer]:
        return [s for s in (self.server, self.management_server) if s is not None]

    def start(self):
        for server in self.servers:
            server.start()
        for server in self.servers:
            server.wait_for_server_ready()

    def join(self):
        for server in self.servers:
            server.join()

    def shutdown(self):
        for server in self.servers:
            server.shutdown()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.shutdown()
