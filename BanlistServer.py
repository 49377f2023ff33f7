# BanlistServer.py
import argparse
import atexit
import logging
import signal
import sys
import threading
from pathlib import Path

from flask import Flask, Response
from pydantic import ValidationError
from werkzeug.serving import WSGIRequestHandler, make_server

from ServerConfig import DEFAULT_PROPERTIES_FILE, ServerConfig, load_config
from ShutdownLatch import CountDownLatch

log = logging.getLogger("banlist.server")

BANLIST_FILE = "banned-players.json"
ERROR_BODY = "Unable to fetch banned players list."
SOCKET_READ_TIMEOUT = 5  # seconds an idle connection may sit before it's dropped


class StartupError(Exception):
    """The HTTP server could not bind its socket."""


# --- Flask app ---
app = Flask(__name__)


def banlist_path() -> Path:
    return Path.cwd() / BANLIST_FILE


# No routes: this runs before URL matching, so every method and every path
# (including ones the URL map would 404, 405 or redirect) gets the banlist.
@app.before_request
def serve_banlist():
    p = banlist_path()
    try:
        # read on every request; the file is rewritten by the game server
        data = p.read_bytes()
    except OSError as e:
        log.warning("Unable to read %s: %s", p, e, exc_info=True)
        return Response(ERROR_BODY, status=500)
    return Response(data, status=200, headers={"Access-Control-Allow-Origin": "*"})


class BanlistRequestHandler(WSGIRequestHandler):
    timeout = SOCKET_READ_TIMEOUT


class HTTPServer:
    """
    Serves the banlist on config.host:config.port until stop() is called,
    either directly or from SIGTERM/SIGINT/interpreter exit. stop() closes the
    socket and counts down shutdown_latch exactly once.
    """
    def __init__(self, config: ServerConfig, shutdown_latch: CountDownLatch):
        self.config = config
        self.shutdown_latch = shutdown_latch
        self._server = None
        self._thread = None
        self._stopped = False
        # reentrant: a signal handler may run stop() on a main thread already inside it
        self._stop_lock = threading.RLock()

    @property
    def address(self):
        if self._server is None:
            return None
        return self._server.server_address[:2]

    @property
    def port(self):
        return self._server.server_port if self._server else None

    def start(self, trap_signals=True):
        """Bind eagerly and serve on a background thread. Raises StartupError."""
        host, port = self.config.host, self.config.port
        if port == 0:
            raise StartupError("Port 0 is not allowed; configure a fixed port")
        try:
            self._server = make_server(host, port, app, threaded=True,
                                       request_handler=BanlistRequestHandler)
        except (OSError, SystemExit) as e:
            # werkzeug reports bind failures with sys.exit(1) after printing the reason
            raise StartupError(f"Unable to bind {host}:{port}") from e

        self._thread = threading.Thread(target=self._server.serve_forever,
                                        name="banlist-http", daemon=True)
        self._thread.start()
        if trap_signals:
            self._trap_shutdown()
        log.info("HTTP Server initialized and started.")

    def stop(self):
        log.info("Shutting down...")
        with self._stop_lock:
            already_stopped, self._stopped = self._stopped, True
        if not already_stopped:
            if self._server is not None:
                # serve_forever closes the socket on its way out
                self._server.shutdown()
                self._thread.join()
            self.shutdown_latch.count_down()
        log.info("Successfully shut down.")

    def _trap_shutdown(self):
        atexit.register(self.stop)
        try:
            signal.signal(signal.SIGTERM, self._handle_signal)
            signal.signal(signal.SIGINT, self._handle_signal)
        except ValueError:
            # only the main thread may install signal handlers
            log.debug("Not on the main thread; relying on atexit for shutdown")

    def _handle_signal(self, signum, frame):
        log.info("Received signal %s", signum)
        self.stop()


def _setup_logging(debug=False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s %(levelname)-8s %(name)s  %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S',
    )


def main(argv=None):
    parser = argparse.ArgumentParser(prog="banlist-server",
                                     description=f"Serve {BANLIST_FILE} from the working directory over HTTP")
    parser.add_argument("--config", default=DEFAULT_PROPERTIES_FILE,
                        help="properties file with optional host/port (default: %(default)s)")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    args = parser.parse_args(argv)
    _setup_logging(args.debug)

    try:
        config = load_config(args.config)
    except (ValidationError, OSError) as e:
        log.critical("Invalid configuration in %s: %s", args.config, e)
        return 1

    latch = CountDownLatch()
    server = HTTPServer(config, latch)
    try:
        server.start()
    except StartupError as e:
        log.critical("Startup failed: %s", e)
        return 1

    log.info("Serving %s on http://%s:%s", banlist_path(), config.host, config.port)
    # short waits so a count_down from a signal handler is never missed
    while not latch.wait(timeout=1.0):
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
