#!/usr/bin/env python3
"""
Main entry point for running the background check gateway
"""

import os
import signal
import sys
import threading
from typing import Tuple

from werkzeug.serving import make_server

from app.main import create_app
from app.middleware.drain import InFlightTracker
from app.utils.logger import get_logger
from config.config import Config

logger = get_logger('gateway')


def parse_listen_addr(addr: str) -> Tuple[str, int]:
    """Split ``host:port``; a bare port listens on localhost"""
    host, sep, port = addr.rpartition(':')
    if not sep:
        host, port = 'localhost', addr
    if not port.isdigit():
        raise ValueError(f"Invalid listen address: {addr}")
    return host or 'localhost', int(port)


def serve(app, addr: str, grace_seconds: float, stop: threading.Event) -> int:
    """Serve until ``stop`` is set, then drain in-flight requests.

    Returns the process exit code.
    """
    host, port = parse_listen_addr(addr)
    tracker = InFlightTracker(app.wsgi_app)
    app.wsgi_app = tracker

    try:
        server = make_server(host, port, app, threaded=True)
    except (OSError, SystemExit) as e:
        logger.error(f"Could not listen on {addr}: {e}")
        return 1

    listener = threading.Thread(target=server.serve_forever, name='http-listener')
    listener.start()
    logger.info(f"Background check gateway listening on http://{host}:{port}")

    while not stop.wait(0.5):
        if not listener.is_alive():
            logger.error("HTTP listener stopped unexpectedly")
            server.server_close()
            return 1

    logger.info("Shutting down, no longer accepting connections")
    server.shutdown()
    listener.join()
    server.server_close()
    if tracker.active:
        logger.info(f"Waiting up to {grace_seconds}s for {tracker.active} in-flight request(s)")
    tracker.wait_idle(grace_seconds)
    return 0


def main() -> int:
    os.environ.setdefault('FLASK_ENV', 'development')

    try:
        app = create_app()
    except Exception as e:
        logger.error(f"Could not start gateway: {e}")
        return 1

    stop = threading.Event()
    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, lambda *_: stop.set())

    try:
        return serve(app, Config.LISTEN_ADDR, Config.SHUTDOWN_GRACE_SECONDS, stop)
    finally:
        app.extensions['workflow_client'].close()


if __name__ == '__main__':
    sys.exit(main())
