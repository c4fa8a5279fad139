import threading
from app.utils.logger import get_logger

logger = get_logger(__name__)


class InFlightTracker:
    """WSGI middleware counting requests in progress, for draining on shutdown"""

    def __init__(self, wsgi_app):
        self.wsgi_app = wsgi_app
        self._active = 0
        self._idle = threading.Condition()

    def __call__(self, environ, start_response):
        with self._idle:
            self._active += 1
        try:
            return self.wsgi_app(environ, start_response)
        finally:
            with self._idle:
                self._active -= 1
                if self._active == 0:
                    self._idle.notify_all()

    @property
    def active(self) -> int:
        with self._idle:
            return self._active

    def wait_idle(self, timeout: float) -> bool:
        """Block until no request is in progress; False if ``timeout`` elapsed first"""
        with self._idle:
            drained = self._idle.wait_for(lambda: self._active == 0, timeout)
        if not drained:
            logger.warning(f"{self._active} request(s) still in progress after {timeout}s")
        return drained
