"""
Request ID tracking.

Every request gets an id, taken from the X-Request-ID header when the client
(or a proxy) supplies one, otherwise a fresh uuid4. The id is stored on
flask.g for the logging filter and echoed back in the response header.
"""
import time
import uuid
import logging
from flask import Flask, g, request

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'X-Request-ID'


def init_request_id_tracking(app: Flask) -> None:

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        g.request_started = time.time()

    @app.after_request
    def echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id

        started = getattr(g, 'request_started', None)
        if started is not None:
            elapsed_ms = (time.time() - started) * 1000
            logger.debug(f"{request.method} {request.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response
