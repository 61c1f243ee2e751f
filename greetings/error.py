import traceback
import typing as t
from datetime import datetime
from datetime import timezone

from flask import request
from werkzeug.exceptions import HTTPException
from werkzeug.exceptions import InternalServerError

if t.TYPE_CHECKING:
    from flask import Flask


class GreetingsError(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.msg = message


class ConfigError(GreetingsError, ValueError):
    """Wrong hosting configuration."""


def error_body(status: int, error: str, message: str) -> t.Dict[str, t.Any]:
    """JSON body returned for any error."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(timespec='milliseconds'),
        "status": status,
        "error": error,
        "message": message,
        "path": request.path,
    }


def register_error_handlers(app: "Flask") -> None:
    """Renders all errors of the microservice as JSON."""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        if e.code >= 500:
            app.logger.error(f"Error {e.code} on {request.path} : {e.description}")
        headers = [(k, v) for k, v in e.get_headers() if k.lower() != 'content-type']
        return error_body(e.code, e.name, e.description), e.code, headers

    @app.errorhandler(Exception)
    def handle_exception(e: Exception):
        app.logger.error(f"Exception on {request.path} : {e}")
        app.logger.error(''.join(traceback.format_exception(None, e, e.__traceback__)))
        error = InternalServerError()
        return error_body(error.code, error.name, error.description), error.code
