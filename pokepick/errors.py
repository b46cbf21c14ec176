"""Error taxonomy shared by the catalog client, the browse pipeline and the stores."""


class PokepickError(Exception):
    """Base class for errors raised by the package.

    `http_status` is the status the Flask layer answers with when the error
    reaches a route handler.
    """

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkError(PokepickError):
    """Transport failure or non-2xx answer from a remote service."""

    http_status = 502

    def __init__(self, message: str, url: str = None, status: int = None):
        super().__init__(message)
        self.url = url
        self.status = status


class RequestCancelled(PokepickError):
    """Raised when a request's cancel token fired before its result was used."""

    http_status = 409


class MalformedRecordError(PokepickError):
    http_status = 502


class ValidationError(PokepickError, ValueError):
    http_status = 400


class RemoteConflictError(PokepickError):
    """Team store rejected a change (duplicate member, full team)."""

    http_status = 400


class NotFoundError(PokepickError, LookupError):
    http_status = 404
