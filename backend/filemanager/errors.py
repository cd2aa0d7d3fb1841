"""Error taxonomy shared by services and routes.

Services raise these; the app registers a single handler that renders them
as ``{"detail": ...}`` with the matching status code.
"""


class FileManagerError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BadRequest(FileManagerError):
    status_code = 400


class NotFound(FileManagerError):
    status_code = 404


class Conflict(FileManagerError):
    """Storage path already taken under the ``reject`` collision policy."""
    status_code = 409


class StoreError(FileManagerError):
    """Underlying database failure."""
    status_code = 500


class InternalError(FileManagerError):
    """Filesystem or other I/O failure."""
    status_code = 500
